# text_extraction.py
"""
Turn an uploaded file into text and/or HTML for the parser.

PDF goes through pdfplumber, ``.eml`` through the stdlib email parser
(PDF attachments included), HTML through BeautifulSoup. Anything else is
decoded as text. Failures come back as ``ExtractedText(error=...)``; this
module never raises on bad input.
"""

import asyncio
import functools
import io
import time
from email import message_from_bytes, policy
from typing import Optional

import pdfplumber
from bs4 import BeautifulSoup, Comment

from .config import thread_pool
from .logging_utils import get_logger
from .models import ExtractedText

logger = get_logger("text_extraction")

_BLOCK_TAGS = ("p", "div", "li", "h1", "h2", "h3", "h4", "h5", "h6", "table", "section", "tbody")
_DROP_TAGS = ("script", "style", "head", "noscript")
PDF_ATTACHMENT_MARKER = "--- PDF Attachment ---"


def _is_pdf(data: bytes, filename: str, content_type: str) -> bool:
    return "pdf" in content_type or filename.endswith(".pdf") or data[:4] == b"%PDF"


def _is_eml(filename: str, content_type: str) -> bool:
    return content_type == "message/rfc822" or filename.endswith(".eml")


def _is_html(filename: str, content_type: str) -> bool:
    return content_type == "text/html" or filename.endswith((".html", ".htm"))


def pdf_to_text(data: bytes) -> str:
    pages = []
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        for page in pdf.pages:
            text = page.extract_text()
            if text:
                pages.append(text)
    return "\n".join(pages)


def html_to_text(html: Optional[str]) -> str:
    """
    Visible text of an HTML document, one block per line.

    Table rows are flattened to ``| cell | cell |`` so label/value pairs
    from e-ticket tables stay on one line.
    """
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(_DROP_TAGS):
        tag.extract()
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()

    # innermost rows first so nested tables flatten cleanly
    for row in reversed(soup.find_all("tr")):
        cells = [
            " ".join(cell.get_text(" ", strip=True).split())
            for cell in row.find_all(["td", "th"], recursive=False)
        ]
        cells = [c for c in cells if c]
        row.replace_with("\n| " + " | ".join(cells) + " |\n" if cells else "\n")

    for br in soup.find_all("br"):
        br.replace_with("\n")
    for tag in soup.find_all(_BLOCK_TAGS):
        tag.append("\n")

    lines = [" ".join(line.split()) for line in soup.get_text().split("\n")]
    return "\n".join(line for line in lines if line)


def strip_html_for_llm(html: Optional[str], limit: int = 20000) -> str:
    """Readable text of ``html``, bounded for a prompt."""
    return html_to_text(html)[:limit]


def _extract_eml(data: bytes) -> ExtractedText:
    message = message_from_bytes(data, policy=policy.default)
    text, html = "", ""
    attachments = []
    for part in message.walk():
        if part.is_multipart():
            continue
        content_type = part.get_content_type()
        disposition = part.get_content_disposition()
        if content_type == "application/pdf":
            attachments.append(part.get_payload(decode=True) or b"")
        elif disposition == "attachment":
            continue
        elif content_type == "text/plain" and not text:
            text = part.get_content()
        elif content_type == "text/html" and not html:
            html = part.get_content()

    if not text and html:
        text = html_to_text(html)
    for payload in attachments:
        try:
            text += f"\n\n{PDF_ATTACHMENT_MARKER}\n" + pdf_to_text(payload)
        except Exception as exc:
            logger.warning(f"Failed to extract PDF attachment: {exc}")
    return ExtractedText(text=text or None, html=html or None, source="eml")


def extract_text(data: bytes, filename: str = "", content_type: Optional[str] = None) -> ExtractedText:
    filename = (filename or "").lower()
    content_type = (content_type or "").lower().split(";")[0].strip()

    if not data:
        return ExtractedText(error="Empty file", source="empty")

    started = time.perf_counter()
    try:
        if _is_pdf(data, filename, content_type):
            text = pdf_to_text(data)
            result = (
                ExtractedText(text=text, source="pdf")
                if text.strip()
                else ExtractedText(error="PDF contains no extractable text", source="pdf")
            )
        elif _is_eml(filename, content_type):
            result = _extract_eml(data)
        elif _is_html(filename, content_type):
            html = data.decode("utf-8", errors="replace")
            result = ExtractedText(text=html_to_text(html), html=html, source="html")
        else:
            result = ExtractedText(text=data.decode("utf-8", errors="replace"), source="text")
    except Exception as exc:
        logger.error(f"Text extraction failed for {filename or 'upload'}: {exc}")
        result = ExtractedText(error=str(exc) or "Text extraction failed", source="error")

    elapsed = time.perf_counter() - started
    logger.event(
        "text_extracted",
        filename=filename,
        source=result.source,
        chars=len(result.text or ""),
        html_chars=len(result.html or ""),
        usable=result.usable,
        duration_ms=round(elapsed * 1000, 1),
    )
    return result


async def extract_text_async(data: bytes, filename: str = "", content_type: Optional[str] = None) -> ExtractedText:
    return await asyncio.get_running_loop().run_in_executor(
        thread_pool,
        functools.partial(extract_text, data, filename, content_type),
    )
