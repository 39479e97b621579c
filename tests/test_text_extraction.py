import asyncio
from email.message import EmailMessage

from ticket_intel.text_extraction import (
    _is_pdf,
    extract_text,
    extract_text_async,
    html_to_text,
)

TICKET_HTML = """
<html>
  <head><style>td { color: red; }</style></head>
  <body>
    <script>var tracking = 1;</script>
    <!-- layout table -->
    <table>
      <tr><th>Passenger</th><td>MR JOHN SMITH</td></tr>
      <tr><td>Booking Reference</td><td>ABC123</td></tr>
    </table>
    <p>Have a good<br>flight</p>
  </body>
</html>
"""


def test_html_rows_flatten_to_pipe_lines():
    assert html_to_text(TICKET_HTML).split("\n") == [
        "| Passenger | MR JOHN SMITH |",
        "| Booking Reference | ABC123 |",
        "Have a good",
        "flight",
    ]


def test_html_to_text_of_nothing():
    assert html_to_text(None) == ""
    assert html_to_text("") == ""


def test_empty_upload_is_an_error_not_an_exception():
    result = extract_text(b"", "ticket.pdf")
    assert result.error == "Empty file"
    assert result.usable is False


def test_plain_text_upload():
    result = extract_text("Booking Reference: ABC123".encode(), "ticket.txt", "text/plain")
    assert result.source == "text"
    assert result.text == "Booking Reference: ABC123"


def test_html_upload_keeps_markup():
    result = extract_text(TICKET_HTML.encode(), "receipt.html")
    assert result.source == "html"
    assert result.html == TICKET_HTML
    assert "| Booking Reference | ABC123 |" in result.text


def test_eml_with_text_and_html_parts():
    message = EmailMessage()
    message["Subject"] = "Your e-ticket receipt"
    message.set_content("Booking Reference: ABC123")
    message.add_alternative("<p>Booking Reference: ABC123</p>", subtype="html")

    result = extract_text(bytes(message), "receipt.eml")
    assert result.source == "eml"
    assert result.text.strip() == "Booking Reference: ABC123"
    assert "<p>Booking Reference: ABC123</p>" in result.html


def test_eml_html_only_falls_back_to_visible_text():
    message = EmailMessage()
    message.set_content("<table><tr><td>PNR</td><td>XYZ789</td></tr></table>", subtype="html")

    result = extract_text(bytes(message), "", "message/rfc822")
    assert "| PNR | XYZ789 |" in result.text


def test_pdf_detection():
    assert _is_pdf(b"%PDF-1.7", "", "")
    assert _is_pdf(b"", "ticket.pdf", "")
    assert _is_pdf(b"", "", "application/pdf")
    assert not _is_pdf(b"hello", "ticket.txt", "text/plain")


def test_unreadable_pdf_is_reported():
    result = extract_text(b"%PDF-this is not a pdf", "broken.pdf")
    assert result.usable is False
    assert result.error


def test_async_wrapper_runs_on_the_pool():
    result = asyncio.run(extract_text_async(b"hello", "note.txt"))
    assert result.text == "hello"
