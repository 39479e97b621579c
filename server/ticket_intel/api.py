# api.py
import time
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import __version__
from .config import ACCEPT_THRESHOLD, LLM_ENABLED, MODEL_BURST, MODEL_CHEAP, PARSER_MODE
from .logging_utils import configure_logging, get_logger, new_request_id, set_request_id
from .models import ParseOutcome
from .pipeline import TicketPipeline

configure_logging()
logger = get_logger("api")

app = FastAPI(title="Ticket-Intel", version=__version__)
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"http://(localhost|127\.0\.0\.1):\d+",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger.event(
    "api_configured",
    model_cheap=MODEL_CHEAP,
    model_burst=MODEL_BURST,
    llm_enabled=LLM_ENABLED,
    parser_mode=PARSER_MODE,
    accept_threshold=ACCEPT_THRESHOLD,
)


class TextParseRequest(BaseModel):
    text: Optional[str] = None
    html: Optional[str] = None


@lru_cache(maxsize=1)
def get_pipeline() -> TicketPipeline:
    return TicketPipeline()


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """Tag every request with an id (the caller's X-Request-ID when sent) and log its outcome."""
    incoming = request.headers.get("x-request-id")
    if incoming:
        set_request_id(incoming)
        rid = incoming
    else:
        rid = new_request_id()

    started = time.perf_counter()
    logger.event(
        "http_request_started",
        method=request.method,
        path=request.url.path,
        client_ip=request.client.host if request.client else None,
    )
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        response.headers["X-Request-ID"] = rid
        return response
    finally:
        logger.event(
            "http_request_finished",
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )


def _respond(outcome: ParseOutcome) -> JSONResponse:
    if outcome.success:
        return JSONResponse(outcome.model_dump(mode="json", by_alias=True))
    body = outcome.error.model_dump(by_alias=True) if outcome.error else {"error": True}
    body["diagnostics"] = [d.model_dump(mode="json") for d in outcome.diagnostics]
    return JSONResponse(body, status_code=422)


@app.get("/health")
async def health() -> Dict[str, Any]:
    return {
        "status": "ok",
        "version": app.version,
        "llm_enabled": LLM_ENABLED,
        "parser_mode": PARSER_MODE,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.post("/parse")
async def parse_file(
    file: UploadFile = File(...),
    pipeline: TicketPipeline = Depends(get_pipeline),
) -> JSONResponse:
    data = await file.read()
    logger.event("upload_received", filename=file.filename, content_type=file.content_type, size=len(data))
    if not data:
        raise HTTPException(400, "Empty file")
    return _respond(await pipeline.parse_document(data, file.filename or "", file.content_type))


@app.post("/parse/text")
async def parse_text(
    body: TextParseRequest,
    pipeline: TicketPipeline = Depends(get_pipeline),
) -> JSONResponse:
    outcome = await pipeline.parse(body.text, body.html, source="pasted_html" if body.html else "text")
    return _respond(outcome)
