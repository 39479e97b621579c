# config.py
import logging
import os
from concurrent.futures import ThreadPoolExecutor

from dotenv import load_dotenv

load_dotenv()

import google.generativeai as genai

from .logging_utils import configure_logging, log_event

configure_logging()
logger = logging.getLogger("ticketintel.config")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")
if not GOOGLE_API_KEY:
    logger.warning("GOOGLE_API_KEY missing - generative fallback disabled")
else:
    genai.configure(api_key=GOOGLE_API_KEY)

# Two generative tiers: the cheap model runs first, the burst model only
# when the cheap result fails validation.
MODEL_CHEAP = os.getenv("TICKET_INTEL_MODEL_CHEAP", "gemini-2.0-flash-lite")
MODEL_BURST = os.getenv("TICKET_INTEL_MODEL_BURST", "gemini-2.5-flash")
MAX_TOKENS = int(os.getenv("TICKET_INTEL_MAX_TOKENS", "8192"))
TIMEOUT = float(os.getenv("TICKET_INTEL_TIMEOUT", "30"))
LLM_ENABLED = _env_flag("TICKET_INTEL_LLM_ENABLED", default=bool(GOOGLE_API_KEY))

ACCEPT_THRESHOLD = float(os.getenv("TICKET_INTEL_ACCEPT_THRESHOLD", "70"))
PARSER_MODE = os.getenv("TICKET_INTEL_PARSER_MODE", "regex_first").lower()
USAGE_LOG = os.getenv("TICKET_INTEL_USAGE_LOG")

# USD per 1M tokens (input, output)
PRICING = {
    "gemini-2.0-flash-lite": (0.075, 0.30),
    "gemini-2.0-flash": (0.10, 0.40),
    "gemini-2.5-flash": (0.30, 2.50),
    "gemini-2.5-pro": (1.25, 10.00),
}

MAX_WORKERS = int(os.getenv("MAX_WORKERS", str(min(32, (os.cpu_count() or 4) * 2))))
thread_pool = ThreadPoolExecutor(max_workers=MAX_WORKERS)

log_event(
    logger,
    "config_loaded",
    model_cheap=MODEL_CHEAP,
    model_burst=MODEL_BURST,
    timeout=TIMEOUT,
    llm_enabled=LLM_ENABLED,
    accept_threshold=ACCEPT_THRESHOLD,
    parser_mode=PARSER_MODE,
    workers=MAX_WORKERS,
)
