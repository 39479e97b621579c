# usage.py
import json
import random
import string
import time
from datetime import datetime, timezone
from typing import Optional

from .config import USAGE_LOG, thread_pool
from .logging_utils import get_logger
from .models import LLMUsage

logger = get_logger("usage")


def generate_extraction_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"extract_{int(time.time() * 1000)}_{suffix}"


class UsageRecorder:
    """
    Fire-and-forget sink for generative usage.

    ``record`` never raises and never waits on I/O: the usage event is
    logged inline and, when a path is configured, the JSONL append runs on
    the shared thread pool.
    """

    def __init__(self, path: Optional[str] = USAGE_LOG) -> None:
        self.path = path

    def record(self, usage: LLMUsage, purpose: Optional[str] = None, extraction_id: Optional[str] = None) -> None:
        try:
            entry = {
                "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
                "extraction_id": extraction_id,
                "model": usage.model,
                "tokens_in": usage.tokens_in,
                "tokens_out": usage.tokens_out,
                "cost": usage.cost,
                "purpose": purpose or usage.purpose,
                "retry_used": usage.retry_used,
            }
            logger.event("llm_usage", **entry)
            if self.path:
                thread_pool.submit(self._append, entry)
        except Exception as e:
            logger.warning(f"Failed to record usage: {e}")

    def _append(self, entry: dict) -> None:
        try:
            with open(self.path, "a", encoding="utf-8") as fh:
                fh.write(json.dumps(entry) + "\n")
        except OSError as e:
            logger.warning(f"Failed to write usage log {self.path}: {e}")
