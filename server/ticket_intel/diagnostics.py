# diagnostics.py
"""
Structured side-channel for stage warnings.

Every pipeline stage receives a DiagnosticLog and appends
``{stage, severity, message}`` entries to it instead of printing. The same
entries are emitted through ``log_event`` so operators and callers see the
same narrative.
"""

import logging
from enum import Enum
from typing import Any, Iterator, List, Optional

from pydantic import BaseModel

from .logging_utils import log_event

logger = logging.getLogger("ticketintel.diagnostics")

_LEVELS = {
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Diagnostic(BaseModel):
    stage: str
    severity: Severity
    message: str


class DiagnosticLog:
    def __init__(self, entries: Optional[List[Diagnostic]] = None) -> None:
        self.entries: List[Diagnostic] = list(entries or [])

    def add(self, stage: str, severity: Severity, message: str, **fields: Any) -> Diagnostic:
        entry = Diagnostic(stage=stage, severity=severity, message=message)
        self.entries.append(entry)
        log_event(
            logger,
            f"{stage}.{severity.value}",
            _LEVELS[severity.value],
            stage=stage,
            detail=message,
            **fields,
        )
        return entry

    def info(self, stage: str, message: str, **fields: Any) -> Diagnostic:
        return self.add(stage, Severity.INFO, message, **fields)

    def warning(self, stage: str, message: str, **fields: Any) -> Diagnostic:
        return self.add(stage, Severity.WARNING, message, **fields)

    def error(self, stage: str, message: str, **fields: Any) -> Diagnostic:
        return self.add(stage, Severity.ERROR, message, **fields)

    def for_stage(self, stage: str) -> List[Diagnostic]:
        return [d for d in self.entries if d.stage == stage]

    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.entries if d.severity != Severity.INFO]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)
