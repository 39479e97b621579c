# errors.py
from typing import Optional


class TicketIntelError(Exception):
    """Base class for every error raised by the ticket pipeline."""


class NoUsableInputError(TicketIntelError):
    """The document produced no text or html the parsers can work with."""

    def __init__(self, reason: str, source: Optional[str] = None):
        super().__init__(reason)
        self.reason = reason
        self.source = source


class StitchingError(TicketIntelError):
    """Leg stitching was asked to build legs from neither waypoints nor flight numbers."""


class GenerativeExtractionError(TicketIntelError):
    """The generative extractor failed, timed out, or returned unusable JSON."""

    def __init__(self, message: str, model: Optional[str] = None):
        super().__init__(message)
        self.model = model
