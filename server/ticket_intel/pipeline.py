# pipeline.py
"""
Quality-gated orchestration.

Deterministic parsing always runs first (a registered carrier parser when
one claims the document, the general waypoint pipeline otherwise). The
quality gate then decides whether to accept it, ask the generative tier
for a few named fields, or run full generative extraction and keep
whichever result scores higher. Generative failures never fail a parse.
"""

import asyncio
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from .airports import map_cabin
from .carriers import CarrierRegistry, detect_carrier_hint, registry as default_registry
from .config import ACCEPT_THRESHOLD, LLM_ENABLED, PARSER_MODE
from .date_inference import STAGE as DATES_STAGE
from .date_inference import infer_dates, validate_dates
from .deterministic import document_text, parse_deterministic
from .diagnostics import DiagnosticLog, Severity
from .errors import NoUsableInputError
from .extraction_engine import GeminiExtractor
from .itinerary import to_itinerary
from .lexical import extract_base_date
from .logging_utils import get_logger, get_request_id, set_request_id
from .models import ExtractionError, LLMUsage, ParsedTicket, ParseOutcome
from .prompts import ENHANCEMENT_TASKS
from .quality_gate import GateDecision, evaluate, pick_better, score
from .text_extraction import extract_text_async
from .usage import UsageRecorder, generate_extraction_id

logger = get_logger("pipeline")

MODES = ("regex_first", "ai_first")

NO_INPUT_SUGGESTIONS = [
    "Upload the original PDF or email rather than a scan or screenshot",
    "Paste the e-ticket email text directly",
    "Check that the file is not password protected",
]
NOTHING_FOUND_SUGGESTIONS = [
    "Make sure the document is an airline e-ticket or booking confirmation",
    "Try the PDF receipt instead of the email, or the other way round",
]


def _is_empty(ticket: Optional[ParsedTicket]) -> bool:
    return ticket is None or not (ticket.segments or ticket.passengers or ticket.airline_locator)


class TicketPipeline:
    def __init__(
        self,
        extractor=None,
        recorder: Optional[UsageRecorder] = None,
        threshold: float = ACCEPT_THRESHOLD,
        mode: str = PARSER_MODE,
        registry: CarrierRegistry = default_registry,
        llm_enabled: bool = LLM_ENABLED,
    ) -> None:
        if extractor is None and llm_enabled:
            extractor = GeminiExtractor()
        self.extractor = extractor
        self.recorder = recorder or UsageRecorder()
        self.threshold = threshold
        self.mode = mode if mode in MODES else "regex_first"
        self.registry = registry

    # ---------------- entry points ----------------

    async def parse(
        self,
        text: Optional[str],
        html: Optional[str] = None,
        today: Optional[date] = None,
        source: Optional[str] = None,
    ) -> ParseOutcome:
        diagnostics = DiagnosticLog()
        timing: Dict[str, float] = {}
        usage: List[LLMUsage] = []
        extraction_id = generate_extraction_id()
        logger.start_timer("parse_total")

        if not (text and text.strip()) and not (html and html.strip()):
            timing["total"] = logger.end_timer("parse_total")
            return self._failure(NoUsableInputError("Either text or html content is required", source), diagnostics, timing)

        hint = detect_carrier_hint(text, html)
        logger.event("parse_started", extraction_id=extraction_id, carrier_hint=hint, mode=self.mode, source=source)

        if self.mode == "ai_first" and self.extractor is not None:
            ticket, method = await self._ai_first(text, html, hint, today, diagnostics, usage, timing)
        else:
            ticket, method = await self._regex_first(text, html, hint, today, diagnostics, usage, timing)

        for item in usage:
            self.recorder.record(item, extraction_id=extraction_id)

        timing["total"] = logger.end_timer("parse_total")
        if _is_empty(ticket):
            error = ExtractionError(
                user_message="We couldn't find any flight details in this document.",
                technical_reason="no segments, passengers or booking reference extracted",
                suggestions=NOTHING_FOUND_SUGGESTIONS,
            )
            logger.event("parse_failed", extraction_id=extraction_id, reason=error.technical_reason)
            return ParseOutcome(
                success=False,
                method=method,
                carrier_hint=hint,
                diagnostics=diagnostics.entries,
                usage=usage,
                processing_time=timing,
                error=error,
            )

        verdict = evaluate(ticket, self.threshold)
        outcome = ParseOutcome(
            success=True,
            ticket=ticket,
            itinerary=to_itinerary(ticket, extracted_from=source, parsed_with=method, today=today),
            score=verdict.score,
            decision=verdict.decision.value,
            method=method,
            carrier_hint=hint,
            diagnostics=diagnostics.entries,
            date_warnings=[
                d.message for d in diagnostics.for_stage(DATES_STAGE) if d.severity == Severity.WARNING
            ],
            usage=usage,
            processing_time=timing,
        )
        logger.event(
            "parse_completed",
            extraction_id=extraction_id,
            method=method,
            score=outcome.score,
            decision=outcome.decision,
            segments=len(ticket.segments),
            passengers=len(ticket.passengers),
            warnings=len(diagnostics.warnings()),
            duration_ms=round(timing["total"] * 1000, 1),
        )
        return outcome

    async def parse_document(
        self,
        data: bytes,
        filename: str = "",
        content_type: Optional[str] = None,
        today: Optional[date] = None,
    ) -> ParseOutcome:
        extracted = await extract_text_async(data, filename, content_type)
        if not extracted.usable:
            diagnostics = DiagnosticLog()
            diagnostics.error("text_extraction", extracted.error or "no text extracted", filename=filename)
            return self._failure(NoUsableInputError(extracted.error or "no text extracted", extracted.source), diagnostics, {})
        return await self.parse(extracted.text, extracted.html, today=today, source=extracted.source)

    async def parse_many(
        self,
        documents: Sequence[Tuple[bytes, str, Optional[str]]],
        today: Optional[date] = None,
    ) -> List[ParseOutcome]:
        """Parse independent documents concurrently; results keep input order."""
        parent = get_request_id() or "batch"

        async def one(index: int, doc: Tuple[bytes, str, Optional[str]]) -> ParseOutcome:
            # each task runs in its own context copy, so timers stay per document
            set_request_id(f"{parent}-{index}")
            data, filename, content_type = doc
            return await self.parse_document(data, filename, content_type, today=today)

        return list(await asyncio.gather(*(one(i, d) for i, d in enumerate(documents))))

    # ---------------- strategies ----------------

    def _deterministic(
        self,
        text: Optional[str],
        html: Optional[str],
        today: Optional[date],
        diagnostics: DiagnosticLog,
    ) -> Tuple[ParsedTicket, str]:
        parser = self.registry.detect(text, html)
        if parser is not None:
            try:
                ticket = parser.parse(text, html, today=today, diagnostics=diagnostics)
            except Exception as e:
                diagnostics.error("carriers", f"{parser.code} parser failed, using the general pipeline: {e}")
            else:
                if ticket.segments:
                    return ticket, f"carrier:{parser.code}"
                diagnostics.warning("carriers", f"{parser.code} parser found no segments")
                general = parse_deterministic(text, html, carrier=parser.code, today=today, diagnostics=diagnostics).ticket
                best = pick_better(ticket, general)
                return best, "deterministic" if best is general else f"carrier:{parser.code}"

        return parse_deterministic(text, html, today=today, diagnostics=diagnostics).ticket, "deterministic"

    async def _regex_first(self, text, html, hint, today, diagnostics, usage, timing) -> Tuple[ParsedTicket, str]:
        logger.start_timer("deterministic")
        ticket, method = self._deterministic(text, html, today, diagnostics)
        timing["deterministic"] = logger.end_timer("deterministic")

        verdict = evaluate(ticket, self.threshold)
        diagnostics.info(
            "gate",
            f"{method} scored {verdict.score} -> {verdict.decision.value}",
            missing=verdict.missing_fields,
        )
        if verdict.decision == GateDecision.ACCEPT:
            return ticket, method
        if self.extractor is None:
            diagnostics.warning("gate", "Generative tier disabled; keeping the deterministic result")
            return ticket, method

        fields = [f for f in verdict.missing_fields if f in ENHANCEMENT_TASKS]
        if not ticket.baggage:
            fields.append("baggage")
        if verdict.decision == GateDecision.ENHANCE and fields:
            logger.start_timer("enhancement")
            try:
                enhanced, enhancement_usage = await self.extractor.enhance(ticket, document_text(text, html), fields)
            except Exception as e:
                diagnostics.error("generative", f"Enhancement failed: {e}")
            else:
                usage.append(enhancement_usage)
                if score(enhanced) >= score(ticket):
                    ticket, method = enhanced, f"{method}+enhanced"
                if evaluate(ticket, self.threshold).decision == GateDecision.ACCEPT:
                    timing["enhancement"] = logger.end_timer("enhancement")
                    return ticket, method
            timing["enhancement"] = logger.end_timer("enhancement")

        logger.start_timer("generative")
        try:
            generated = await self.extractor.extract(text, html, prior_result=ticket, carrier_hint=hint)
        except Exception as e:
            diagnostics.error("generative", f"Generative extraction failed, keeping {method}: {e}")
            timing["generative"] = logger.end_timer("generative")
            return ticket, method
        timing["generative"] = logger.end_timer("generative")

        usage.append(generated.usage)
        candidate = self._postprocess(generated.result, text, html, hint, today, diagnostics)
        best = pick_better(ticket, candidate)
        diagnostics.info(
            "gate",
            f"generative scored {score(candidate)} against {score(ticket)}; keeping "
            + ("generative" if best is candidate else method),
        )
        if best is candidate:
            return candidate, f"generative:{generated.usage.model}"
        return ticket, method

    async def _ai_first(self, text, html, hint, today, diagnostics, usage, timing) -> Tuple[ParsedTicket, str]:
        logger.start_timer("generative")
        try:
            generated = await self.extractor.extract(text, html, carrier_hint=hint)
        except Exception as e:
            timing["generative"] = logger.end_timer("generative")
            diagnostics.error("generative", f"Generative extraction failed, parsing deterministically: {e}")
            logger.start_timer("deterministic")
            ticket, method = self._deterministic(text, html, today, diagnostics)
            timing["deterministic"] = logger.end_timer("deterministic")
            return ticket, method
        timing["generative"] = logger.end_timer("generative")

        usage.append(generated.usage)
        ticket = self._postprocess(generated.result, text, html, hint, today, diagnostics)
        method = f"generative:{generated.usage.model}"

        parser = self.registry.get(hint) or self.registry.detect(text, html)
        if parser is not None:
            ticket = parser.enrich(ticket, text, html, diagnostics)
            method = f"{method}+{parser.code}"
        return ticket, method

    def _postprocess(
        self,
        ticket: ParsedTicket,
        text: Optional[str],
        html: Optional[str],
        hint: Optional[str],
        today: Optional[date],
        diagnostics: DiagnosticLog,
    ) -> ParsedTicket:
        """Generative output gets the same date rules and cabin vocabulary as deterministic output."""
        out = ticket.model_copy(deep=True)
        out.carrier = (out.carrier or hint or "").upper()
        for seg in out.segments:
            seg.cabin = map_cabin(seg.cabin, out.carrier)
        base = extract_base_date(document_text(text, html))
        out.segments = infer_dates(out.segments, base_date=base, today=today, diagnostics=diagnostics)
        validate_dates(out.segments, diagnostics)
        return out

    # ---------------- failures ----------------

    @staticmethod
    def _failure(error: NoUsableInputError, diagnostics: DiagnosticLog, timing: Dict[str, float]) -> ParseOutcome:
        logger.event("parse_rejected", reason=error.reason, source=error.source)
        return ParseOutcome(
            success=False,
            diagnostics=diagnostics.entries,
            processing_time=timing,
            error=ExtractionError(
                user_message="We couldn't read any text from this document.",
                technical_reason=error.reason,
                suggestions=NO_INPUT_SUGGESTIONS,
            ),
        )
