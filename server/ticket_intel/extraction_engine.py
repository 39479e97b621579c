# extraction_engine.py
import asyncio
import json
import re
from typing import Any, Dict, List, Optional, Tuple

import google.generativeai as genai
from pydantic import ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .config import MAX_TOKENS, MODEL_BURST, MODEL_CHEAP, PRICING, TIMEOUT
from .errors import GenerativeExtractionError
from .logging_utils import get_logger
from .models import GenerativeResult, LLMUsage, ParsedTicket, Passenger, RawInput
from .prompts import (
    ENHANCEMENT_SYSTEM_PROMPT,
    build_enhancement_prompt,
    build_extraction_prompt,
    build_system_prompt,
)
from .text_extraction import strip_html_for_llm

logger = get_logger("extraction_engine")

JSON_PATTERNS = (
    r"```json\s*([\s\S]*?)\s*```",
    r"```\s*([\s\S]*?)\s*```",
    r"(\{[\s\S]*\})",
)

ENHANCEMENT_MAX_TOKENS = 1000


def is_valid_extraction(ticket: Optional[ParsedTicket]) -> bool:
    """A result worth keeping without escalating to the burst model."""
    if ticket is None:
        return False
    if not ticket.airline_locator or not ticket.passengers or not ticket.segments:
        return False
    return all(len(seg.marketing_flight_no) > 2 for seg in ticket.segments)


def parse_json(content: Optional[str]) -> Dict[str, Any]:
    if not content:
        raise GenerativeExtractionError("empty model response")
    try:
        data = json.loads(content)
        if isinstance(data, dict):
            return data
    except json.JSONDecodeError:
        pass

    for pat in JSON_PATTERNS:
        for match in re.findall(pat, content):
            cleaned = match.strip()
            if cleaned.startswith("json"):
                cleaned = cleaned[4:].strip()
            try:
                data = json.loads(cleaned)
            except json.JSONDecodeError:
                continue
            if isinstance(data, dict):
                return data
    raise GenerativeExtractionError("model response is not a JSON object")


def cost_for(model: str, tokens_in: int, tokens_out: int) -> float:
    price_in, price_out = PRICING.get(model, (0.0, 0.0))
    return round((tokens_in * price_in + tokens_out * price_out) / 1_000_000, 6)


class GeminiExtractor:
    """
    Generative extraction over Gemini with two model tiers.

    The cheap model runs first; the burst model only sees the document when
    the cheap result fails ``is_valid_extraction``. Every call is bounded by
    ``timeout`` and retried by tenacity; whatever still fails surfaces as
    ``GenerativeExtractionError`` so the caller can fall back.
    """

    def __init__(
        self,
        model_cheap: str = MODEL_CHEAP,
        model_burst: str = MODEL_BURST,
        timeout: float = TIMEOUT,
        max_tokens: int = MAX_TOKENS,
    ) -> None:
        self.model_cheap = model_cheap
        self.model_burst = model_burst
        self.timeout = timeout
        self.max_tokens = max_tokens

    # ---------------- public ----------------

    async def extract(
        self,
        text: Optional[str],
        html: Optional[str] = None,
        prior_result: Optional[ParsedTicket] = None,
        carrier_hint: Optional[str] = None,
    ) -> GenerativeResult:
        if not (text and text.strip()) and not (html and html.strip()):
            raise GenerativeExtractionError("nothing to extract from")

        system = build_system_prompt(carrier_hint)
        prompt = build_extraction_prompt(
            text,
            strip_html_for_llm(html) if html else None,
            prior_result,
        )

        logger.start_timer("generative_cheap")
        ticket, usage = await self._extract_with(self.model_cheap, system, prompt, text, html)
        logger.event(
            "generative_attempt",
            model=self.model_cheap,
            valid=is_valid_extraction(ticket),
            duration_ms=round(logger.end_timer("generative_cheap") * 1000, 1),
        )
        if is_valid_extraction(ticket):
            return GenerativeResult(result=ticket, usage=usage)

        logger.start_timer("generative_burst")
        burst_ticket, burst_usage = await self._extract_with(self.model_burst, system, prompt, text, html)
        logger.event(
            "generative_attempt",
            model=self.model_burst,
            valid=is_valid_extraction(burst_ticket),
            duration_ms=round(logger.end_timer("generative_burst") * 1000, 1),
        )
        combined = LLMUsage(
            model="cheap + burst",
            tokens_in=usage.tokens_in + burst_usage.tokens_in,
            tokens_out=usage.tokens_out + burst_usage.tokens_out,
            cost=round(usage.cost + burst_usage.cost, 6),
            purpose="extraction",
            retry_used=True,
        )
        return GenerativeResult(result=burst_ticket, usage=combined)

    async def enhance(
        self,
        ticket: ParsedTicket,
        text: Optional[str],
        fields: List[str],
    ) -> Tuple[ParsedTicket, LLMUsage]:
        """Ask the cheap model for named missing fields only; segments are never touched."""
        prompt = build_enhancement_prompt(ticket, text or "", fields)
        response = await self._generate(
            self.model_cheap, ENHANCEMENT_SYSTEM_PROMPT, prompt, ENHANCEMENT_MAX_TOKENS
        )
        usage = self._usage(response, self.model_cheap, "enhancement")
        data = parse_json(_response_text(response))

        out = ticket.model_copy(deep=True)
        filled = []
        locator = data.get("airlineLocator") or data.get("airline_locator")
        if "airline_locator" in fields and not out.airline_locator and isinstance(locator, str) and locator.strip():
            out.airline_locator = locator.strip().upper()
            filled.append("airline_locator")
        if "passengers" in fields and not out.passengers and isinstance(data.get("passengers"), list):
            out.passengers = _passengers(data["passengers"])
            if out.passengers:
                filled.append("passengers")
        baggage = data.get("baggage")
        if "baggage" in fields and not out.baggage and isinstance(baggage, str) and baggage.strip():
            out.baggage = baggage.strip()
            filled.append("baggage")

        logger.event("generative_enhancement", requested=fields, filled=filled, model=usage.model)
        return out, usage

    # ---------------- Gemini calls ----------------

    async def _extract_with(
        self,
        model_name: str,
        system: str,
        prompt: str,
        text: Optional[str],
        html: Optional[str],
    ) -> Tuple[ParsedTicket, LLMUsage]:
        response = await self._generate(model_name, system, prompt, self.max_tokens)
        usage = self._usage(response, model_name, "extraction")
        data = parse_json(_response_text(response))
        data.pop("raw", None)
        try:
            ticket = ParsedTicket.model_validate(data)
        except ValidationError as e:
            raise GenerativeExtractionError(f"response does not match the ticket schema: {e}", model_name) from e
        ticket.raw = RawInput(text=text, html=html)
        return ticket, usage

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=4, max=10),
        retry=retry_if_exception_type(Exception),
        reraise=True,
    )
    async def _generate(self, model_name: str, system: str, prompt: str, max_tokens: int):
        logger.info(f"Gemini call (model={model_name})")
        model = genai.GenerativeModel(model_name, system_instruction=system)
        try:
            return await asyncio.wait_for(
                model.generate_content_async(
                    prompt,
                    generation_config=genai.types.GenerationConfig(
                        temperature=0.1,
                        max_output_tokens=max_tokens,
                        response_mime_type="application/json",
                    ),
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise GenerativeExtractionError(f"{model_name} timed out after {self.timeout}s", model_name) from e

    @staticmethod
    def _usage(response, model: str, purpose: str) -> LLMUsage:
        tokens_in = tokens_out = 0
        meta = getattr(response, "usage_metadata", None)
        if meta is not None:
            tokens_in = meta.prompt_token_count or 0
            tokens_out = meta.candidates_token_count or 0
        return LLMUsage(
            model=model,
            tokens_in=tokens_in,
            tokens_out=tokens_out,
            cost=cost_for(model, tokens_in, tokens_out),
            purpose=purpose,
        )


def _response_text(response) -> Optional[str]:
    try:
        return response.text
    except ValueError as e:
        # blocked or empty candidates
        raise GenerativeExtractionError(f"model returned no text: {e}") from e


def _passengers(raw: List[Any]) -> List[Passenger]:
    out = []
    for item in raw:
        if isinstance(item, str):
            item = {"fullName": item}
        if not isinstance(item, dict):
            continue
        try:
            out.append(Passenger.model_validate(item))
        except ValidationError:
            continue
    return out
