"""
IntentExtractor — pulls a structured request out of a chat message.

One schema-constrained Gemini call per user turn. The model must answer
with `{"text": "..."}` (TextResponse). The text field carries either a
plain value ("2") or embedded JSON, depending on the action's template.

Every failure (no model, API error, schema mismatch, bad JSON, a value
the parser rejects) returns None. Callers treat None as "ask the player
to clarify". There are no automatic retries: the next attempt is the
player's next message.
"""

import json
import logging
import re
from typing import Any, Callable, Dict, Optional

from google import genai
from pydantic import ValidationError

from models.intents import PurchaseIntent, TextResponse
from tools.rate_limiter import gemini_limiter

logger = logging.getLogger('IntentExtractor')

EXTRACTOR_IDENTITY = """You extract structured data from messages sent to Luna, the Rising Revenant game advisor.
Follow the task instructions exactly. Answer with a JSON object of the form {"text": "..."} and nothing else."""

_NUMBER_RE = re.compile(r"-?\d+")


def strip_code_fences(text: str) -> str:
    text = text.strip()
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0].strip()
    elif "```" in text:
        text = text.split("```")[1].split("```")[0].strip()
    return text


def parse_count(text: str) -> PurchaseIntent:
    """Read a quantity. No number at all means 1; zero or negative is rejected."""
    cleaned = text.replace('"', "").replace("'", "").strip()
    match = _NUMBER_RE.search(cleaned)
    if not match:
        return PurchaseIntent(count=1)
    return PurchaseIntent(count=int(match.group()))


def parse_json_object(text: str) -> Dict[str, Any]:
    """Decode embedded JSON. Raises ValueError unless it is an object."""
    value = json.loads(strip_code_fences(text))
    if not isinstance(value, dict):
        raise ValueError(f"Expected a JSON object, got {type(value).__name__}")
    return value


class IntentExtractor:
    """Generic "extract structured field via constrained generation" capability."""

    def __init__(self, client, model_id: str = "gemini-2.0-flash"):
        self.client = client
        self.model_id = model_id

    async def generate_text(self, prompt: str) -> Optional[str]:
        """Run one constrained generation and return the validated text field."""
        if not self.client:
            logger.warning("No model client configured; cannot extract intent.")
            return None

        try:
            await gemini_limiter.acquire()
            response = await self.client.aio.models.generate_content(
                model=self.model_id,
                contents=prompt,
                config=genai.types.GenerateContentConfig(
                    system_instruction=EXTRACTOR_IDENTITY,
                    temperature=0.0,
                    response_mime_type="application/json",
                    response_schema=TextResponse,
                ),
            )
        except Exception as e:
            logger.error(f"Intent generation failed: {e}", exc_info=True)
            return None

        raw = (response.text or "").strip()
        try:
            return TextResponse.model_validate_json(strip_code_fences(raw)).text.strip()
        except ValidationError as e:
            logger.error(f"Invalid response content: {raw!r} ({e.error_count()} error(s))")
            return None

    async def extract(
        self,
        template: str,
        raw_text: str,
        parse: Optional[Callable[[str], Any]] = None,
    ) -> Optional[Any]:
        """Fill `template` with the message, generate, then `parse` the text field.

        Args:
            template: Prompt with a `{message}` placeholder (JSON braces doubled).
            raw_text: The player's chat message.
            parse: Turns the text field into an intent. Any conversion error it
                raises (ValueError, TypeError, KeyError, OverflowError) rejects
                the answer. Defaults to returning the text.
        """
        logger.info(f"Extracting intent from: {raw_text[:80]}")
        text = await self.generate_text(template.format(message=raw_text))
        if text is None:
            return None
        if parse is None:
            return text

        try:
            intent = parse(text)
        except (ValueError, TypeError, LookupError, ArithmeticError, ValidationError) as e:
            logger.error(f"Failed to parse extracted intent {text!r}: {e}")
            return None

        logger.info(f"Extracted intent: {intent!r}")
        return intent
