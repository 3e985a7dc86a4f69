"""
Roast generation client.

Sends the prompt to an OpenAI-compatible chat endpoint (Gemini by default)
and pulls plain text out of whatever comes back. The response shape is not
trusted, so extraction walks an ordered list of shape matchers:

1. a direct `text` field
2. `response.text`, either a value or a zero-argument accessor
3. `candidates[0].content.parts[0].text`
4. `choices[0].message.content`

If nothing matches, or the call itself fails, the roast degrades to a fixed
fallback line instead of failing the request.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence, Tuple

from openai import OpenAI

from roaster.config import Settings

logger = logging.getLogger(__name__)

FALLBACK_ROAST = "Bhai, tere taste itna bekar hai ki AI bhi speechless ho gaya! 😂"

SYSTEM_PROMPT = "You are a savage, sarcastic desi music critic who roasts people's music taste for fun."


class Recognized:
    recognized = True

    def __init__(self, text: str, shape: str):
        self.text = text
        self.shape = shape

    def __repr__(self):
        return f"Recognized(shape={self.shape}, text={self.text[:40]!r})"


class Unrecognized:
    recognized = False

    def __init__(self, raw: Any):
        self.raw = raw

    def __repr__(self):
        return f"Unrecognized(raw={type(self.raw).__name__})"


class GenerationOutcome:
    """Final text for the roast and whether it is the fallback"""

    def __init__(self, text: str, degraded: bool = False, reason: Optional[str] = None):
        self.text = text
        self.degraded = degraded
        self.reason = reason

    def __repr__(self):
        return f"GenerationOutcome(degraded={self.degraded}, reason={self.reason})"


def _field(obj: Any, name: str) -> Any:
    """Read `name` as a mapping key or an attribute; None if absent."""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _first(seq: Any) -> Any:
    if isinstance(seq, (list, tuple)) and seq:
        return seq[0]
    return None


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def match_direct_text(response: Any) -> Optional[str]:
    return _as_text(_field(response, "text"))


def match_response_text(response: Any) -> Optional[str]:
    value = _field(_field(response, "response"), "text")
    if callable(value):
        value = value()
    return _as_text(value)


def match_candidate_parts(response: Any) -> Optional[str]:
    candidate = _first(_field(response, "candidates"))
    part = _first(_field(_field(candidate, "content"), "parts"))
    return _as_text(_field(part, "text"))


def match_chat_choice(response: Any) -> Optional[str]:
    choice = _first(_field(response, "choices"))
    return _as_text(_field(_field(choice, "message"), "content"))


ShapeMatcher = Callable[[Any], Optional[str]]

SHAPE_MATCHERS: List[Tuple[str, ShapeMatcher]] = [
    ("text", match_direct_text),
    ("response.text", match_response_text),
    ("candidates.content.parts", match_candidate_parts),
    ("choices.message.content", match_chat_choice),
]


def extract_text(response: Any, matchers: Sequence[Tuple[str, ShapeMatcher]] = SHAPE_MATCHERS):
    """
    Try each shape matcher in order.

    Returns:
        Recognized(text, shape) for the first matcher that yields non-blank
        text, otherwise Unrecognized(response)
    """
    for shape, matcher in matchers:
        try:
            text = matcher(response)
        except Exception as e:
            logger.debug(f"Shape matcher '{shape}' raised {e!r}")
            continue
        if text is not None:
            return Recognized(text, shape)
    return Unrecognized(response)


class GenerationClient:
    """Thin wrapper over the OpenAI SDK pointed at the configured endpoint"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gemini-2.5-flash",
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        client: Any = None,
    ) -> None:
        self.model = model
        self.client = client or OpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)

    @classmethod
    def from_settings(cls, settings: Settings) -> "GenerationClient":
        return cls(
            api_key=settings.generation_api_key,
            model=settings.generation_model,
            base_url=settings.generation_base_url,
            timeout=settings.generation_timeout_seconds,
        )

    def request(self, prompt: str) -> Any:
        return self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=0.9,
        )

    def generate(self, prompt: str) -> GenerationOutcome:
        """Never raises: failures become the fallback roast."""
        try:
            response = self.request(prompt)
        except Exception as e:
            logger.warning(f"Generation call failed, using fallback roast: {e}")
            return GenerationOutcome(FALLBACK_ROAST, degraded=True, reason=f"call failed: {e}")

        result = extract_text(response)
        if not result.recognized:
            logger.warning(f"Generation response had no recognizable text ({result!r}), using fallback roast")
            return GenerationOutcome(FALLBACK_ROAST, degraded=True, reason="unrecognized response shape")

        logger.info(f"Generated roast via '{result.shape}' ({len(result.text)} chars)")
        logger.debug(f"Roast text:\n{result.text}")
        return GenerationOutcome(result.text)
