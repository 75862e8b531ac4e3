"""
Landing page payload extraction.

The model is instructed to start a generation reply with the sentinel
``LANDING_PAGE_DATA:`` followed by a JSON object and then free prose for the
user. This module splits such a reply into the text to display and the
structured payload. It never raises: anything undecodable degrades to
"no structured update, show the text".
"""
import json
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from pydantic import ValidationError

from landing_engine.logging_config import logger
from landing_engine.models import ContentModel

SENTINEL = "LANDING_PAGE_DATA:"


@dataclass(frozen=True)
class ValidPayload:
    content: ContentModel


@dataclass(frozen=True)
class InvalidPayload:
    reason: str


ParsedPayload = Union[ValidPayload, InvalidPayload]


@dataclass(frozen=True)
class Extraction:
    """Result of splitting one completion"""
    display_text: str
    payload: Optional[ParsedPayload] = None

    @property
    def content(self) -> Optional[ContentModel]:
        if isinstance(self.payload, ValidPayload):
            return self.payload.content
        return None


def find_json_object(text: str) -> Optional[Tuple[int, int]]:
    """
    Locate the first top-level JSON object in ``text``.

    Scans character by character tracking brace depth, skipping braces that
    appear inside JSON string literals. Returns the ``(start, end)`` slice
    bounds of the object, or None when no object closes.
    """
    start = None
    depth = 0
    in_string = False
    escape = False

    for i, ch in enumerate(text):
        if start is None:
            if ch == "{":
                start = i
                depth = 1
            continue

        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return start, i + 1

    return None


def parse_payload(candidate: str) -> ParsedPayload:
    """Decode and validate one JSON object as landing page content"""
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        return InvalidPayload(f"malformed JSON: {e.msg} at position {e.pos}")

    if not isinstance(data, dict):
        return InvalidPayload("payload is not a JSON object")

    try:
        return ValidPayload(ContentModel.model_validate(data))
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        return InvalidPayload(f"payload does not match landing page shape: {fields}")


def extract(raw: str) -> Extraction:
    """
    Split a raw completion into display text and an optional payload.

    - No sentinel: the raw text is returned untouched, payload absent.
    - Sentinel with a valid object: payload is ``ValidPayload`` and the display
      text is the prose following the object, trimmed.
    - Sentinel with anything else: payload is ``InvalidPayload`` and the
      display text is everything after the sentinel, trimmed.
    """
    marker = raw.find(SENTINEL)
    if marker == -1:
        return Extraction(display_text=raw)

    suffix = raw[marker + len(SENTINEL):]

    bounds = find_json_object(suffix)
    if bounds is None:
        reason = "no complete JSON object after sentinel"
        logger.warning("Landing page payload rejected", reason=reason)
        return Extraction(display_text=suffix.strip(), payload=InvalidPayload(reason))

    start, end = bounds
    payload = parse_payload(suffix[start:end])

    if isinstance(payload, InvalidPayload):
        logger.warning(
            "Landing page payload rejected",
            reason=payload.reason,
            payload_head=suffix[start:start + 200]
        )
        return Extraction(display_text=suffix.strip(), payload=payload)

    logger.info(
        "Landing page payload extracted",
        company_name=payload.content.company_name,
        theme=payload.content.theme.value,
        features=len(payload.content.features)
    )
    return Extraction(display_text=_strip_closing_fence(suffix[end:]), payload=payload)


def _strip_closing_fence(text: str) -> str:
    """Drop the closing ``` left behind when the object was fenced"""
    text = text.strip()
    if text.startswith("```"):
        text = text[3:]
    return text.strip()
