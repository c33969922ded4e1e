"""
Best-effort extraction of a tracking payload from free-form model output.

Text generators wrap their JSON in prose, markdown fences or trailing
commentary. Everything between the first "{" and the last "}" is taken as
the candidate object; anything that fails to parse from there is a
ResponseParseError, which the pipeline treats as a failed backend.
"""

import json
from typing import Optional

from livetrack.errors import ResponseParseError

SIGNAL_FIELDS = ("carrier", "status")


def extract_json_object(text: Optional[str]) -> dict:
    if not text or not text.strip():
        raise ResponseParseError("empty response")

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise ResponseParseError("no JSON object found in response")

    candidate = text[start:end + 1]
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"malformed JSON ({e.msg} at char {e.pos})") from e

    if not isinstance(parsed, dict):
        raise ResponseParseError("top-level JSON value is not an object")
    return parsed


def has_tracking_signal(payload: dict) -> bool:
    return any(payload.get(field) not in (None, "") for field in SIGNAL_FIELDS)


def parse_tracking_payload(text: Optional[str]) -> dict:
    """Extracts the object and requires at least a carrier or status field."""
    payload = extract_json_object(text)
    if not has_tracking_signal(payload):
        raise ResponseParseError("response has neither carrier nor status")
    return payload
