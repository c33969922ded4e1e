import logging
import math
import re
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

import dateutil.parser

from livetrack.models import UNKNOWN_CARRIER, CarrierMatch
from livetrack.schemas import Checkpoint, Location, StatusCode, TrackingRecord

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 80
DEFAULT_STATUS_CODE = StatusCode.IN_TRANSIT
UNKNOWN_STATUS_LABEL = "Unknown Status"

STATUS_LABELS = {
    StatusCode.IN_TRANSIT: "In Transit",
    StatusCode.OUT_FOR_DELIVERY: "Out For Delivery",
    StatusCode.DELIVERED: "Delivered",
    StatusCode.PROCESSING: "Processing",
    StatusCode.EXCEPTION: "Exception",
    StatusCode.NOT_FOUND: "Courier Not Found",
}

# Codes seen from the upstreams, including raw FedEx/UPS scan codes they echo back.
CODE_ALIASES = {
    "IT": StatusCode.IN_TRANSIT,
    "PU": StatusCode.IN_TRANSIT,
    "DP": StatusCode.IN_TRANSIT,
    "AR": StatusCode.IN_TRANSIT,
    "I": StatusCode.IN_TRANSIT,
    "P": StatusCode.IN_TRANSIT,
    "OFD": StatusCode.OUT_FOR_DELIVERY,
    "OD": StatusCode.OUT_FOR_DELIVERY,
    "DL": StatusCode.DELIVERED,
    "D": StatusCode.DELIVERED,
    "PS": StatusCode.PROCESSING,
    "OC": StatusCode.PROCESSING,
    "M": StatusCode.PROCESSING,
    "EX": StatusCode.EXCEPTION,
    "HL": StatusCode.EXCEPTION,
    "SE": StatusCode.EXCEPTION,
    "DE": StatusCode.EXCEPTION,
    "X": StatusCode.EXCEPTION,
    "NF": StatusCode.NOT_FOUND,
}

# Checked in order; "out for delivery" must win over "delivered"-style matches.
STATUS_KEYWORDS = [
    (StatusCode.NOT_FOUND, re.compile(r"not found|no record|no information|invalid tracking", re.I)),
    (StatusCode.OUT_FOR_DELIVERY, re.compile(r"out for delivery|on vehicle for delivery|with courier", re.I)),
    (StatusCode.EXCEPTION, re.compile(r"exception|undeliver|not delivered|delay|held|hold|failed|attempt|returned|damaged|lost", re.I)),
    (StatusCode.DELIVERED, re.compile(r"\bdelivered\b", re.I)),
    (StatusCode.PROCESSING, re.compile(r"processing|label created|pre-?shipment|order (?:created|placed)|awaiting", re.I)),
    (StatusCode.IN_TRANSIT, re.compile(r"transit|departed|arrived|facility|hub|picked up|sorting|customs", re.I)),
]

DEFAULT_INSIGHTS = {
    StatusCode.IN_TRANSIT: "Package is progressing through the delivery network.",
    StatusCode.OUT_FOR_DELIVERY: "Package is on the vehicle for delivery today.",
    StatusCode.DELIVERED: "Package has been delivered.",
    StatusCode.PROCESSING: "Shipment information received. The carrier has not scanned the package yet.",
    StatusCode.EXCEPTION: "The carrier reported a delivery exception. Check with the carrier for next steps.",
    StatusCode.NOT_FOUND: "The carrier has not reported this tracking number yet. Try again later.",
}

_EPOCH_MS_THRESHOLD = 10 ** 12


def _first(raw: dict, *keys) -> Any:
    for key in keys:
        value = raw.get(key)
        if value not in (None, "", [], {}):
            return value
    return None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def infer_status_code(status_text: Optional[str]) -> Optional[StatusCode]:
    if not status_text:
        return None
    for code, pattern in STATUS_KEYWORDS:
        if pattern.search(status_text):
            return code
    return None


def resolve_status(raw: dict) -> Tuple[StatusCode, str]:
    """Returns (statusCode, display label) for an upstream payload."""
    raw_code = _text(_first(raw, "statusCode", "status_code", "code"))
    status_text = _text(raw.get("status"))

    if raw_code and raw_code.upper() in CODE_ALIASES:
        code = CODE_ALIASES[raw_code.upper()]
        return code, STATUS_LABELS[code]

    inferred = infer_status_code(status_text)
    if inferred is not None:
        return inferred, STATUS_LABELS[inferred]

    if raw_code:
        logger.debug(f"[NORMALIZE] unrecognized status code {raw_code!r}")
        return DEFAULT_STATUS_CODE, UNKNOWN_STATUS_LABEL

    return DEFAULT_STATUS_CODE, STATUS_LABELS[DEFAULT_STATUS_CODE]


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parses ISO strings, loose date strings and epoch numbers; naive values are taken as UTC."""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            seconds = value / 1000 if value > _EPOCH_MS_THRESHOLD else value
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        parsed = dateutil.parser.parse(str(value))
    except (ValueError, OverflowError, OSError):
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_location(value: Any) -> Location:
    if isinstance(value, Location):
        return value
    if isinstance(value, dict):
        return Location(
            city=_text(value.get("city")),
            state=_text(_first(value, "state", "stateOrProvinceCode", "region", "province")),
            country=_text(_first(value, "country", "countryCode", "countryName")),
            facility=_text(_first(value, "facility", "name", "hub")),
        )

    text = _text(value)
    if not text:
        return Location()

    parts = [p.strip() for p in text.split(",") if p.strip()]
    if len(parts) == 1:
        return Location(facility=parts[0])
    if len(parts) == 2:
        return Location(city=parts[0], country=parts[1])
    return Location(city=parts[0], state=parts[1], country=parts[-1])


def parse_confidence(value: Any, default: int = DEFAULT_CONFIDENCE) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        else:
            match = re.search(r"-?\d+(?:\.\d+)?", str(value), re.ASCII)
            if not match:
                return default
            number = float(match.group(0))
    except OverflowError:
        return default
    if not math.isfinite(number):
        return default
    # 0.9 style fractions; a literal 1 stays 1
    if 0 < number < 1:
        number *= 100
    return int(round(min(max(number, 0.0), 100.0)))


def _location_text(value: Any) -> str:
    if isinstance(value, dict):
        return parse_location(value).label()
    return _text(value) or ""


def normalize_checkpoints(raw_checkpoints: Any) -> List[Checkpoint]:
    """Keeps entries with a usable timestamp, newest first, index 0 flagged current."""
    if not isinstance(raw_checkpoints, list):
        return []

    dated = []
    for entry in raw_checkpoints:
        if not isinstance(entry, dict):
            continue
        ts = parse_timestamp(_first(entry, "timestamp", "date", "time", "datetime"))
        if ts is None:
            logger.debug(f"[NORMALIZE] dropping checkpoint without timestamp: {entry!r}")
            continue
        dated.append((ts, entry))

    dated.sort(key=lambda pair: pair[0], reverse=True)

    checkpoints = []
    for index, (ts, entry) in enumerate(dated):
        checkpoints.append(Checkpoint(
            timestamp=ts.isoformat(),
            status=_text(_first(entry, "status", "event", "title")) or "Update",
            location=_location_text(entry.get("location")),
            description=_text(_first(entry, "description", "details", "message")) or "",
            is_current=index == 0,
        ))
    return checkpoints


def normalize(raw: dict, hint: CarrierMatch, source: str, now: Optional[datetime] = None) -> TrackingRecord:
    """
    Builds the canonical TrackingRecord from whatever an upstream returned.

    Every field is filled from the raw payload when present, otherwise from a
    fixed default, so callers always see the same shape.
    """
    raw = raw if isinstance(raw, dict) else {}
    now = now or datetime.now(timezone.utc)

    status_code, status_label = resolve_status(raw)
    carrier = _text(raw.get("carrier")) or hint.carrier_name or UNKNOWN_CARRIER

    checkpoints = normalize_checkpoints(_first(raw, "checkpoints", "events", "history"))

    raw_location = raw.get("location")
    if raw_location in (None, "", {}) and checkpoints:
        raw_location = checkpoints[0].location
    location = parse_location(raw_location)

    if not checkpoints:
        checkpoints = [Checkpoint(
            timestamp=now.isoformat(),
            status=status_label,
            location=location.label() or "Processing Center",
            description="Latest status reported for this shipment",
            is_current=True,
        )]

    estimated_delivery = _text(_first(raw, "estimatedDelivery", "estimated_delivery", "eta"))
    if status_code == StatusCode.DELIVERED:
        estimated_delivery = None

    return TrackingRecord(
        tracking_number=hint.tracking_number,
        carrier=carrier,
        status=status_label,
        status_code=status_code,
        location=location,
        estimated_delivery=estimated_delivery,
        confidence=parse_confidence(raw.get("confidence")),
        checkpoints=checkpoints,
        source=source,
        ai_insight=_text(_first(raw, "aiInsight", "ai_insight", "insight")) or DEFAULT_INSIGHTS[status_code],
    )
