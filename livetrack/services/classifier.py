import re
from typing import Union

from livetrack.models import CarrierMatch, Rejection

MIN_LENGTH = 5
CARRIER_CONFIDENCE = 95
GENERIC_CONFIDENCE = 70

REASON_TOO_SHORT = "Tracking number too short"
REASON_NO_ALNUM = "Invalid format"
REASON_UNRECOGNIZED = "Invalid tracking format"

# Order matters: the digit-length ranges overlap (DHL vs Blue Dart vs Amazon),
# the first rule that matches decides the carrier.
CARRIER_PATTERNS = [
    ("UPS", re.compile(r'^1Z[A-Z0-9]{16}$', re.ASCII)),
    ("FedEx", re.compile(r'^\d{12,14}$', re.ASCII)),
    ("USPS", re.compile(r'^\d{20,22}$', re.ASCII)),
    ("DHL", re.compile(r'^\d{10,11}$', re.ASCII)),
    ("Blue Dart", re.compile(r'^\d{10,12}$', re.ASCII)),
    ("Amazon", re.compile(r'^TBA\d{12}$|^\d{12,20}$', re.ASCII)),
    ("India Post", re.compile(r'^[A-Z]{2}\d{9}[A-Z]{2}$', re.ASCII)),
    ("China Post", re.compile(r'^[A-Z]{2}\d{9}[A-Z]{2}$', re.ASCII)),
]

HAS_ALNUM = re.compile(r'[A-Z0-9]')
GENERIC_ID = re.compile(r'^[A-Z0-9]{8,}$')


def clean_tracking_number(raw: str) -> str:
    return (raw or "").strip().upper()


def classify(raw: str) -> Union[CarrierMatch, Rejection]:
    """
    Decides whether `raw` looks like a tracking number and which carrier issued it.

    Deliberately permissive: any alphanumeric string of 8+ characters is
    accepted with a lower confidence and no carrier name, because regional
    formats are too varied to enumerate.
    """
    cleaned = clean_tracking_number(raw)

    if len(cleaned) < MIN_LENGTH:
        return Rejection(reason=REASON_TOO_SHORT)

    if not HAS_ALNUM.search(cleaned):
        return Rejection(reason=REASON_NO_ALNUM)

    for carrier, pattern in CARRIER_PATTERNS:
        if pattern.match(cleaned):
            return CarrierMatch(
                tracking_number=cleaned,
                carrier_name=carrier,
                confidence=CARRIER_CONFIDENCE,
            )

    if GENERIC_ID.match(cleaned):
        return CarrierMatch(
            tracking_number=cleaned,
            carrier_name=None,
            confidence=GENERIC_CONFIDENCE,
        )

    return Rejection(reason=REASON_UNRECOGNIZED)
