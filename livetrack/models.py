from dataclasses import dataclass
from typing import Optional

UNKNOWN_CARRIER = "Unknown Carrier"
FALLBACK_SOURCE = "fallback"


@dataclass(frozen=True)
class CarrierMatch:
    """Accepted tracking number plus the carrier its shape points at."""
    tracking_number: str
    carrier_name: Optional[str]
    confidence: int
    matched: bool = True

    def to_dict(self):
        return {
            "trackingNumber": self.tracking_number,
            "carrierName": self.carrier_name,
            "confidence": self.confidence,
            "matched": self.matched,
        }


@dataclass(frozen=True)
class Rejection:
    """Input that does not plausibly resemble a tracking number."""
    reason: str
    hoax_detected: bool = True

    def to_dict(self):
        return {"reason": self.reason, "hoaxDetected": self.hoax_detected}
