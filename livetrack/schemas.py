# schemas.py
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StatusCode(str, Enum):
    IN_TRANSIT = "IT"
    OUT_FOR_DELIVERY = "OFD"
    DELIVERED = "DL"
    PROCESSING = "PS"
    EXCEPTION = "EX"
    NOT_FOUND = "NF"


class Location(CamelModel):
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    facility: Optional[str] = None

    def label(self) -> str:
        parts = [p for p in (self.city, self.state, self.country) if p]
        return ", ".join(parts) if parts else (self.facility or "")


class Checkpoint(CamelModel):
    timestamp: str
    status: str
    location: str = ""
    description: str = ""
    is_current: bool = False


class TrackingRecord(CamelModel):
    tracking_number: str
    carrier: str
    status: str
    status_code: StatusCode
    location: Location
    estimated_delivery: Optional[str] = None
    confidence: int = Field(..., ge=0, le=100)
    checkpoints: List[Checkpoint]
    source: str
    ai_insight: Optional[str] = None


class TrackResponse(CamelModel):
    success: bool = True
    data: TrackingRecord
    timestamp: str


class ErrorResponse(CamelModel):
    success: bool = False
    error: str
    reason: Optional[str] = None
    hoax_detected: Optional[bool] = None


class AssistantResponse(CamelModel):
    success: bool = True
    response: str
    timestamp: str


class Offer(CamelModel):
    offer_id: str
    title: str
    description: str
    url: str
    cta: str


class OffersResponse(CamelModel):
    status_code: str
    offers: List[Offer]
