import logging
from abc import ABC, abstractmethod
from typing import Optional

from livetrack.errors import BackendNotConfigured, ResponseParseError
from livetrack.services.extraction import parse_tracking_payload

logger = logging.getLogger(__name__)

RESPONSE_TEMPLATE = """{
  "carrier": "actual carrier name",
  "status": "current status",
  "statusCode": "IT | OFD | DL | PS | EX | NF",
  "location": "city, state, country",
  "estimatedDelivery": "YYYY-MM-DD",
  "confidence": 90,
  "checkpoints": [{"timestamp": "ISO timestamp", "status": "status", "location": "location", "description": "details"}],
  "aiInsight": "brief delivery analysis"
}"""


class TrackingBackend(ABC):
    """
    One upstream text generator that can be asked about a shipment.

    Subclasses only implement `query`; prompt construction and the defensive
    JSON extraction are shared so every upstream is held to the same contract.
    """

    name: str = "backend"
    system_prompt: str = "You are a shipment tracking assistant. Return ONLY valid JSON."
    temperature: float = 0.2
    max_tokens: int = 1500
    search_instruction: str = ""

    def __init__(self, api_key: Optional[str], model: str):
        self.api_key = api_key
        self.model = model

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @abstractmethod
    def query(
        self,
        prompt: str,
        *,
        timeout: float,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> str:
        """Sends one prompt upstream and returns the raw completion text."""

    def build_prompt(self, tracking_number: str, carrier_hint: Optional[str]) -> str:
        hint = f" ({carrier_hint})" if carrier_hint else ""
        return (
            f"Track shipment {tracking_number}{hint}.{self.search_instruction}\n\n"
            f"Return ONLY this JSON:\n{RESPONSE_TEMPLATE}"
        )

    def lookup(self, tracking_number: str, carrier_hint: Optional[str], timeout: float) -> dict:
        if not self.configured:
            raise BackendNotConfigured(self.name)

        raw_text = self.query(self.build_prompt(tracking_number, carrier_hint), timeout=timeout)
        try:
            return parse_tracking_payload(raw_text)
        except ResponseParseError as e:
            raise ResponseParseError(e.detail, backend=self.name) from e

    def __repr__(self):
        return f"<{type(self).__name__} model={self.model!r} configured={self.configured}>"
