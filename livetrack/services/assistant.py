import json
import logging
from typing import Optional, Sequence

from livetrack.errors import BackendError, BackendNotConfigured
from livetrack.services.backends.base import TrackingBackend

logger = logging.getLogger(__name__)

ASSISTANT_MODELS = ("sonar-pro", "sonar")
ASSISTANT_SYSTEM_PROMPT = (
    "You are a helpful package tracking assistant. Answer user questions about their "
    "package delivery based on the tracking data provided."
)


class TrackingAssistant:
    """Answers free-text questions about a shipment the user already looked up."""

    def __init__(self, backend: TrackingBackend, models: Sequence[str] = ASSISTANT_MODELS, timeout: float = 8.0):
        self.backend = backend
        self.models = tuple(models)
        self.timeout = timeout

    def answer(self, message: str, tracking_data: Optional[dict] = None) -> str:
        """
        Tries each model in turn and returns the first answer.

        Unlike tracking lookups there is no fallback here: if the backend is not
        configured or every model fails, the last BackendError is raised.
        """
        if not self.backend.configured:
            raise BackendNotConfigured(self.backend.name)

        prompt = f"Tracking Data: {json.dumps(tracking_data or {})}\n\nUser Question: {message}"
        last_error = None
        for model in self.models:
            try:
                return self.backend.query(
                    prompt,
                    timeout=self.timeout,
                    system_prompt=ASSISTANT_SYSTEM_PROMPT,
                    temperature=0.7,
                    max_tokens=500,
                    model=model,
                )
            except BackendError as e:
                logger.warning(f"[ASSISTANT] model {model} failed: {e.detail}")
                last_error = e

        raise last_error or BackendError(self.backend.name, "all models failed")
