import logging
import threading
import time
from datetime import datetime
from typing import Callable, Optional, Sequence

from livetrack.config import Settings
from livetrack.errors import BackendError
from livetrack.models import FALLBACK_SOURCE, CarrierMatch
from livetrack.schemas import TrackingRecord
from livetrack.services.backends.base import TrackingBackend
from livetrack.services.backends.openai_backend import OpenAIBackend
from livetrack.services.backends.perplexity import PerplexityBackend
from livetrack.services.fallback import generate_fallback
from livetrack.services.normalizer import normalize

logger = logging.getLogger(__name__)

# Below this much remaining budget a backend call is not worth starting.
MIN_CALL_SECONDS = 0.5


class Deadline:
    """Wall-clock budget for one resolution."""

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._expires_at = clock() + seconds

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock())

    def expired(self) -> bool:
        return self.remaining() <= 0


class ResolutionPipeline:
    """
    Tries each configured backend in priority order and returns the first usable
    answer, normalized. Backends are called one at a time: the cheaper primary
    goes first so the paid secondary is only spent when needed.

    `resolve` never raises. When every backend fails, or none is configured,
    the synthetic fallback answers instead.
    """

    def __init__(
        self,
        backends: Sequence[TrackingBackend],
        backend_timeout: float = 8.0,
        request_deadline: float = 20.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.backends = tuple(backends)
        self.backend_timeout = backend_timeout
        self.request_deadline = request_deadline
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "ResolutionPipeline":
        backends = [
            PerplexityBackend(
                api_key=settings.perplexity_api_key,
                model=settings.perplexity_model,
                base_url=settings.perplexity_base_url,
            ),
            OpenAIBackend(api_key=settings.openai_api_key, model=settings.openai_model),
        ]
        return cls(
            backends,
            backend_timeout=settings.backend_timeout,
            request_deadline=settings.request_deadline,
        )

    @property
    def configured_backends(self):
        return [b for b in self.backends if b.configured]

    def fetch(
        self,
        hint: CarrierMatch,
        deadline: Deadline,
        now: Optional[datetime] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Optional[TrackingRecord]:
        """
        First backend answer that survives extraction and normalization, or None.

        A payload that cannot be normalized counts as a failed backend. `cancel`
        is checked before each call; a call already in flight runs to its own
        timeout.
        """
        tracking_number = hint.tracking_number
        for backend in self.configured_backends:
            if cancel is not None and cancel.is_set():
                logger.info(f"[PIPELINE] lookup for {tracking_number} cancelled, skipping {backend.name} and remaining backends")
                break

            budget = min(self.backend_timeout, deadline.remaining())
            if budget < MIN_CALL_SECONDS:
                logger.warning(f"[PIPELINE] deadline spent, skipping {backend.name} and remaining backends")
                break

            try:
                payload = backend.lookup(tracking_number, hint.carrier_name, timeout=budget)
                record = normalize(payload, hint, backend.name, now=now)
            except BackendError as e:
                logger.warning(f"[PIPELINE] {e.backend} failed for {tracking_number}: {e.detail}")
                continue
            except Exception:
                logger.exception(f"[PIPELINE] {backend.name} answer unusable for {tracking_number}")
                continue

            logger.info(f"[PIPELINE] {backend.name} answered for {tracking_number}")
            return record

        return None

    def resolve(
        self,
        tracking_number: str,
        carrier_hint: Optional[str] = None,
        match: Optional[CarrierMatch] = None,
        deadline: Optional[Deadline] = None,
        now: Optional[datetime] = None,
        cancel: Optional[threading.Event] = None,
    ) -> TrackingRecord:
        hint = match or CarrierMatch(tracking_number=tracking_number, carrier_name=carrier_hint, confidence=0)
        deadline = deadline or Deadline(self.request_deadline, clock=self._clock)

        record = self.fetch(hint, deadline, now=now, cancel=cancel)
        if record is not None:
            return record

        if not self.configured_backends:
            logger.info(f"[PIPELINE] no backends configured, using fallback for {hint.tracking_number}")
        elif cancel is not None and cancel.is_set():
            logger.info(f"[PIPELINE] lookup cancelled, using fallback for {hint.tracking_number}")
        else:
            logger.warning(f"[PIPELINE] all backends failed for {hint.tracking_number}, using fallback")

        raw = generate_fallback(hint.tracking_number, hint.carrier_name, now=now)
        return normalize(raw, hint, FALLBACK_SOURCE, now=now)
