from functools import lru_cache

from livetrack.config import get_settings
from livetrack.services.assistant import TrackingAssistant
from livetrack.services.backends.perplexity import PerplexityBackend
from livetrack.services.pipeline import ResolutionPipeline


@lru_cache(maxsize=1)
def get_pipeline() -> ResolutionPipeline:
    return ResolutionPipeline.from_settings(get_settings())


@lru_cache(maxsize=1)
def get_assistant() -> TrackingAssistant:
    settings = get_settings()
    backend = PerplexityBackend(
        api_key=settings.perplexity_api_key,
        model=settings.perplexity_model,
        base_url=settings.perplexity_base_url,
    )
    return TrackingAssistant(backend, timeout=settings.backend_timeout)
