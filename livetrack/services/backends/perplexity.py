import logging
from typing import Optional

import requests

from livetrack.config import DEFAULT_PERPLEXITY_BASE_URL, DEFAULT_PERPLEXITY_MODEL
from livetrack.errors import BackendError, BackendNotConfigured
from livetrack.services.backends.base import TrackingBackend

logger = logging.getLogger(__name__)


class PerplexityBackend(TrackingBackend):
    """Primary source: Perplexity Sonar, which searches carrier sites before answering."""

    name = "perplexity"
    system_prompt = (
        "You are a shipment tracking expert. Search the web for REAL tracking data "
        "from carrier websites. Return ONLY valid JSON."
    )
    temperature = 0.2
    max_tokens = 2000
    search_instruction = " Search carrier websites for real data."

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_PERPLEXITY_MODEL,
        base_url: str = DEFAULT_PERPLEXITY_BASE_URL,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(api_key, model)
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def query(self, prompt, *, timeout, system_prompt=None, temperature=None, max_tokens=None, model=None):
        if not self.configured:
            raise BackendNotConfigured(self.name)

        logger.debug(f"[PERPLEXITY] querying {model or self.model}")
        url = f"{self.base_url}/chat/completions"
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        payload = {
            "model": model or self.model,
            "messages": [
                {"role": "system", "content": system_prompt or self.system_prompt},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.max_tokens,
        }

        try:
            response = self.session.post(url, json=payload, headers=headers, timeout=timeout)
        except requests.Timeout as e:
            raise BackendError(self.name, f"timed out after {timeout:.1f}s") from e
        except requests.RequestException as e:
            raise BackendError(self.name, f"request failed: {e}") from e

        if response.status_code != 200:
            raise BackendError(self.name, f"API {response.status_code}: {response.text[:200]}")

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise BackendError(self.name, "no content in API response") from e

        if not content:
            raise BackendError(self.name, "no content in API response")
        return content
