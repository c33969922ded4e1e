import logging
from typing import Optional

import openai
from openai import OpenAI

from livetrack.config import DEFAULT_OPENAI_MODEL
from livetrack.errors import BackendError, BackendNotConfigured
from livetrack.services.backends.base import TrackingBackend

logger = logging.getLogger(__name__)


class OpenAIBackend(TrackingBackend):
    """Secondary source: OpenAI chat completions. Paid, so only reached when the primary fails."""

    name = "openai"
    system_prompt = "You are a shipment tracking assistant. Provide accurate tracking data in JSON format."
    temperature = 0.3
    max_tokens = 1500

    def __init__(self, api_key: Optional[str], model: str = DEFAULT_OPENAI_MODEL, client: Optional[OpenAI] = None):
        super().__init__(api_key, model)
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            # One attempt per call; the pipeline owns the time budget.
            self._client = OpenAI(api_key=self.api_key, max_retries=0)
        return self._client

    def query(self, prompt, *, timeout, system_prompt=None, temperature=None, max_tokens=None, model=None):
        if not self.configured:
            raise BackendNotConfigured(self.name)

        logger.debug(f"[OPENAI] querying {model or self.model}")
        try:
            response = self.client.chat.completions.create(
                model=model or self.model,
                messages=[
                    {"role": "system", "content": system_prompt or self.system_prompt},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature if temperature is None else temperature,
                max_tokens=max_tokens or self.max_tokens,
                timeout=timeout,
            )
        except openai.APITimeoutError as e:
            raise BackendError(self.name, f"timed out after {timeout:.1f}s") from e
        except openai.APIStatusError as e:
            raise BackendError(self.name, f"API {e.status_code}") from e
        except openai.OpenAIError as e:
            raise BackendError(self.name, f"request failed: {e}") from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError) as e:
            raise BackendError(self.name, "no content in API response") from e

        if not content:
            raise BackendError(self.name, "no content in API response")
        return content
