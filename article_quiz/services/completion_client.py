import logging
from typing import Any

import httpx

from ..domain.errors import GenerationNetworkError, InvalidResponseError

logger = logging.getLogger(__name__)


class CompletionClient:
    """
    Client for an OpenAI-compatible chat completion endpoint.

    Only the transport is handled here: timeouts, connection errors and
    non-success statuses become GenerationNetworkError, and a body that is
    not JSON becomes InvalidResponseError. The returned body is not
    inspected further.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        temperature: float = 0.3,
        max_tokens: int = 1500,
        timeout: float = 30.0,
    ) -> None:
        self.http = http
        self.api_key = api_key
        self.endpoint = f"{base_url.rstrip('/')}/chat/completions"
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    def build_request(self, system_instruction: str, user_prompt: str) -> dict:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "response_format": {"type": "json_object"},
        }

    async def complete(self, system_instruction: str, user_prompt: str) -> Any:
        payload = self.build_request(system_instruction, user_prompt)
        try:
            resp = await self.http.post(
                self.endpoint,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except httpx.TimeoutException as exc:
            logger.error("Completion request timed out after %.1fs", self.timeout)
            raise GenerationNetworkError(f"completion request timed out after {self.timeout}s") from exc
        except httpx.HTTPError as exc:
            logger.error("Completion request failed: %s", exc)
            raise GenerationNetworkError(f"completion request failed: {exc}") from exc

        if not resp.is_success:
            logger.error("Completion endpoint returned HTTP %d", resp.status_code)
            raise GenerationNetworkError(f"completion endpoint returned HTTP {resp.status_code}")

        try:
            return resp.json()
        except ValueError as exc:
            raise InvalidResponseError("completion response body is not JSON") from exc
