"""
Cerebras Client

Implementation of AIProvider for the OpenAI-compatible Cerebras API.
"""

from __future__ import annotations

import logging

import requests

from .client import AIProvider
from .exceptions import ProviderHttpError, RateLimitError
from .models import AIResponse, token_count

logger = logging.getLogger(__name__)


class CerebrasProvider(AIProvider):
    """Cerebras inference API client over plain HTTP."""

    name = "cerebrus"
    display_name = "Cerebras"
    default_base_url = "https://api.cerebras.ai/v1"
    default_model = "llama-4-scout-17b-16e-instruct"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _send(self, messages, model, max_tokens, temperature, timeout) -> AIResponse:
        """
        POST to /chat/completions.

        Raises:
            RateLimitError: On HTTP 429
            ProviderHttpError: On timeouts, transport errors and non-2xx replies
        """
        payload = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        try:
            resp = requests.post(
                f"{self.base_url}/chat/completions",
                headers=self._headers(),
                json=payload,
                timeout=timeout,
            )
        except requests.Timeout as e:
            raise ProviderHttpError(
                f"Cerebras API request timed out after {timeout}s", provider=self.name
            ) from e
        except requests.RequestException as e:
            raise ProviderHttpError(
                f"Cerebras API request failed: {e}", provider=self.name
            ) from e

        if resp.status_code == 429:
            raise RateLimitError(
                "Rate limited by Cerebras", provider=self.name, status_code=429
            )
        if not resp.ok:
            raise ProviderHttpError(
                f"Cerebras API request failed ({resp.status_code}): {resp.text[:500]}",
                provider=self.name,
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise ProviderHttpError(
                "Cerebras API returned a non-JSON body",
                provider=self.name,
                status_code=resp.status_code,
            ) from e

        if not isinstance(data, dict):
            raise self._unexpected_body(resp)

        choices = data.get("choices") or [{}]
        if not isinstance(choices, list) or not isinstance(choices[0], dict):
            raise self._unexpected_body(resp)
        message = choices[0].get("message") or {}
        if not isinstance(message, dict):
            raise self._unexpected_body(resp)
        content = message.get("content") or ""
        if not isinstance(content, str):
            raise self._unexpected_body(resp)

        usage = data.get("usage")
        model = data.get("model")

        return AIResponse(
            content=content,
            metadata=data,
            model=model if isinstance(model, str) else None,
            tokens_used=token_count(usage.get("total_tokens"))
            if isinstance(usage, dict)
            else None,
        )

    def _unexpected_body(self, resp: requests.Response) -> ProviderHttpError:
        return ProviderHttpError(
            "Cerebras API returned an unexpected body",
            provider=self.name,
            status_code=resp.status_code,
        )
