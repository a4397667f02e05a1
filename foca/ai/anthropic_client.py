"""
Anthropic Client

Implementation of AIProvider for Anthropic's Messages API.
"""

from __future__ import annotations

import logging
from typing import Any

import anthropic

from .client import AIProvider
from .exceptions import ProviderHttpError, RateLimitError, UnconfiguredProviderError
from .models import AIResponse, token_count

logger = logging.getLogger(__name__)


class AnthropicProvider(AIProvider):
    """Anthropic Claude API client."""

    name = "anthropic"
    display_name = "Anthropic"
    default_base_url = "https://api.anthropic.com"
    default_model = "claude-3-sonnet-20240229"

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        # The SDK appends /v1/messages itself
        if self.base_url.endswith("/v1"):
            self.base_url = self.base_url[: -len("/v1")]
        self._client = None

    @property
    def client(self):
        """Lazy initialization of the Anthropic client."""
        if self._client is None:
            if not self.api_key:
                raise UnconfiguredProviderError("Anthropic API key is not configured.")
            self._client = anthropic.Anthropic(
                api_key=self.api_key,
                base_url=self.base_url,
                max_retries=0,
            )
        return self._client

    def _send(self, messages, model, max_tokens, temperature, timeout) -> AIResponse:
        """
        Call messages.create.

        System messages are folded into the ``system`` parameter because the
        Messages API only accepts user and assistant turns.

        Raises:
            RateLimitError: If rate limited by Anthropic
            ProviderHttpError: If Anthropic returns an error or times out
        """
        system_prompt = "\n\n".join(
            m["content"] for m in messages if m["role"] == "system"
        )
        turns = [m for m in messages if m["role"] != "system"]

        try:
            response = self.client.messages.create(
                model=model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system_prompt or anthropic.NOT_GIVEN,
                messages=turns,
                timeout=timeout,
            )
        except anthropic.RateLimitError as e:
            raise RateLimitError(
                f"Rate limited by Anthropic: {e}", provider=self.name, status_code=429
            ) from e
        except anthropic.APITimeoutError as e:
            raise ProviderHttpError(
                f"Anthropic API request timed out after {timeout}s", provider=self.name
            ) from e
        except anthropic.APIStatusError as e:
            raise ProviderHttpError(
                f"Anthropic API error: {e}", provider=self.name, status_code=e.status_code
            ) from e
        except UnconfiguredProviderError:
            raise
        except Exception as e:
            raise ProviderHttpError(
                f"Anthropic API error: {e}", provider=self.name
            ) from e

        # Extract text content from response
        content = "".join(
            block.text for block in response.content or [] if block.type == "text"
        )

        tokens_used = None
        if response.usage is not None:
            input_tokens = token_count(response.usage.input_tokens)
            output_tokens = token_count(response.usage.output_tokens)
            if input_tokens is not None and output_tokens is not None:
                tokens_used = input_tokens + output_tokens

        return AIResponse(
            content=content,
            metadata={
                "id": response.id,
                "stop_reason": response.stop_reason,
                "usage": {
                    "input": response.usage.input_tokens if response.usage else None,
                    "output": response.usage.output_tokens if response.usage else None,
                },
            },
            model=response.model or model,
            tokens_used=tokens_used,
        )
