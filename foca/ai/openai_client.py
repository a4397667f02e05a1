"""
OpenAI Client

Implementation of AIProvider for OpenAI's API, including the usage and
billing endpoints used by the usage dashboard.
"""

from __future__ import annotations

import logging
from typing import Any

import openai
import requests
from openai import OpenAI as OpenAISDK

from foca.time_utils import start_of_month, utcnow

from .client import AIProvider
from .exceptions import ProviderHttpError, RateLimitError, UnconfiguredProviderError
from .models import AIResponse, token_count

logger = logging.getLogger(__name__)

USAGE_TIMEOUT = 10


class OpenAIProvider(AIProvider):
    """OpenAI API client (also works with OpenAI-compatible base URLs)."""

    name = "openai"
    display_name = "OpenAI"
    default_base_url = "https://api.openai.com/v1"
    default_model = "gpt-4"

    def __init__(self, *args: Any, organization: str | None = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.organization = organization or None
        self._client = None

    @property
    def client(self):
        """Lazy initialization of the OpenAI client."""
        if self._client is None:
            if not self.api_key:
                raise UnconfiguredProviderError("OpenAI API key is not configured.")
            self._client = OpenAISDK(
                api_key=self.api_key,
                base_url=self.base_url,
                organization=self.organization,
                max_retries=0,
            )
        return self._client

    def _send(self, messages, model, max_tokens, temperature, timeout) -> AIResponse:
        """
        Call chat.completions.create.

        Raises:
            RateLimitError: If rate limited by OpenAI
            ProviderHttpError: If OpenAI returns an error or times out
        """
        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
                timeout=timeout,
            )
        except openai.RateLimitError as e:
            raise RateLimitError(
                f"Rate limited by OpenAI: {e}", provider=self.name, status_code=429
            ) from e
        except openai.APITimeoutError as e:
            raise ProviderHttpError(
                f"OpenAI API request timed out after {timeout}s", provider=self.name
            ) from e
        except openai.APIStatusError as e:
            raise ProviderHttpError(
                f"OpenAI API error: {e}", provider=self.name, status_code=e.status_code
            ) from e
        except UnconfiguredProviderError:
            raise
        except Exception as e:
            raise ProviderHttpError(f"OpenAI API error: {e}", provider=self.name) from e

        content = ""
        if response.choices:
            content = response.choices[0].message.content or ""

        tokens_used = None
        if response.usage is not None:
            tokens_used = token_count(response.usage.total_tokens)

        return AIResponse(
            content=content,
            metadata=response.model_dump(),
            model=response.model or model,
            tokens_used=tokens_used,
        )

    def _get(self, path: str, params: dict[str, Any] | None = None) -> requests.Response:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if self.organization:
            headers["OpenAI-Organization"] = self.organization
        return requests.get(
            f"{self.base_url}{path}",
            headers=headers,
            params=params,
            timeout=USAGE_TIMEOUT,
        )

    def get_remote_usage(self) -> dict[str, Any] | None:
        """
        Today's usage as reported by OpenAI, falling back to monthly billing.

        Raises:
            ProviderHttpError: If the usage endpoint cannot be reached
        """
        if not self.api_key:
            return None

        today = utcnow().date().isoformat()
        try:
            resp = self._get("/usage", params={"date": today})
        except requests.RequestException as e:
            raise ProviderHttpError(
                f"Failed to fetch OpenAI usage: {e}", provider=self.name
            ) from e

        if resp.ok:
            try:
                data = resp.json()
            except ValueError as e:
                raise ProviderHttpError(
                    "OpenAI usage endpoint returned a non-JSON body",
                    provider=self.name,
                    status_code=resp.status_code,
                ) from e
            if not isinstance(data, dict):
                raise ProviderHttpError(
                    "OpenAI usage endpoint returned an unexpected body",
                    provider=self.name,
                    status_code=resp.status_code,
                )
            return {
                "total_requests": data.get("total_requests", 0),
                "total_tokens": data.get("total_tokens", 0),
                "total_cost": data.get("total_cost", 0),
                "date": data.get("date", today),
            }

        return self._get_billing_usage()

    def _get_billing_usage(self) -> dict[str, Any] | None:
        start = start_of_month().date().isoformat()
        end = utcnow().date().isoformat()
        try:
            resp = self._get(
                "/billing/usage", params={"start_date": start, "end_date": end}
            )
            if resp.ok:
                data = resp.json()
                if isinstance(data, dict):
                    return {
                        "total_requests": data.get("total_requests", 0),
                        "total_tokens": data.get("total_tokens", 0),
                        "total_cost": data.get("total_cost", 0),
                        "period": "monthly",
                        "start_date": data.get("start_date", start),
                        "end_date": data.get("end_date", end),
                    }
        except (requests.RequestException, ValueError) as e:
            logger.warning("Failed to fetch billing usage: %s", e)

        return None

    def get_quota_info(self) -> dict[str, Any] | None:
        if not self.api_key:
            return None

        try:
            resp = self._get("/billing/subscription")
            if resp.ok:
                data = resp.json()
                if isinstance(data, dict):
                    return {
                        "hard_limit_usd": data.get("hard_limit_usd"),
                        "soft_limit_usd": data.get("soft_limit_usd"),
                        "system_hard_limit_usd": data.get("system_hard_limit_usd"),
                        "system_soft_limit_usd": data.get("system_soft_limit_usd"),
                        "access_until": data.get("access_until"),
                        "has_payment_method": data.get("has_payment_method", False),
                    }
        except (requests.RequestException, ValueError) as e:
            logger.warning("Failed to fetch quota info: %s", e)

        return None

    def get_config(self) -> dict[str, Any]:
        config = super().get_config()
        config["organization"] = self.organization
        return config
