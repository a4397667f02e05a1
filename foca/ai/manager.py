"""
AI Manager

Resolves provider configuration (app config overlaid with saved settings),
builds and caches provider instances and routes high-level calls to them.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from flask import current_app

from foca.models import Setting

from . import prompts
from .anthropic_client import AnthropicProvider
from .catalog import AVAILABLE_PROVIDERS
from .cerebras_client import CerebrasProvider
from .client import AIProvider
from .exceptions import AIError, UnconfiguredProviderError, UnknownProviderError
from .models import AIResponse, AITaskResponse
from .openai_client import OpenAIProvider

if TYPE_CHECKING:
    from flask import Flask

    from .usage_tracker import AIUsageTracker

logger = logging.getLogger(__name__)

PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    "cerebrus": CerebrasProvider,
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
}

# Settings that may override app config per provider
PROVIDER_SETTING_FIELDS = ("api_key", "base_url", "model")


class AIManager:
    """
    Single entry point to the configured AI providers.

    Usage:
        manager = get_ai_manager()

        result = manager.generate_tasks("Build a landing page", provider="openai")
        if manager.has_configured_provider():
            ...
    """

    def __init__(
        self,
        config: Mapping[str, Any],
        usage_tracker: AIUsageTracker | None = None,
        providers: Mapping[str, type[AIProvider]] | None = None,
    ):
        """
        Initialize the manager.

        Args:
            config: Flask app config (or any mapping with the AI_* keys)
            usage_tracker: Passed to every provider instance
            providers: Provider registry (defaults to the built-in vendors)
        """
        self.config = config
        self.usage_tracker = usage_tracker
        self.providers = dict(providers or PROVIDER_CLASSES)
        self._instances: dict[str, tuple[tuple, AIProvider]] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def default_provider_name(self) -> str:
        """Saved ``ai.provider`` setting, else AI_DEFAULT_PROVIDER."""
        return Setting.get("ai.provider") or self.config.get(
            "AI_DEFAULT_PROVIDER", "cerebrus"
        )

    def resolve_config(self, name: str) -> dict[str, Any]:
        """
        Effective configuration for a provider.

        Non-empty saved settings win over app config.

        Raises:
            UnknownProviderError: If the provider is not registered
        """
        if name not in self.providers:
            raise UnknownProviderError(f"AI provider [{name}] is not supported.")

        prefix = name.upper()
        resolved: dict[str, Any] = {
            "api_key": self.config.get(f"{prefix}_API_KEY"),
            "base_url": self.config.get(f"{prefix}_BASE_URL"),
            "model": self.config.get(f"{prefix}_MODEL"),
            "max_tokens": self.config.get("AI_MAX_TOKENS", 4000),
            "temperature": self.config.get("AI_TEMPERATURE", 0.7),
            "timeout": self.config.get("AI_REQUEST_TIMEOUT", 30),
            "cost_per_token": self.config.get("AI_COST_PER_TOKEN"),
        }
        for field in PROVIDER_SETTING_FIELDS:
            value = Setting.get(f"ai.{name}.{field}")
            if value:
                resolved[field] = value

        if name == "openai":
            resolved["organization"] = self.config.get("OPENAI_ORGANIZATION")

        return resolved

    def _build(self, name: str, config: Mapping[str, Any]) -> AIProvider:
        return self.providers[name](usage_tracker=self.usage_tracker, **config)

    def provider(self, name: str | None = None) -> AIProvider:
        """
        Get a configured provider instance.

        Instances are reused until the resolved configuration changes.

        Args:
            name: Provider name (active default when omitted)

        Raises:
            UnknownProviderError: If the provider is not registered
            UnconfiguredProviderError: If it has no API key
        """
        name = name or self.default_provider_name()
        config = self.resolve_config(name)
        if not config.get("api_key"):
            raise UnconfiguredProviderError(
                f"AI provider [{name}] is not configured. Please set up API keys "
                "in the settings."
            )

        snapshot = tuple(sorted(config.items()))
        with self._lock:
            cached = self._instances.get(name)
            if cached is not None and cached[0] == snapshot:
                return cached[1]

            instance = self._build(name, config)
            self._instances[name] = (snapshot, instance)
            logger.debug("Built AI provider %s (model=%s)", name, instance.model)
            return instance

    def has_configured_provider(self) -> bool:
        """True if any registered provider has an API key."""
        for name in self.providers:
            if self.resolve_config(name).get("api_key"):
                return True
        return False

    def get_available_providers(self) -> dict[str, dict[str, Any]]:
        """Catalog entries plus whether each provider is configured."""
        available = {}
        for name, cls in self.providers.items():
            info = AVAILABLE_PROVIDERS.get(name, {})
            available[name] = {
                "name": name,
                "display_name": info.get("name", cls.display_name or name),
                "description": info.get("description", ""),
                "models": dict(info.get("models", {})),
                "configured": bool(self.resolve_config(name).get("api_key")),
            }
        return available

    def default_settings(self) -> dict[str, Any]:
        """Default AI configuration applied to new projects."""
        provider_name = Setting.get("ai.default.provider") or self.default_provider_name()
        model = Setting.get("ai.default.model")
        if not model and provider_name in self.providers:
            model = self.resolve_config(provider_name).get("model")
        return {
            "provider": provider_name,
            "model": model,
            "api_key": Setting.get("ai.default.api_key"),
            "base_url": Setting.get("ai.default.base_url"),
        }

    # ------------------------------------------------------------------
    # Delegated operations
    # ------------------------------------------------------------------

    def chat(self, messages: Sequence[Mapping[str, str]], **options: Any) -> AIResponse:
        return self.provider(options.pop("provider", None)).chat(messages, **options)

    def generate_tasks(self, description: str, **options: Any) -> AITaskResponse:
        return self.provider(options.pop("provider", None)).generate_tasks(
            description, **options
        )

    def breakdown_task(
        self,
        title: str,
        description: str,
        context: Mapping[str, Any] | None = None,
        **options: Any,
    ) -> AITaskResponse:
        return self.provider(options.pop("provider", None)).breakdown_task(
            title, description, context, **options
        )

    def analyze_project(
        self,
        description: str,
        existing_tasks: Sequence[Mapping[str, Any]] = (),
        **options: Any,
    ) -> str:
        return self.provider(options.pop("provider", None)).analyze_project(
            description, existing_tasks, **options
        )

    def suggest_task_improvements(
        self, tasks: Sequence[Mapping[str, Any]], **options: Any
    ) -> list[str]:
        return self.provider(options.pop("provider", None)).suggest_task_improvements(
            tasks, **options
        )

    # ------------------------------------------------------------------
    # Connection test
    # ------------------------------------------------------------------

    def test_provider(
        self, name: str | None = None, overrides: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        """
        Send a short fixed prompt to a provider.

        ``overrides`` (api_key, base_url, model) apply to this call only; the
        tested instance is neither cached nor written to settings.

        Returns:
            {success, message, response, tokens_used, response_time} on
            success, {success: False, message} otherwise
        """
        name = name or self.default_provider_name()
        try:
            config = self.resolve_config(name)
            for field, value in (overrides or {}).items():
                if value:
                    config[field] = value
            if not config.get("api_key"):
                raise UnconfiguredProviderError(
                    f"AI provider [{name}] is not configured."
                )

            response = self._build(name, config).chat(
                [{"role": "user", "content": prompts.TEST_PROMPT}], max_tokens=50
            )
        except AIError as e:
            logger.warning("AI provider test failed for %s: %s", name, e)
            return {"success": False, "message": str(e)}
        except Exception as e:
            logger.exception("Unexpected error testing AI provider %s", name)
            return {"success": False, "message": str(e)}

        return {
            "success": True,
            "message": "Provider is working correctly",
            "response": response.content,
            "tokens_used": response.tokens_used,
            "response_time": response.response_time,
        }


def get_ai_manager() -> AIManager:
    """Return the manager registered on the current app."""
    return current_app.extensions["ai_manager"]  # type: ignore[no-any-return]


def init_ai_manager(app: Flask, usage_tracker: AIUsageTracker | None = None) -> AIManager:
    """
    Initialize the AI manager from Flask app config.

    Args:
        app: Flask application instance
        usage_tracker: Shared usage tracker

    Returns:
        Configured AIManager instance
    """
    manager = AIManager(app.config, usage_tracker=usage_tracker)
    app.extensions["ai_manager"] = manager

    logger.info(
        "AI manager initialized: default provider=%s",
        app.config.get("AI_DEFAULT_PROVIDER"),
    )

    return manager
