"""
AI Module

Provider abstraction for task generation and project analysis.

Usage:
    from foca.ai import get_ai_manager
    from foca.ai import AIProvider, CerebrasProvider, OpenAIProvider, AnthropicProvider
    from foca.ai import AIResponse, AITaskResponse

    # Active provider from settings
    manager = get_ai_manager()
    result = manager.generate_tasks("Launch a marketing site")
    if result.success:
        for task in result.tasks:
            print(task["title"])

    # Or a specific provider
    response = manager.chat([{"role": "user", "content": "Hello"}], provider="openai")
"""

from .anthropic_client import AnthropicProvider
from .catalog import AVAILABLE_PROVIDERS, PROVIDER_NAMES, get_available_providers
from .cerebras_client import CerebrasProvider
from .client import AIProvider, MockAIProvider
from .exceptions import (
    AIError,
    ProviderError,
    ProviderHttpError,
    RateLimitError,
    ResponseParseError,
    UnconfiguredProviderError,
    UnknownProviderError,
)
from .manager import AIManager, get_ai_manager, init_ai_manager
from .models import AIResponse, AITaskResponse
from .openai_client import OpenAIProvider
from .usage_tracker import AIUsageTracker, get_usage_tracker, init_usage_tracker

__all__ = [
    # Models
    "AIResponse",
    "AITaskResponse",
    # Providers
    "AIProvider",
    "AnthropicProvider",
    "CerebrasProvider",
    "MockAIProvider",
    "OpenAIProvider",
    # Exceptions
    "AIError",
    "ProviderError",
    "ProviderHttpError",
    "RateLimitError",
    "ResponseParseError",
    "UnconfiguredProviderError",
    "UnknownProviderError",
    # Catalog
    "AVAILABLE_PROVIDERS",
    "PROVIDER_NAMES",
    "get_available_providers",
    # Manager
    "AIManager",
    "get_ai_manager",
    "init_ai_manager",
    # Usage tracker
    "AIUsageTracker",
    "get_usage_tracker",
    "init_usage_tracker",
]
