"""
AI Client

Abstract provider contract shared by every vendor, plus a mock for tests.

Each vendor only implements ``_send``; timing, cost estimation, usage
tracking and the task-generation workflow live here.
"""

from __future__ import annotations

import dataclasses
import logging
import re
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from foca.utils import mask_secret

from . import prompts
from .exceptions import AIError, ResponseParseError
from .models import AIResponse, AITaskResponse
from .tasks import clean_response_content, parse_text_list, validate_tasks

if TYPE_CHECKING:
    from .usage_tracker import AIUsageTracker

logger = logging.getLogger(__name__)

# Options forwarded from high-level operations to chat()
CHAT_OPTIONS = ("model", "temperature", "max_tokens", "timeout")

_SUGGESTION_PREFIX = re.compile(r"^(?:[-*•]\s*|\d+[.)]\s*)")

# Optional free-text fields the model may add next to the task list
TEXT_FIELDS = ("project_title", "title", "summary")
LIST_FIELDS = ("notes", "problems", "suggestions")


class AIProvider(ABC):
    """Abstract base class for AI providers."""

    name: str = ""
    display_name: str = ""
    default_base_url: str = ""
    default_model: str = ""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        max_tokens: int = 4000,
        temperature: float = 0.7,
        timeout: float = 30,
        cost_per_token: float | None = None,
        usage_tracker: AIUsageTracker | None = None,
    ):
        """
        Initialize the provider.

        Args:
            api_key: Vendor API key (required for actual API calls)
            base_url: API base URL (vendor default when empty)
            model: Default model for requests
            max_tokens: Default max tokens for responses
            temperature: Default sampling temperature
            timeout: Request timeout in seconds
            cost_per_token: Used to estimate cost from reported tokens
            usage_tracker: Records every call; optional outside an app context
        """
        self.api_key = api_key or None
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self.model = model or self.default_model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.cost_per_token = cost_per_token
        self.usage_tracker = usage_tracker

    @abstractmethod
    def _send(
        self,
        messages: list[dict[str, str]],
        model: str,
        max_tokens: int,
        temperature: float,
        timeout: float,
    ) -> AIResponse:
        """
        Perform one vendor request.

        Implementations return content, metadata, model and tokens_used, and
        raise ProviderHttpError (or RateLimitError) on any failure.
        """
        ...

    def chat(self, messages: Sequence[Mapping[str, str]], **options: Any) -> AIResponse:
        """
        Send a chat completion request.

        Args:
            messages: Ordered {role, content} messages
            **options: model, temperature, max_tokens, timeout overrides

        Returns:
            AIResponse with content, token usage, cost and response time

        Raises:
            ProviderHttpError: If the vendor call fails or times out
        """
        model = options.get("model") or self.model
        temperature = options.get("temperature")
        if temperature is None:
            temperature = self.temperature
        start = time.monotonic()

        try:
            response = self._send(
                [{"role": m["role"], "content": m["content"]} for m in messages],
                model=model,
                max_tokens=int(options.get("max_tokens") or self.max_tokens),
                temperature=float(temperature),
                timeout=float(options.get("timeout") or self.timeout),
            )
        except AIError as e:
            logger.debug("AI request failed: provider=%s model=%s error=%s", self.name, model, e)
            if self.usage_tracker is not None:
                self.usage_tracker.log_error(self.name, model, str(e))
            raise

        cost = None
        if response.tokens_used is not None and self.cost_per_token is not None:
            cost = round(response.tokens_used * self.cost_per_token, 8)

        response = dataclasses.replace(
            response,
            model=response.model or model,
            cost=cost,
            response_time=round(time.monotonic() - start, 4),
        )

        logger.debug(
            "AI response received: provider=%s model=%s tokens=%s time=%.2fs",
            self.name,
            response.model,
            response.tokens_used,
            response.response_time,
        )
        if self.usage_tracker is not None:
            self.usage_tracker.log_usage(
                self.name, response.model or model, response.tokens_used or 0, cost or 0.0
            )

        return response

    # ------------------------------------------------------------------
    # Task workflows
    # ------------------------------------------------------------------

    def generate_tasks(self, description: str, **options: Any) -> AITaskResponse:
        """
        Generate a task list for a project description.

        Never raises: transport errors, invalid JSON and malformed payloads
        all come back as ``AITaskResponse.failed`` so callers can show the
        user what the model said.

        Args:
            description: Project description
            **options: chat options plus project_type, project_due_date,
                user_feedback
        """
        messages = [
            {"role": "system", "content": prompts.task_generation_system_prompt()},
            {
                "role": "user",
                "content": prompts.task_generation_user_prompt(description, options),
            },
        ]
        chat_options = self._chat_options(options)
        # Lower temperature for more consistent JSON
        chat_options.setdefault("temperature", 0.3)
        chat_options["max_tokens"] = min(int(chat_options.get("max_tokens", 2000)), 2000)

        try:
            response = self.chat(messages, **chat_options)
        except AIError as e:
            return AITaskResponse.failed(f"AI request failed: {e}")

        try:
            data = self._parse_payload(response, "tasks")
            self._check_communication(data)
        except ResponseParseError as e:
            logger.warning(
                "Task generation returned unusable output from %s: %s (content: %.200s)",
                self.name,
                e,
                response.content,
            )
            return AITaskResponse.failed(str(e), raw_response=response)

        tasks = validate_tasks(data["tasks"], options.get("project_due_date"))
        if not tasks:
            return AITaskResponse.failed(
                "AI response did not contain any valid tasks", raw_response=response
            )

        return AITaskResponse.succeeded(
            tasks=tasks,
            project_title=data.get("project_title") or data.get("title"),
            notes=self._service_notes(data.get("notes"), response),
            summary=data.get("summary"),
            problems=data.get("problems"),
            suggestions=data.get("suggestions"),
            raw_response=response,
        )

    def breakdown_task(
        self,
        title: str,
        description: str,
        context: Mapping[str, Any] | None = None,
        **options: Any,
    ) -> AITaskResponse:
        """Break a task into subtasks, accepting JSON or a plain-text list."""
        messages = [
            {"role": "system", "content": prompts.task_breakdown_system_prompt()},
            {
                "role": "user",
                "content": prompts.task_breakdown_user_prompt(
                    title, description, context or {}
                ),
            },
        ]

        try:
            response = self.chat(messages, **self._chat_options(options))
        except AIError as e:
            return AITaskResponse.failed(f"AI request failed: {e}")

        try:
            data = self._parse_payload(response, "subtasks")
        except ResponseParseError:
            # Subtasks are estimated in story points, not sizes
            subtasks = [
                {**t, "size": None} for t in parse_text_list(response.content)
            ]
            if not subtasks:
                return AITaskResponse.failed(
                    "AI response was neither JSON nor a task list",
                    raw_response=response,
                )
            return AITaskResponse.succeeded(
                tasks=subtasks,
                notes=self._service_notes(["Parsed from a plain-text list"], response),
                summary=f"Task breakdown for: {title}",
                raw_response=response,
            )

        try:
            self._check_communication(data)
        except ResponseParseError as e:
            return AITaskResponse.failed(str(e), raw_response=response)

        project_due_date = (context or {}).get("project_due_date")
        subtasks = validate_tasks(
            [{**t, "is_subtask": True} for t in data["subtasks"] if isinstance(t, dict)],
            project_due_date,
        )
        if not subtasks:
            return AITaskResponse.failed(
                "AI response did not contain any valid subtasks", raw_response=response
            )

        return AITaskResponse.succeeded(
            tasks=subtasks,
            notes=self._service_notes(data.get("notes"), response),
            summary=data.get("summary") or f"Task breakdown for: {title}",
            problems=data.get("problems"),
            suggestions=data.get("suggestions"),
            raw_response=response,
        )

    def analyze_project(
        self,
        description: str,
        existing_tasks: Sequence[Mapping[str, Any]] = (),
        **options: Any,
    ) -> str:
        """Return a free-text analysis of the project."""
        messages = [
            {"role": "system", "content": prompts.PROJECT_ANALYSIS_SYSTEM},
            {
                "role": "user",
                "content": prompts.project_analysis_user_prompt(description, existing_tasks),
            },
        ]
        response = self.chat(messages, **self._chat_options(options))
        return response.content if response.is_successful else "Analysis unavailable."

    def suggest_task_improvements(
        self, tasks: Sequence[Mapping[str, Any]], **options: Any
    ) -> list[str]:
        """Return one suggestion per item the model produced."""
        messages = [
            {"role": "system", "content": prompts.TASK_SUGGESTIONS_SYSTEM},
            {"role": "user", "content": prompts.task_suggestions_user_prompt(tasks)},
        ]
        response = self.chat(messages, **self._chat_options(options))

        try:
            data = response.parse_json()
        except ResponseParseError:
            data = None

        if isinstance(data, dict):
            data = data.get("suggestions")
        if isinstance(data, str):
            data = [data]
        if isinstance(data, list):
            return [str(item).strip() for item in data if str(item).strip()]

        suggestions = []
        for line in response.content.splitlines():
            line = _SUGGESTION_PREFIX.sub("", line.strip()).strip()
            if line:
                suggestions.append(line)
        return suggestions

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_name(self) -> str:
        return self.name

    def is_configured(self) -> bool:
        """A provider is usable once it has an API key."""
        return bool(self.api_key)

    def get_config(self) -> dict[str, Any]:
        """Snapshot of the provider configuration with the API key masked."""
        return {
            "name": self.name,
            "api_key": mask_secret(self.api_key),
            "base_url": self.base_url,
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "timeout": self.timeout,
        }

    def get_remote_usage(self) -> dict[str, Any] | None:
        """Provider-reported usage, for vendors that expose it."""
        return None

    def get_quota_info(self) -> dict[str, Any] | None:
        """Provider-reported quota, for vendors that expose it."""
        return None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _chat_options(options: Mapping[str, Any]) -> dict[str, Any]:
        return {k: options[k] for k in CHAT_OPTIONS if options.get(k) is not None}

    @staticmethod
    def _parse_payload(response: AIResponse, key: str) -> dict[str, Any]:
        """
        Extract the JSON object from a reply and check it has a ``key`` list.

        Raises:
            ResponseParseError: If the reply is not JSON or has the wrong shape
        """
        if not response.is_successful:
            raise ResponseParseError("AI returned an empty response")

        cleaned = dataclasses.replace(
            response, content=clean_response_content(response.content)
        )
        data = cleaned.parse_json()

        if not isinstance(data, dict):
            raise ResponseParseError("AI response must be a JSON object")
        if not isinstance(data.get(key), list):
            raise ResponseParseError(f"AI response is missing a '{key}' list")

        return data

    @staticmethod
    def _check_communication(data: Mapping[str, Any]) -> None:
        """
        Check the optional fields that accompany a task list.

        Text fields must be strings; list fields a string or a list of
        scalars.

        Raises:
            ResponseParseError: Naming the first malformed field
        """
        for key in TEXT_FIELDS:
            if data.get(key) is not None and not isinstance(data[key], str):
                raise ResponseParseError(f"AI response has a malformed '{key}' field")

        for key in LIST_FIELDS:
            value = data.get(key)
            if value is None or isinstance(value, str):
                continue
            if not isinstance(value, list) or not all(
                isinstance(item, (str, int, float)) for item in value
            ):
                raise ResponseParseError(f"AI response has a malformed '{key}' field")

    def _service_notes(self, notes: Any, response: AIResponse) -> list[str]:
        """Prefix the model's notes with which service produced them."""
        if isinstance(notes, str):
            notes = [notes]
        info = f"Generated by: {self.name}"
        if response.model or self.model:
            info += f" ({response.model or self.model})"
        return [info, *(str(n) for n in notes or [] if n)]


class MockAIProvider(AIProvider):
    """Mock provider for testing."""

    name = "mock"
    display_name = "Mock"
    default_model = "mock-model"

    def __init__(self, response_content: str = "Mock response", **kwargs: Any):
        """
        Initialize mock provider.

        Args:
            response_content: Content to return in responses
        """
        kwargs.setdefault("api_key", "mock-key")
        super().__init__(**kwargs)
        self.response_content = response_content
        self.call_history: list[dict] = []

    def _send(self, messages, model, max_tokens, temperature, timeout) -> AIResponse:
        """Record call and return mock response."""
        self.call_history.append(
            {
                "messages": messages,
                "model": model,
                "max_tokens": max_tokens,
                "temperature": temperature,
            }
        )
        return AIResponse(
            content=self.response_content,
            model=model,
            tokens_used=30,
        )
