"""
AI Data Models

Immutable value objects normalising provider output.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .exceptions import ResponseParseError


@dataclass(frozen=True)
class AIResponse:
    """Response from an AI provider."""

    content: str
    metadata: dict[str, Any] = field(default_factory=dict)
    model: str | None = None
    tokens_used: int | None = None
    cost: float | None = None
    response_time: float | None = None

    def __post_init__(self) -> None:
        for name in ("tokens_used", "cost", "response_time"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")

    @property
    def is_successful(self) -> bool:
        return bool(self.content)

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "metadata": self.metadata,
            "model": self.model,
            "tokens_used": self.tokens_used,
            "cost": self.cost,
            "response_time": self.response_time,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AIResponse:
        return cls(
            content=data.get("content") or "",
            metadata=dict(data.get("metadata") or {}),
            model=data.get("model"),
            tokens_used=data.get("tokens_used"),
            cost=data.get("cost"),
            response_time=data.get("response_time"),
        )

    def parse_json(self) -> Any:
        """
        Decode the response content as JSON.

        Raises:
            ResponseParseError: If the content is not valid JSON
        """
        try:
            return json.loads(self.content)
        except (TypeError, ValueError) as e:
            raise ResponseParseError(f"Response content is not valid JSON: {e}") from e


def token_count(value: Any) -> int | None:
    """Vendor-reported token usage as a non-negative int, else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value < 0 or value != int(value):
        return None
    return int(value)


def _as_strings(value: str | Iterable[str] | None) -> tuple[str, ...]:
    """Normalise a scalar or sequence of strings into a tuple."""
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value else ()
    return tuple(str(item) for item in value if item)


@dataclass(frozen=True)
class AITaskResponse:
    """
    Result of a task generation or task breakdown request.

    A failed response never carries tasks and always carries an error; a
    successful one never carries an error. Use ``succeeded`` and ``failed``
    rather than constructing directly.
    """

    tasks: tuple[dict[str, Any], ...] = ()
    project_title: str | None = None
    notes: tuple[str, ...] = ()
    summary: str | None = None
    problems: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()
    raw_response: AIResponse | None = None
    success: bool = True
    error: str | None = None

    def __post_init__(self) -> None:
        if self.success and self.error is not None:
            raise ValueError("A successful task response cannot carry an error")
        if not self.success and self.tasks:
            raise ValueError("A failed task response cannot carry tasks")

    @classmethod
    def succeeded(
        cls,
        tasks: Iterable[dict[str, Any]],
        project_title: str | None = None,
        notes: str | Iterable[str] | None = (),
        summary: str | None = None,
        problems: str | Iterable[str] | None = (),
        suggestions: str | Iterable[str] | None = (),
        raw_response: AIResponse | None = None,
    ) -> AITaskResponse:
        """Create a successful response, accepting scalar communication fields."""
        return cls(
            tasks=tuple(tasks),
            project_title=project_title,
            notes=_as_strings(notes),
            summary=summary or None,
            problems=_as_strings(problems),
            suggestions=_as_strings(suggestions),
            raw_response=raw_response,
            success=True,
        )

    @classmethod
    def failed(
        cls, error: str, raw_response: AIResponse | None = None
    ) -> AITaskResponse:
        """Create a failed response."""
        return cls(
            tasks=(),
            raw_response=raw_response,
            success=False,
            error=error,
        )

    @property
    def is_successful(self) -> bool:
        return self.success and not self.error

    @property
    def task_count(self) -> int:
        return len(self.tasks)

    def has_notes(self) -> bool:
        """Check if the model provided any communication alongside the tasks."""
        return bool(self.notes or self.summary or self.problems or self.suggestions)

    def communication(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "notes": list(self.notes),
            "problems": list(self.problems),
            "suggestions": list(self.suggestions),
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "success": self.success,
            "project_title": self.project_title,
            "tasks": list(self.tasks),
            "task_count": self.task_count,
            "communication": self.communication(),
            "has_notes": self.has_notes(),
            "error": self.error,
            "metadata": self.raw_response.to_dict() if self.raw_response else None,
        }
