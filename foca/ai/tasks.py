"""
Task Normalisation

Helpers that turn free-form model output into task descriptors:
JSON extraction, schema validation, T-shirt sizing and text-list parsing.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Any

from foca.time_utils import utcnow

TASK_STATUSES = ("pending", "in_progress", "completed")
TASK_SIZES = ("xs", "s", "m", "l", "xl")

# Checked in order, first match wins
SIZE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "xs": ("fix", "bug", "typo", "small", "quick", "minor", "update", "change"),
    "s": ("add", "create", "implement", "simple", "basic", "standard"),
    "m": ("feature", "component", "module", "integration", "api", "database"),
    "l": ("system", "architecture", "refactor", "migration", "complex", "major"),
    "xl": ("rewrite", "redesign", "overhaul", "platform", "framework", "enterprise"),
}

_FENCE_OPEN = re.compile(r"```(?:json)?\s*\n?", re.IGNORECASE)
_LIST_PATTERNS = (
    re.compile(r"^\d+\.\s*(.+)"),  # 1. Task
    re.compile(r"^[-*]\s*(.+)"),  # - Task / * Task
    re.compile(r"^\d+\)\s*(.+)"),  # 1) Task
    re.compile(r"^Task\s*\d+:\s*(.+)", re.IGNORECASE),
    re.compile(r"^[•▪▫]\s*(.+)"),
    re.compile(r"^\s*[▶►]\s*(.+)"),
)
_PREAMBLE = re.compile(r"^(Here|The|These|Below|Following|I|You|Please|Let|This)\b", re.IGNORECASE)
_PREAMBLE_STRICT = re.compile(
    r"^(Here|The|These|Below|Following|I|You|Please|Let|This|Based|In)\b", re.IGNORECASE
)


def clean_response_content(content: str) -> str:
    """
    Strip markdown fences and surrounding prose from a JSON reply.

    Models often wrap JSON in ```json fences or add an explanation before or
    after the object; everything outside the outermost braces is dropped.
    """
    content = _FENCE_OPEN.sub("", content or "")
    content = content.replace("```", "").strip()

    if not content.startswith("{"):
        start = content.find("{")
        if start != -1:
            content = content[start:]

    if not content.endswith("}"):
        end = content.rfind("}")
        if end != -1:
            content = content[: end + 1]

    return content


def fallback_size(task: dict[str, Any]) -> str:
    """Guess a T-shirt size from keywords in the title and description."""
    text = f"{task.get('title') or ''} {task.get('description') or ''}".lower()
    for size, keywords in SIZE_KEYWORDS.items():
        if any(keyword in text for keyword in keywords):
            return size
    return "m"


def extract_task_size(task: dict[str, Any]) -> str | None:
    """
    Return the task's size, normalised to lowercase.

    Subtasks are estimated in story points, so they never get a guessed size.
    """
    size = task.get("size")
    if isinstance(size, str) and size.lower() in TASK_SIZES:
        return size.lower()

    if any(k in task for k in ("parent_id", "is_subtask", "current_story_points")):
        return None

    return fallback_size(task)


def due_date_from_project(
    project_due_date: str | date, today: date | None = None
) -> str | None:
    """
    Place a task 60% of the way to the project due date.

    Returns None when the project date is unparseable or already past.
    """
    today = today or utcnow().date()
    try:
        if isinstance(project_due_date, datetime):
            project_date = project_due_date.date()
        elif isinstance(project_due_date, date):
            project_date = project_due_date
        else:
            project_date = datetime.fromisoformat(str(project_due_date)).date()
    except ValueError:
        return None

    if project_date < today:
        return None

    days_left = (project_date - today).days
    offset = max(1, min(round(days_left * 0.6), days_left))
    task_date = today + timedelta(days=offset)

    if task_date > project_date:
        task_date = project_date - timedelta(days=1)

    return task_date.isoformat()


def validate_tasks(
    tasks: Any, project_due_date: str | date | None = None
) -> list[dict[str, Any]]:
    """Keep well-formed task mappings and fill in defaults."""
    validated = []

    for task in tasks or []:
        if not isinstance(task, dict) or not task.get("title"):
            continue

        status = task.get("status", "pending")
        due_date = task.get("due_date")
        if not due_date and project_due_date:
            due_date = due_date_from_project(project_due_date)

        validated.append(
            {
                "title": str(task["title"]),
                "description": task.get("description") or "",
                "status": status if status in TASK_STATUSES else "pending",
                "due_date": due_date,
                "size": extract_task_size(task),
                "initial_story_points": task.get("initial_story_points"),
                "current_story_points": task.get("current_story_points"),
                "story_points_change_count": task.get("story_points_change_count", 0),
                "subtasks": task.get("subtasks") or [],
            }
        )

    return validated


def _text_task(title: str) -> dict[str, Any]:
    return {
        "title": title,
        "description": "",
        "status": "pending",
        "size": extract_task_size({"title": title}),
    }


def parse_text_list(content: str) -> list[dict[str, Any]]:
    """Parse a numbered or bulleted plain-text reply into tasks."""
    tasks: list[dict[str, Any]] = []
    lines = [line.strip() for line in (content or "").splitlines() if line.strip()]

    for line in lines:
        match = next((m for p in _LIST_PATTERNS if (m := p.match(line))), None)
        if match:
            title = match.group(1).strip()
            if len(title) > 3:
                tasks.append(_text_task(title))
        elif (
            not _PREAMBLE.match(line)
            and len(line) > 10
            and "```" not in line
            and len(tasks) < 10
        ):
            tasks.append(_text_task(line))

    if tasks:
        return tasks

    # Nothing looked like a list; take the first few substantial lines
    for line in lines:
        if len(line) > 5 and "```" not in line and not _PREAMBLE_STRICT.match(line):
            tasks.append(_text_task(line))
            if len(tasks) >= 5:
                break

    return tasks
