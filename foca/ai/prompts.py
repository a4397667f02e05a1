"""
Prompt Builders

System and user prompts for task generation, task breakdown, project
analysis and task suggestions.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from foca.time_utils import utcnow

# Subtasks of a parent must stay strictly below these story points
SIZE_MAX_STORY_POINTS = {"xs": 2, "s": 3, "m": 5, "l": 8, "xl": 13}

TEST_PROMPT = 'Say "Hello, I am working!" and nothing else.'

_TASK_SCHEMA = """{
  "project_title": "Compelling Project Title",
  "tasks": [
    {
      "title": "Task Title",
      "description": "Detailed task description",
      "status": "pending",
      "due_date": "YYYY-MM-DD" (optional),
      "size": "xs|s|m|l|xl" (for iterative projects only),
      "initial_story_points": number (for iterative projects only),
      "current_story_points": number (for iterative projects only),
      "story_points_change_count": 0 (for iterative projects only)
    }
  ],
  "summary": "Brief summary of your analysis and approach",
  "notes": ["Important observations or clarifications"],
  "problems": ["Issues or concerns with the project description"],
  "suggestions": ["Recommendations for the project or task breakdown"]
}"""

_SUBTASK_SCHEMA = """{
  "subtasks": [
    {
      "title": "Subtask Title",
      "description": "Detailed subtask description",
      "status": "pending",
      "due_date": "YYYY-MM-DD" (optional),
      "initial_story_points": number (for iterative projects),
      "current_story_points": number (for iterative projects),
      "story_points_change_count": 0 (for iterative projects)
    }
  ],
  "summary": "Brief summary of the breakdown approach",
  "notes": ["Additional notes or considerations"],
  "problems": ["Potential issues or challenges"],
  "suggestions": ["Recommendations for implementation"]
}"""

PROJECT_ANALYSIS_SYSTEM = (
    "You are a senior project consultant who analyzes project requirements "
    "and provides strategic insights."
)
TASK_SUGGESTIONS_SYSTEM = (
    "You are an AI assistant that helps improve task management by suggesting "
    "optimizations and next steps."
)


def _current_datetime(now: datetime | None = None) -> str:
    return (now or utcnow()).strftime("%A, %B %d, %Y at %I:%M %p UTC")


def max_story_points_for_size(size: str | None) -> int | None:
    """Story point ceiling for subtasks of a parent with this T-shirt size."""
    if not size:
        return None
    return SIZE_MAX_STORY_POINTS.get(size.lower())


def task_generation_system_prompt(now: datetime | None = None) -> str:
    return (
        "You are an expert project manager and task breakdown specialist. "
        "Your role is to analyze project descriptions and generate comprehensive, "
        "actionable task breakdowns. You must respond with valid JSON only - "
        "no explanations, no markdown, no code blocks.\n\n"
        f"Current Date and Time: {_current_datetime(now)}\n\n"
        "Your response must be a valid JSON object with the following structure:\n"
        f"{_TASK_SCHEMA}\n\n"
        "For iterative projects, use T-shirt sizes (xs, s, m, l, xl) and Fibonacci "
        "story points (1, 2, 3, 5, 8, 13, 21).\n"
        "For finite projects, omit size and story points fields.\n"
        "Ensure all tasks are actionable, specific, and well-described."
    )


def task_generation_user_prompt(description: str, options: Mapping[str, Any]) -> str:
    prompt = (
        "Please analyze this project description and generate a comprehensive "
        f"task breakdown: {description}\n\n"
        "CRITICAL: You must respond with ONLY a valid JSON object in this exact format:\n"
        f"{_TASK_SCHEMA}\n\n"
        "IMPORTANT RULES:\n"
        "- Respond with ONLY the JSON object, no explanations or markdown\n"
        "- project_title should be concise and professional (3-8 words)\n"
        "- status must be exactly \"pending\", \"in_progress\", or \"completed\"\n"
        "- For iterative projects: Use T-shirt sizes (xs, s, m, l, xl) and "
        "Fibonacci story points (1, 2, 3, 5, 8, 13, 21)\n"
        "- For finite projects: Omit size and story points fields entirely\n"
        "- Include realistic due dates when appropriate\n"
        "- Generate 5-15 tasks depending on project complexity"
    )

    if options.get("project_type"):
        prompt += f"\n\nProject Type: {options['project_type']}"
    if options.get("project_due_date"):
        prompt += f"\nProject Due Date: {options['project_due_date']}"
    if options.get("user_feedback"):
        prompt += f"\n\nUser Feedback: {options['user_feedback']}"

    return prompt


def task_breakdown_system_prompt(now: datetime | None = None) -> str:
    return (
        "You are an expert project manager and task breakdown specialist. Your job "
        "is to analyze a given task and break it down into smaller, actionable "
        "subtasks. Consider the project context, existing tasks, and completion "
        "statuses to provide relevant and practical subtask suggestions.\n\n"
        "You must respond with valid JSON only - no explanations, no markdown, "
        "no code blocks.\n\n"
        f"Current Date and Time: {_current_datetime(now)}\n\n"
        "Your response must be a valid JSON object with the following structure:\n"
        f"{_SUBTASK_SCHEMA}\n\n"
        "For iterative projects, use Fibonacci story points (1, 2, 3, 5, 8, 13, 21).\n"
        "For finite projects, omit story points fields.\n"
        "Ensure all subtasks are actionable, specific, and well-described."
    )


def task_breakdown_user_prompt(
    title: str, description: str, context: Mapping[str, Any]
) -> str:
    lines = [
        "Please break down the following task into smaller, actionable subtasks:",
        "",
        "**Task to Break Down:**",
        f"Title: {title}",
        f"Description: {description}",
        "",
    ]

    project = context.get("project_context")
    if project:
        lines += [
            "**Project Context:**",
            f"Project: {project.get('title', '')}",
            f"Description: {project.get('description', '')}",
            f"Type: {project.get('project_type', '')}",
            f"Total Tasks: {project.get('total_tasks', 0)}",
            f"Completed Tasks: {project.get('completed_tasks', 0)}",
            "",
        ]

    parent = context.get("parent_task")
    if parent:
        lines += ["**Parent Task:**", f"Title: {parent.get('title', '')}"]
        max_points = max_story_points_for_size(parent.get("size"))
        if max_points:
            allowed = [p for p in (1, 2, 3, 5, 8) if p < max_points]
            lines += [
                f"Size: {parent['size']}",
                "",
                "**CRITICAL CONSTRAINT - MUST FOLLOW EXACTLY**",
                f"The parent task has a T-shirt size of '{parent['size']}'. "
                f"**ABSOLUTE RULE: NO subtask can have {max_points} or more story points.**",
                f"**MAXIMUM ALLOWED: {max_points - 1} story points per subtask.**",
                f"**VALID STORY POINTS FOR SUBTASKS: {', '.join(map(str, allowed))}**",
                "Double-check every subtask's story points before responding.",
            ]
        lines.append("")

    existing: Sequence[Mapping[str, Any]] = context.get("sample_existing_tasks") or []
    if existing:
        lines.append("**Sample Existing Tasks:**")
        for task in list(existing)[:5]:
            lines.append(f"- {task.get('title', '')} ({task.get('status', 'pending')})")
        lines.append("")

    if context.get("user_feedback"):
        lines += ["**User Feedback:**", str(context["user_feedback"]), ""]

    lines += [
        "**Instructions:**",
        "1. Break down the task into 3-8 smaller, actionable subtasks",
        "2. Each subtask should be specific and measurable",
        "3. Consider dependencies and logical order",
        "4. Include realistic due dates when appropriate",
        "5. For iterative projects, assign appropriate story points using Fibonacci sequence",
        "6. Provide a brief summary of your approach",
        "7. Include any notes, problems, or suggestions",
        "",
        "**Response Format:**",
        "Respond with ONLY a valid JSON object in this exact format:",
        _SUBTASK_SCHEMA,
        "",
        "CRITICAL: Respond with ONLY the JSON object, no explanations or markdown formatting.",
    ]

    return "\n".join(lines)


def project_analysis_user_prompt(
    description: str, existing_tasks: Sequence[Mapping[str, Any]] = ()
) -> str:
    prompt = (
        f'Analyze this project: "{description}". Provide insights about scope, '
        "complexity, timeline estimates, potential risks, and recommended "
        "technologies. Keep the analysis concise but comprehensive."
    )
    if existing_tasks:
        titles = "\n".join(f"- {t.get('title', '')}" for t in existing_tasks)
        prompt += f"\n\nExisting tasks:\n{titles}"
    return prompt


def task_suggestions_user_prompt(tasks: Sequence[Mapping[str, Any]]) -> str:
    return (
        f"Given these existing tasks: {json.dumps(list(tasks), indent=2, default=str)}, "
        "suggest improvements, identify missing tasks, or recommend task "
        "prioritization changes. Focus on actionable suggestions, one per line."
    )
