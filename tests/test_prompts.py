"""Tests for prompt builders."""

from datetime import datetime

from foca.ai import prompts


class TestTaskGenerationPrompts:
    """Tests for the task generation prompts."""

    def test_system_prompt_includes_current_date(self):
        prompt = prompts.task_generation_system_prompt(now=datetime(2026, 3, 2, 14, 5))

        assert "Monday, March 02, 2026 at 02:05 PM UTC" in prompt
        assert '"project_title"' in prompt

    def test_user_prompt_includes_options(self):
        prompt = prompts.task_generation_user_prompt(
            "Build a recipe app",
            {
                "project_type": "iterative",
                "project_due_date": "2026-12-01",
                "user_feedback": "Fewer tasks please",
            },
        )

        assert "Build a recipe app" in prompt
        assert "Project Type: iterative" in prompt
        assert "Project Due Date: 2026-12-01" in prompt
        assert "User Feedback: Fewer tasks please" in prompt

    def test_user_prompt_without_options(self):
        prompt = prompts.task_generation_user_prompt("Build a recipe app", {})

        assert "Project Type" not in prompt
        assert "User Feedback" not in prompt


class TestTaskBreakdownPrompts:
    """Tests for the task breakdown prompts."""

    def test_parent_size_limits_story_points(self):
        prompt = prompts.task_breakdown_user_prompt(
            "Checkout flow",
            "Cart to payment",
            {"parent_task": {"title": "Commerce", "size": "m"}},
        )

        assert "MAXIMUM ALLOWED: 4 story points per subtask" in prompt
        assert "VALID STORY POINTS FOR SUBTASKS: 1, 2, 3" in prompt

    def test_context_sections(self):
        prompt = prompts.task_breakdown_user_prompt(
            "Checkout flow",
            "Cart to payment",
            {
                "project_context": {"title": "Shop", "total_tasks": 12},
                "sample_existing_tasks": [{"title": "Catalog", "status": "completed"}],
                "user_feedback": "Keep it small",
            },
        )

        assert "Project: Shop" in prompt
        assert "Total Tasks: 12" in prompt
        assert "- Catalog (completed)" in prompt
        assert "Keep it small" in prompt
        assert "CRITICAL CONSTRAINT" not in prompt

    def test_max_story_points_for_size(self):
        assert prompts.max_story_points_for_size("XS") == 2
        assert prompts.max_story_points_for_size("xl") == 13
        assert prompts.max_story_points_for_size(None) is None
        assert prompts.max_story_points_for_size("huge") is None


class TestOtherPrompts:
    """Tests for analysis and suggestion prompts."""

    def test_project_analysis_lists_existing_tasks(self):
        prompt = prompts.project_analysis_user_prompt(
            "A CRM", [{"title": "Contacts"}, {"title": "Deals"}]
        )

        assert '"A CRM"' in prompt
        assert "- Contacts\n- Deals" in prompt

    def test_task_suggestions_serialises_tasks(self):
        prompt = prompts.task_suggestions_user_prompt([{"title": "Contacts"}])

        assert '"title": "Contacts"' in prompt

    def test_test_prompt(self):
        assert prompts.TEST_PROMPT == 'Say "Hello, I am working!" and nothing else.'
