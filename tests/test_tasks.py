"""Tests for task normalisation helpers."""

from datetime import date

from foca.ai.tasks import (
    clean_response_content,
    due_date_from_project,
    extract_task_size,
    fallback_size,
    parse_text_list,
    validate_tasks,
)


class TestCleanResponseContent:
    """Tests for clean_response_content."""

    def test_strips_json_fence(self):
        content = '```json\n{"tasks": []}\n```'

        assert clean_response_content(content) == '{"tasks": []}'

    def test_strips_surrounding_prose(self):
        content = 'Here is the plan:\n{"tasks": []}\nLet me know!'

        assert clean_response_content(content) == '{"tasks": []}'

    def test_empty(self):
        assert clean_response_content("") == ""
        assert clean_response_content(None) == ""


class TestTaskSizes:
    """Tests for T-shirt size extraction."""

    def test_explicit_size_is_lowercased(self):
        assert extract_task_size({"title": "Anything", "size": "XL"}) == "xl"

    def test_invalid_size_falls_back_to_keywords(self):
        assert extract_task_size({"title": "Fix login bug", "size": "huge"}) == "xs"

    def test_subtasks_get_no_guessed_size(self):
        assert extract_task_size({"title": "Fix bug", "is_subtask": True}) is None
        assert extract_task_size({"title": "Fix bug", "parent_id": 4}) is None
        assert extract_task_size({"title": "Fix bug", "current_story_points": 3}) is None

    def test_keyword_order(self):
        assert fallback_size({"title": "Create onboarding flow"}) == "s"
        assert fallback_size({"title": "Payments integration"}) == "m"
        assert fallback_size({"title": "Platform overhaul"}) == "xl"
        assert fallback_size({"title": "Write copy"}) == "m"


class TestDueDateFromProject:
    """Tests for due_date_from_project."""

    def test_sixty_percent_of_remaining_days(self):
        assert due_date_from_project("2026-01-11", today=date(2026, 1, 1)) == "2026-01-07"

    def test_at_least_one_day_ahead(self):
        assert due_date_from_project("2026-01-02", today=date(2026, 1, 1)) == "2026-01-02"

    def test_past_project_date(self):
        assert due_date_from_project("2025-12-01", today=date(2026, 1, 1)) is None

    def test_unparseable(self):
        assert due_date_from_project("next tuesday", today=date(2026, 1, 1)) is None


class TestValidateTasks:
    """Tests for validate_tasks."""

    def test_drops_invalid_entries_and_fills_defaults(self):
        tasks = validate_tasks(
            [
                {"title": "Set up database", "status": "bogus"},
                {"description": "No title"},
                "not a dict",
            ]
        )

        assert len(tasks) == 1
        task = tasks[0]
        assert task["title"] == "Set up database"
        assert task["status"] == "pending"
        assert task["description"] == ""
        assert task["size"] == "m"
        assert task["story_points_change_count"] == 0
        assert task["subtasks"] == []

    def test_keeps_explicit_due_date(self):
        tasks = validate_tasks(
            [{"title": "Launch", "due_date": "2030-05-01"}], project_due_date="2030-06-01"
        )

        assert tasks[0]["due_date"] == "2030-05-01"

    def test_non_list_input(self):
        assert validate_tasks(None) == []


class TestParseTextList:
    """Tests for parse_text_list."""

    def test_numbered_and_bulleted(self):
        content = "Here are the subtasks:\n1. Draft wireframes\n- Review with team\n* Go"

        titles = [t["title"] for t in parse_text_list(content)]

        assert titles == ["Draft wireframes", "Review with team"]

    def test_task_prefix(self):
        tasks = parse_text_list("Task 1: Configure CI pipeline")

        assert tasks[0]["title"] == "Configure CI pipeline"
        assert tasks[0]["status"] == "pending"

    def test_empty(self):
        assert parse_text_list("") == []
