"""Tests for the AI blueprint."""

import json
from unittest.mock import patch

import pytest

from foca.ai.cerebras_client import CerebrasProvider
from foca.ai.exceptions import ProviderHttpError
from foca.ai.models import AIResponse
from foca.ai.openai_client import OpenAIProvider
from foca.models import AIUsageLog, Setting


@pytest.fixture
def cerebras(app):
    """Configure Cerebras and stub its HTTP call."""
    Setting.set("ai.cerebrus.api_key", "csk-test")
    with patch.object(CerebrasProvider, "_send") as mock_send:
        yield mock_send


def _reply(content):
    return AIResponse(content=content, model="llama3.1-8b", tokens_used=40)


class TestProvidersEndpoint:
    """Tests for GET /api/ai/providers."""

    def test_lists_providers(self, client):
        Setting.set("ai.openai.api_key", "sk-1")

        res = client.get("/api/ai/providers")

        assert res.status_code == 200
        data = res.get_json()
        assert data["providers"]["openai"]["configured"] is True
        assert data["providers"]["cerebrus"]["configured"] is False
        assert data["active_provider"] == "cerebrus"
        assert data["has_configured_provider"] is True


class TestUsageEndpoint:
    """Tests for GET /api/ai/usage."""

    def test_local_only_when_unconfigured(self, client):
        res = client.get("/api/ai/usage")

        assert res.status_code == 200
        data = res.get_json()
        assert data["status"] == "local_only"
        assert data["local_usage"]["today"]["requests"] == 0

    def test_remote_usage_for_openai(self, client):
        Setting.set("ai.openai.api_key", "sk-1")
        with patch.object(
            OpenAIProvider, "get_remote_usage", return_value={"total_tokens": 900}
        ), patch.object(OpenAIProvider, "get_quota_info", return_value=None):
            res = client.get("/api/ai/usage?provider=openai")

        data = res.get_json()
        assert data["status"] == "success"
        assert data["api_usage"] == {"total_tokens": 900}

    def test_remote_error(self, client):
        Setting.set("ai.openai.api_key", "sk-1")
        with patch.object(
            OpenAIProvider, "get_remote_usage", side_effect=ProviderHttpError("down")
        ):
            res = client.get("/api/ai/usage?provider=openai")

        assert res.status_code == 200
        assert res.get_json()["status"] == "error"

    def test_unknown_provider(self, client):
        res = client.get("/api/ai/usage?provider=gemini")

        assert res.status_code == 400


class TestGenerateTasksEndpoint:
    """Tests for POST /api/ai/generate-tasks."""

    def test_success(self, client, cerebras):
        cerebras.return_value = _reply(
            json.dumps(
                {
                    "project_title": "Recipe App",
                    "tasks": [{"title": "Design data model"}],
                    "suggestions": ["Start with search"],
                }
            )
        )

        res = client.post(
            "/api/ai/generate-tasks",
            json={"description": "Build a recipe app", "project_type": "finite"},
        )

        assert res.status_code == 200
        data = res.get_json()
        assert data["success"] is True
        assert data["project_title"] == "Recipe App"
        assert data["tasks"][0]["title"] == "Design data model"
        assert data["communication"]["suggestions"] == ["Start with search"]
        assert AIUsageLog.query.filter_by(status="success").count() == 1

        prompt = cerebras.call_args.args[0][1]["content"]
        assert "Project Type: finite" in prompt

    def test_unusable_output(self, client, cerebras):
        cerebras.return_value = _reply("Sorry, I can't do that.")

        res = client.post("/api/ai/generate-tasks", json={"description": "Build it"})

        assert res.status_code == 200
        data = res.get_json()
        assert data["success"] is False
        assert data["tasks"] == []
        assert data["metadata"]["content"] == "Sorry, I can't do that."

    def test_vendor_failure_is_logged(self, client, cerebras):
        cerebras.side_effect = ProviderHttpError("Service unavailable", status_code=503)

        res = client.post("/api/ai/generate-tasks", json={"description": "Build it"})

        assert res.status_code == 200
        assert res.get_json()["success"] is False
        assert AIUsageLog.query.filter_by(status="error").count() == 1

    def test_description_required(self, client):
        res = client.post("/api/ai/generate-tasks", json={"description": "  "})

        assert res.status_code == 422
        assert "description" in res.get_json()["errors"]

    def test_requires_json(self, client):
        res = client.post("/api/ai/generate-tasks")

        assert res.status_code == 400

    def test_unconfigured_provider(self, client):
        res = client.post("/api/ai/generate-tasks", json={"description": "Build it"})

        assert res.status_code == 503

    def test_unknown_provider(self, client):
        res = client.post(
            "/api/ai/generate-tasks", json={"description": "Build it", "provider": "x"}
        )

        assert res.status_code == 400


class TestBreakdownEndpoint:
    """Tests for POST /api/ai/breakdown-task."""

    def test_success(self, client, cerebras):
        cerebras.return_value = _reply('{"subtasks": [{"title": "Write migration"}]}')

        res = client.post(
            "/api/ai/breakdown-task",
            json={
                "title": "Add billing",
                "description": "Stripe integration",
                "context": {"parent_task": {"title": "Payments", "size": "l"}},
            },
        )

        assert res.status_code == 200
        data = res.get_json()
        assert data["success"] is True
        assert data["tasks"][0]["title"] == "Write migration"
        assert data["tasks"][0]["size"] is None

    def test_context_must_be_object(self, client):
        res = client.post(
            "/api/ai/breakdown-task", json={"title": "Add billing", "context": "x"}
        )

        assert res.status_code == 422


class TestAnalysisEndpoints:
    """Tests for analyze-project and suggest-improvements."""

    def test_analyze_project(self, client, cerebras):
        cerebras.return_value = _reply("Moderate scope, two sprints.")

        res = client.post("/api/ai/analyze-project", json={"description": "A CRM"})

        assert res.status_code == 200
        assert res.get_json() == {
            "success": True,
            "analysis": "Moderate scope, two sprints.",
        }

    def test_analyze_project_vendor_error(self, client, cerebras):
        cerebras.side_effect = ProviderHttpError("Bad gateway", status_code=502)

        res = client.post("/api/ai/analyze-project", json={"description": "A CRM"})

        assert res.status_code == 502

    def test_suggest_improvements(self, client, cerebras):
        cerebras.return_value = _reply("- Add estimates\n- Split the API task")

        res = client.post(
            "/api/ai/suggest-improvements", json={"tasks": [{"title": "API"}]}
        )

        assert res.status_code == 200
        assert res.get_json()["suggestions"] == ["Add estimates", "Split the API task"]

    def test_suggest_improvements_requires_tasks(self, client):
        res = client.post("/api/ai/suggest-improvements", json={"tasks": []})

        assert res.status_code == 422
