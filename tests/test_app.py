"""Tests for app wiring, health check and CLI commands."""

from datetime import timedelta

from foca.models import AIUsageLog, Setting, User
from foca.time_utils import utcnow


class TestHealth:
    """Tests for /health."""

    def test_health(self, client):
        res = client.get("/health")

        assert res.status_code == 200
        data = res.get_json()
        assert data["status"] == "healthy"
        assert data["ai_configured"] is False

    def test_health_reports_configured_provider(self, client):
        Setting.set("ai.anthropic.api_key", "sk-ant-1")

        assert client.get("/health").get_json()["ai_configured"] is True


class TestCLI:
    """Tests for flask CLI commands."""

    def test_ai_test_unconfigured_provider(self, app):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["ai-test", "openai"])

        assert result.exit_code == 1
        assert "[failed] openai" in result.output

    def test_ai_test_all_providers(self, app):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["ai-test"])

        for name in ("cerebrus", "openai", "anthropic"):
            assert f"[failed] {name}" in result.output

    def test_prune_ai_usage(self, app, db):
        db.session.add(
            AIUsageLog(
                provider="openai",
                status="success",
                tokens=5,
                created_at=utcnow() - timedelta(days=40),
            )
        )
        db.session.add(AIUsageLog(provider="openai", status="success", tokens=5))
        db.session.commit()
        runner = app.test_cli_runner()

        result = runner.invoke(args=["prune-ai-usage", "--days", "30"])

        assert result.exit_code == 0
        assert "Deleted 1 AI usage logs older than 30 days" in result.output
        assert AIUsageLog.query.count() == 1

    def test_create_user(self, app):
        runner = app.test_cli_runner()

        result = runner.invoke(
            args=[
                "create-user",
                "Root@Example.com",
                "Root",
                "--password",
                "securepass123",
                "--role",
                "super_admin",
            ]
        )

        assert result.exit_code == 0
        user = User.query.filter_by(email="root@example.com").first()
        assert user is not None
        assert user.can_manage_providers is True

    def test_create_user_invalid_email(self, app):
        runner = app.test_cli_runner()

        result = runner.invoke(
            args=["create-user", "nope", "Nope", "--password", "securepass123"]
        )

        assert result.exit_code != 0
        assert User.query.count() == 0
