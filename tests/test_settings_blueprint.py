"""Tests for the AI settings blueprint."""

from unittest.mock import patch

import pytest
from flask_bcrypt import generate_password_hash

from foca.ai.cerebras_client import CerebrasProvider
from foca.ai.exceptions import ProviderHttpError
from foca.ai.manager import AIManager
from foca.models import Setting, User


def _create_user(db, email, role):
    user = User(
        email=email,
        name=email.split("@")[0],
        password_hash=generate_password_hash("securepass123").decode("utf-8"),
        role=role,
    )
    db.session.add(user)
    db.session.commit()
    return user


class TestGetAISettings:
    """Tests for GET /api/settings/ai."""

    def test_defaults(self, client):
        res = client.get("/api/settings/ai")

        assert res.status_code == 200
        data = res.get_json()
        assert data["active_provider"] == "cerebrus"
        assert data["has_configured_provider"] is False
        assert data["provider_configs"]["openai"] == {
            "api_key": "",
            "has_api_key": False,
            "base_url": "https://api.openai.com/v1",
            "model": "gpt-4",
        }
        assert set(data["available_providers"]) == {"cerebrus", "openai", "anthropic"}
        assert data["permissions"] == {
            "can_manage_providers": True,
            "can_manage_default_ai": True,
        }

    def test_api_key_is_masked(self, client):
        Setting.set("ai.openai.api_key", "sk-abcdefgh12345678")
        Setting.set("ai.provider", "openai")

        res = client.get("/api/settings/ai")

        data = res.get_json()
        assert data["provider_configs"]["openai"]["api_key"] == "********5678"
        assert data["provider_configs"]["openai"]["has_api_key"] is True
        assert data["active_provider"] == "openai"
        assert data["has_configured_provider"] is True
        assert b"sk-abcdefgh12345678" not in res.data


class TestUpdateAISettings:
    """Tests for POST /api/settings/ai."""

    def test_persists_only_non_empty_fields(self, client):
        Setting.set("ai.anthropic.api_key", "sk-ant-existing")

        res = client.post(
            "/api/settings/ai",
            json={
                "provider": "cerebrus",
                "cerebrus_api_key": "csk-new",
                "anthropic_api_key": "",
            },
        )

        assert res.status_code == 200
        assert res.get_json()["success"] is True
        assert Setting.get("ai.provider") == "cerebrus"
        assert Setting.get("ai.cerebrus.api_key") == "csk-new"
        assert Setting.get("ai.anthropic.api_key") == "sk-ant-existing"
        for field in ("api_key", "base_url", "model"):
            assert Setting.has(f"ai.openai.{field}") is False

    def test_whitespace_only_fields_keep_stored_values(self, client):
        Setting.set("ai.anthropic.api_key", "sk-ant-existing")

        res = client.post(
            "/api/settings/ai",
            json={
                "provider": "anthropic",
                "anthropic_api_key": "   ",
                "anthropic_model": " claude-3-haiku-20240307 ",
            },
        )

        assert res.status_code == 200
        assert Setting.get("ai.anthropic.api_key") == "sk-ant-existing"
        assert Setting.get("ai.anthropic.model") == "claude-3-haiku-20240307"

    def test_new_settings_used_by_manager(self, client, manager):
        client.post(
            "/api/settings/ai",
            json={"provider": "openai", "openai_api_key": "sk-1", "openai_model": "gpt-5"},
        )

        provider = manager.provider()
        assert provider.get_name() == "openai"
        assert provider.model == "gpt-5"

    def test_requires_json(self, client):
        res = client.post("/api/settings/ai")

        assert res.status_code == 400

    def test_invalid_provider(self, client):
        res = client.post("/api/settings/ai", json={"provider": "gemini"})

        assert res.status_code == 422
        assert "provider" in res.get_json()["errors"]
        assert Setting.has("ai.provider") is False

    def test_missing_provider(self, client):
        res = client.post("/api/settings/ai", json={"openai_api_key": "sk-1"})

        assert res.status_code == 422
        assert "provider" in res.get_json()["errors"]

    def test_invalid_base_url(self, client):
        res = client.post(
            "/api/settings/ai",
            json={"provider": "openai", "openai_base_url": "not-a-url"},
        )

        assert res.status_code == 422
        assert "openai_base_url" in res.get_json()["errors"]

    def test_field_lengths(self, client):
        res = client.post(
            "/api/settings/ai",
            json={
                "provider": "openai",
                "openai_api_key": "k" * 256,
                "openai_model": "m" * 101,
            },
        )

        errors = res.get_json()["errors"]
        assert res.status_code == 422
        assert set(errors) == {"openai_api_key", "openai_model"}


class TestUpdateDefaultAI:
    """Tests for POST /api/settings/ai/default."""

    def test_saves_defaults(self, client):
        res = client.post(
            "/api/settings/ai/default",
            json={
                "provider": "anthropic",
                "model": "claude-3-haiku-20240307",
                "api_key": "sk-ant-project-default",
            },
        )

        assert res.status_code == 200
        defaults = res.get_json()["default_ai_settings"]
        assert defaults["provider"] == "anthropic"
        assert defaults["model"] == "claude-3-haiku-20240307"
        assert defaults["api_key"] == "********ault"
        assert Setting.get("ai.default.api_key") == "sk-ant-project-default"
        assert Setting.has("ai.default.base_url") is False

    def test_whitespace_only_api_key_keeps_stored_value(self, client):
        Setting.set("ai.default.api_key", "sk-ant-project-default")

        res = client.post(
            "/api/settings/ai/default",
            json={"provider": "openai", "model": "gpt-4", "api_key": "  "},
        )

        assert res.status_code == 200
        assert Setting.get("ai.default.api_key") == "sk-ant-project-default"

    def test_model_required(self, client):
        res = client.post("/api/settings/ai/default", json={"provider": "openai"})

        assert res.status_code == 422
        assert "model" in res.get_json()["errors"]


class TestTestAI:
    """Tests for POST /api/settings/ai/test."""

    payload = {
        "provider": "cerebrus",
        "api_key": "csk-test",
        "base_url": "https://api.cerebras.ai/v1",
        "model": "llama3.1-8b",
    }

    def test_validation_happens_before_provider_call(self, client):
        with patch.object(AIManager, "test_provider") as mock_test:
            res = client.post("/api/settings/ai/test", json={**self.payload, "api_key": ""})

        assert res.status_code == 422
        assert "api_key" in res.get_json()["errors"]
        mock_test.assert_not_called()

    def test_success(self, client):
        result = {
            "success": True,
            "message": "Provider is working correctly",
            "response": "Hello, I am working!",
            "tokens_used": 12,
            "response_time": 0.3,
        }
        with patch.object(AIManager, "test_provider", return_value=result) as mock_test:
            res = client.post("/api/settings/ai/test", json=self.payload)

        assert res.status_code == 200
        data = res.get_json()
        assert data["success"] is True
        assert data["details"]["response"] == "Hello, I am working!"
        mock_test.assert_called_once_with(
            "cerebrus",
            {
                "api_key": "csk-test",
                "base_url": "https://api.cerebras.ai/v1",
                "model": "llama3.1-8b",
            },
        )

    def test_provider_failure_is_reported(self, client):
        with patch.object(
            CerebrasProvider, "_send", side_effect=ProviderHttpError("invalid key")
        ):
            res = client.post("/api/settings/ai/test", json=self.payload)

        assert res.status_code == 200
        data = res.get_json()
        assert data["success"] is False
        assert data["message"] == "invalid key"
        assert Setting.has("ai.cerebrus.api_key") is False

    def test_unexpected_exception(self, client):
        with patch.object(AIManager, "test_provider", side_effect=RuntimeError("kaboom")):
            res = client.post("/api/settings/ai/test", json=self.payload)

        assert res.status_code == 500
        assert res.get_json()["success"] is False


class TestPermissions:
    """Role checks when authentication is enforced."""

    @pytest.fixture
    def secured_client(self, app):
        app.config["TESTING"] = False
        return app.test_client()

    def _login(self, client, email):
        return client.post(
            "/api/auth/login", json={"email": email, "password": "securepass123"}
        )

    def test_requires_login(self, secured_client):
        res = secured_client.get("/api/settings/ai")

        assert res.status_code == 401

    def test_admin_cannot_manage_providers(self, secured_client, db):
        _create_user(db, "admin@example.com", "admin")
        self._login(secured_client, "admin@example.com")

        res = secured_client.post(
            "/api/settings/ai", json={"provider": "openai", "openai_api_key": "sk-1"}
        )

        assert res.status_code == 403
        assert Setting.has("ai.openai.api_key") is False

    def test_admin_can_manage_defaults(self, secured_client, db):
        _create_user(db, "admin@example.com", "admin")
        self._login(secured_client, "admin@example.com")

        res = secured_client.post(
            "/api/settings/ai/default", json={"provider": "openai", "model": "gpt-4"}
        )
        settings = secured_client.get("/api/settings/ai").get_json()

        assert res.status_code == 200
        assert settings["permissions"] == {
            "can_manage_providers": False,
            "can_manage_default_ai": True,
        }

    def test_super_admin_can_manage_providers(self, secured_client, db):
        _create_user(db, "root@example.com", "super_admin")
        self._login(secured_client, "root@example.com")

        res = secured_client.post(
            "/api/settings/ai", json={"provider": "openai", "openai_api_key": "sk-1"}
        )

        assert res.status_code == 200

    def test_regular_user_cannot_read_settings(self, secured_client, db):
        _create_user(db, "user@example.com", "user")
        self._login(secured_client, "user@example.com")

        res = secured_client.get("/api/settings/ai")

        assert res.status_code == 403
