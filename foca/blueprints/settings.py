"""
Settings Blueprint

REST API endpoints for AI provider configuration.

Endpoints:
- GET /api/settings/ai - Provider configuration, catalog and permissions
- POST /api/settings/ai - Save the active provider and its credentials
- POST /api/settings/ai/default - Save the default AI config for new projects
- POST /api/settings/ai/test - Test a provider with unsaved credentials
"""

import logging

from flask import Blueprint, jsonify, request

from foca.ai.catalog import PROVIDER_NAMES
from foca.ai.manager import get_ai_manager
from foca.models import Setting, db
from foca.utils import mask_secret, validate_url

from .auth import admin_required, get_current_user, super_admin_required

logger = logging.getLogger(__name__)

settings_bp = Blueprint("settings", __name__)

MAX_KEY_LENGTH = 255
MAX_URL_LENGTH = 255
MAX_MODEL_LENGTH = 100


def _validation_error(errors: dict):
    return jsonify({"error": "Validation failed", "errors": errors}), 422


def _check_provider(data: dict, errors: dict) -> None:
    provider = data.get("provider")
    if not provider:
        errors["provider"] = "The provider field is required."
    elif provider not in PROVIDER_NAMES:
        errors["provider"] = f"Provider must be one of: {', '.join(PROVIDER_NAMES)}."


def _check_string(data: dict, field: str, max_length: int, errors: dict, required=False):
    value = data.get(field)
    if value in (None, ""):
        if required:
            errors[field] = f"The {field} field is required."
        return
    if not isinstance(value, str):
        errors[field] = f"The {field} field must be a string."
    elif len(value) > max_length:
        errors[field] = f"The {field} field must not exceed {max_length} characters."


def _check_url(data: dict, field: str, errors: dict, required=False):
    _check_string(data, field, MAX_URL_LENGTH, errors, required=required)
    value = data.get(field)
    if field not in errors and value and not validate_url(value):
        errors[field] = f"The {field} field must be a valid URL."


def _public_default_settings(manager) -> dict:
    defaults = manager.default_settings()
    defaults["api_key"] = mask_secret(defaults.get("api_key"))
    return defaults


def _permissions() -> dict:
    user = get_current_user()
    if user is None:
        # Testing mode bypasses authentication
        return {"can_manage_providers": True, "can_manage_default_ai": True}
    return {
        "can_manage_providers": user.can_manage_providers,
        "can_manage_default_ai": user.can_manage_default_ai,
    }


@settings_bp.route("/api/settings/ai", methods=["GET"])
@admin_required
def api_get_ai_settings():
    """
    Get the AI settings page payload.

    Response:
        - default_ai_settings: dict for new projects
        - provider_configs: per provider {api_key (masked), has_api_key,
          base_url, model}
        - available_providers: catalog with configured flags
        - active_provider: str
        - has_configured_provider: bool
        - permissions: dict
    """
    try:
        manager = get_ai_manager()

        provider_configs = {}
        for name in PROVIDER_NAMES:
            config = manager.resolve_config(name)
            provider_class = manager.providers[name]
            provider_configs[name] = {
                "api_key": mask_secret(config.get("api_key")),
                "has_api_key": bool(config.get("api_key")),
                "base_url": config.get("base_url") or provider_class.default_base_url,
                "model": config.get("model") or provider_class.default_model,
            }

        return jsonify(
            {
                "default_ai_settings": _public_default_settings(manager),
                "provider_configs": provider_configs,
                "available_providers": manager.get_available_providers(),
                "active_provider": manager.default_provider_name(),
                "has_configured_provider": manager.has_configured_provider(),
                "permissions": _permissions(),
            }
        )

    except Exception as e:
        logger.exception(f"Error loading AI settings: {e}")
        return jsonify({"error": "Failed to load AI settings"}), 500


@settings_bp.route("/api/settings/ai", methods=["POST"])
@super_admin_required
def api_update_ai_settings():
    """
    Save the active provider and provider credentials.

    Request (JSON):
        - provider: cerebrus | openai | anthropic (required)
        - <provider>_api_key: str, optional
        - <provider>_base_url: URL, optional
        - <provider>_model: str, optional

    Only non-empty fields are written, so leaving a key blank keeps the
    stored one.
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "JSON body required"}), 400

    errors: dict = {}
    _check_provider(data, errors)
    for name in PROVIDER_NAMES:
        _check_string(data, f"{name}_api_key", MAX_KEY_LENGTH, errors)
        _check_url(data, f"{name}_base_url", errors)
        _check_string(data, f"{name}_model", MAX_MODEL_LENGTH, errors)
    if errors:
        return _validation_error(errors)

    try:
        Setting.set("ai.provider", data["provider"], description="Active AI provider")

        updated = []
        for name in PROVIDER_NAMES:
            for field in ("api_key", "base_url", "model"):
                value = (data.get(f"{name}_{field}") or "").strip()
                if value:
                    Setting.set(f"ai.{name}.{field}", value)
                    updated.append(f"ai.{name}.{field}")

        logger.info(
            "AI settings updated: provider=%s fields=%s", data["provider"], updated
        )

        return jsonify(
            {
                "success": True,
                "message": "AI settings updated successfully",
                "active_provider": data["provider"],
            }
        )

    except Exception as e:
        db.session.rollback()
        logger.exception(f"Error updating AI settings: {e}")
        return jsonify({"error": "Failed to update AI settings"}), 500


@settings_bp.route("/api/settings/ai/default", methods=["POST"])
@admin_required
def api_update_default_ai():
    """
    Save the default AI configuration for new projects.

    Request (JSON):
        - provider: str (required)
        - model: str (required)
        - api_key: str, optional
        - base_url: URL, optional
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "JSON body required"}), 400

    errors: dict = {}
    _check_provider(data, errors)
    _check_string(data, "model", MAX_MODEL_LENGTH, errors, required=True)
    _check_string(data, "api_key", MAX_KEY_LENGTH, errors)
    _check_url(data, "base_url", errors)
    if errors:
        return _validation_error(errors)

    try:
        Setting.set("ai.default.provider", data["provider"])
        Setting.set("ai.default.model", data["model"])
        for field in ("api_key", "base_url"):
            value = (data.get(field) or "").strip()
            if value:
                Setting.set(f"ai.default.{field}", value)

        return jsonify(
            {
                "success": True,
                "message": "Default AI settings updated successfully",
                "default_ai_settings": _public_default_settings(get_ai_manager()),
            }
        )

    except Exception as e:
        db.session.rollback()
        logger.exception(f"Error updating default AI settings: {e}")
        return jsonify({"error": "Failed to update default AI settings"}), 500


@settings_bp.route("/api/settings/ai/test", methods=["POST"])
@super_admin_required
def api_test_ai():
    """
    Test a provider with the submitted (unsaved) credentials.

    Request (JSON):
        - provider, api_key, base_url, model (all required)

    Response:
        - success: boolean
        - message: str
        - details: test result (response, tokens_used, response_time)
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "JSON body required"}), 400

    errors: dict = {}
    _check_provider(data, errors)
    _check_string(data, "api_key", MAX_KEY_LENGTH, errors, required=True)
    _check_url(data, "base_url", errors, required=True)
    _check_string(data, "model", MAX_MODEL_LENGTH, errors, required=True)
    if errors:
        return _validation_error(errors)

    try:
        result = get_ai_manager().test_provider(
            data["provider"],
            {
                "api_key": data["api_key"],
                "base_url": data["base_url"],
                "model": data["model"],
            },
        )
        return jsonify(
            {
                "success": result["success"],
                "message": result["message"],
                "details": result,
            }
        )

    except Exception as e:
        logger.exception(f"Error testing AI provider: {e}")
        return jsonify({"success": False, "message": f"Test failed: {e}"}), 500
