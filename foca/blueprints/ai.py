"""
AI Blueprint

REST API endpoints for AI-assisted planning.

Endpoints:
- GET /api/ai/providers - Provider catalog with configured flags
- GET /api/ai/usage - Local and provider-reported usage metrics
- POST /api/ai/generate-tasks - Generate tasks for a project description
- POST /api/ai/breakdown-task - Break a task into subtasks
- POST /api/ai/analyze-project - Free-text project analysis
- POST /api/ai/suggest-improvements - Suggestions for an existing task list
"""

import logging

from flask import Blueprint, jsonify, request

from foca.ai.exceptions import (
    AIError,
    UnconfiguredProviderError,
    UnknownProviderError,
)
from foca.ai.manager import get_ai_manager
from foca.ai.usage_tracker import get_usage_tracker

from .auth import admin_required, login_required

logger = logging.getLogger(__name__)

ai_bp = Blueprint("ai", __name__)

# Request fields forwarded to the provider as options
OPTION_FIELDS = ("provider", "model", "temperature", "max_tokens")
GENERATION_FIELDS = ("project_type", "project_due_date", "user_feedback")
MAX_DESCRIPTION_LENGTH = 10000


def _options(data: dict, extra: tuple = ()) -> dict:
    return {k: data[k] for k in OPTION_FIELDS + extra if data.get(k) not in (None, "")}


def _provider_error(e: AIError):
    """Map provider errors to HTTP responses."""
    if isinstance(e, UnknownProviderError):
        return jsonify({"error": str(e)}), 400
    if isinstance(e, UnconfiguredProviderError):
        return jsonify({"error": str(e)}), 503
    return jsonify({"error": f"AI request failed: {e}"}), 502


def _required_text(data: dict, field: str):
    value = data.get(field)
    value = value.strip() if isinstance(value, str) else ""
    if not value:
        return None, {field: f"The {field} field is required."}
    if len(value) > MAX_DESCRIPTION_LENGTH:
        return None, {
            field: f"The {field} field must not exceed {MAX_DESCRIPTION_LENGTH} characters."
        }
    return value, None


@ai_bp.route("/api/ai/providers", methods=["GET"])
@login_required
def api_providers():
    """
    List providers.

    Response:
        - providers: {name: {name, display_name, description, models, configured}}
        - active_provider: str
        - has_configured_provider: bool
    """
    try:
        manager = get_ai_manager()
        return jsonify(
            {
                "providers": manager.get_available_providers(),
                "active_provider": manager.default_provider_name(),
                "has_configured_provider": manager.has_configured_provider(),
            }
        )
    except Exception as e:
        logger.exception(f"Error listing AI providers: {e}")
        return jsonify({"error": "Failed to list AI providers"}), 500


@ai_bp.route("/api/ai/usage", methods=["GET"])
@admin_required
def api_usage():
    """
    Usage dashboard metrics.

    Query params:
        - provider: provider name (active provider when omitted)

    Response:
        - status: success | local_only | error
        - local_usage: {today, month, recent_requests}
        - api_usage, quota_info: provider-reported data or null
        - last_updated: ISO timestamp
    """
    try:
        manager = get_ai_manager()
        try:
            provider = manager.provider(request.args.get("provider") or None)
        except UnconfiguredProviderError:
            provider = None
        except UnknownProviderError as e:
            return jsonify({"error": str(e)}), 400

        return jsonify(get_usage_tracker().get_usage_metrics(provider))
    except Exception as e:
        logger.exception(f"Error loading AI usage: {e}")
        return jsonify({"error": "Failed to load AI usage"}), 500


@ai_bp.route("/api/ai/generate-tasks", methods=["POST"])
@login_required
def api_generate_tasks():
    """
    Generate tasks for a project description.

    Request (JSON):
        - description: str (required)
        - provider, model, temperature, max_tokens: optional overrides
        - project_type: "finite" | "iterative", optional
        - project_due_date: YYYY-MM-DD, optional
        - user_feedback: str, optional

    Response:
        AITaskResponse dict; ``success`` false when the model output was unusable
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "JSON body required"}), 400

    description, error = _required_text(data, "description")
    if error:
        return jsonify({"error": "Validation failed", "errors": error}), 422

    try:
        result = get_ai_manager().generate_tasks(
            description, **_options(data, GENERATION_FIELDS)
        )
        return jsonify(result.to_dict())
    except AIError as e:
        return _provider_error(e)
    except Exception as e:
        logger.exception(f"Task generation error: {e}")
        return jsonify({"error": "Task generation failed"}), 500


@ai_bp.route("/api/ai/breakdown-task", methods=["POST"])
@login_required
def api_breakdown_task():
    """
    Break a task into subtasks.

    Request (JSON):
        - title: str (required)
        - description: str, optional
        - context: {project_context, parent_task, sample_existing_tasks,
          user_feedback, project_due_date}, optional
        - provider, model, temperature, max_tokens: optional overrides
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "JSON body required"}), 400

    title, error = _required_text(data, "title")
    if error:
        return jsonify({"error": "Validation failed", "errors": error}), 422

    context = data.get("context") or {}
    if not isinstance(context, dict):
        return jsonify(
            {"error": "Validation failed", "errors": {"context": "Must be an object."}}
        ), 422

    try:
        result = get_ai_manager().breakdown_task(
            title,
            data.get("description") or "",
            context,
            **_options(data),
        )
        return jsonify(result.to_dict())
    except AIError as e:
        return _provider_error(e)
    except Exception as e:
        logger.exception(f"Task breakdown error: {e}")
        return jsonify({"error": "Task breakdown failed"}), 500


@ai_bp.route("/api/ai/analyze-project", methods=["POST"])
@login_required
def api_analyze_project():
    """
    Analyze a project description.

    Request (JSON):
        - description: str (required)
        - existing_tasks: list of task dicts, optional

    Response:
        - success: boolean
        - analysis: str
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "JSON body required"}), 400

    description, error = _required_text(data, "description")
    if error:
        return jsonify({"error": "Validation failed", "errors": error}), 422

    try:
        analysis = get_ai_manager().analyze_project(
            description, data.get("existing_tasks") or [], **_options(data)
        )
        return jsonify({"success": True, "analysis": analysis})
    except AIError as e:
        return _provider_error(e)
    except Exception as e:
        logger.exception(f"Project analysis error: {e}")
        return jsonify({"error": "Project analysis failed"}), 500


@ai_bp.route("/api/ai/suggest-improvements", methods=["POST"])
@login_required
def api_suggest_improvements():
    """
    Suggest improvements for a task list.

    Request (JSON):
        - tasks: list of task dicts (required, non-empty)

    Response:
        - success: boolean
        - suggestions: list of str
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "JSON body required"}), 400

    tasks = data.get("tasks")
    if not isinstance(tasks, list) or not tasks:
        return jsonify(
            {
                "error": "Validation failed",
                "errors": {"tasks": "The tasks field must be a non-empty list."},
            }
        ), 422

    try:
        suggestions = get_ai_manager().suggest_task_improvements(tasks, **_options(data))
        return jsonify({"success": True, "suggestions": suggestions})
    except AIError as e:
        return _provider_error(e)
    except Exception as e:
        logger.exception(f"Task suggestion error: {e}")
        return jsonify({"error": "Task suggestions failed"}), 500
