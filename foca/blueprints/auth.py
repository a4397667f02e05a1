"""
Auth Blueprint

REST API endpoints for user authentication, plus the role decorators shared
by the settings and AI blueprints.

Endpoints:
- POST /api/auth/login - Login
- POST /api/auth/logout - Logout
- GET /api/auth/me - Current user info
"""

import logging
from functools import wraps

from flask import Blueprint, current_app, jsonify, request
from flask_bcrypt import check_password_hash
from flask_login import current_user, login_required as flask_login_required
from flask_login import login_user, logout_user

from foca.models import User

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)


def get_current_user():
    """Get current authenticated user (None in testing mode)."""
    if current_app.config.get("TESTING"):
        return None
    if current_user.is_authenticated:
        return current_user
    return None


def _require(check=None):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if current_app.config.get("TESTING"):
                return f(*args, **kwargs)

            if not current_user.is_authenticated:
                return jsonify({"error": "Authentication required"}), 401
            if check is not None and not check(current_user):
                return jsonify({"error": "Insufficient permissions"}), 403

            return f(*args, **kwargs)

        return decorated_function

    return decorator


def login_required(f):
    """Require login decorator. Bypassed in testing mode."""
    return _require()(f)


def super_admin_required(f):
    """Provider credentials are managed by super admins only."""
    return _require(lambda user: user.can_manage_providers)(f)


def admin_required(f):
    """Admins and super admins manage the default AI configuration."""
    return _require(lambda user: user.can_manage_default_ai)(f)


@auth_bp.route("/api/auth/login", methods=["POST"])
def api_login():
    """
    Login with email and password.

    Request (JSON):
        - email: User email (required)
        - password: Password (required)

    Response:
        - success: boolean
        - user: User info dict
    """
    try:
        data = request.get_json(silent=True)
        if not data:
            return jsonify({"error": "JSON body required"}), 400

        email = (data.get("email") or "").strip().lower()
        password = data.get("password") or ""

        if not email or not password:
            return jsonify({"error": "Email and password are required"}), 400

        user = User.query.filter_by(email=email).first()

        if not user or not check_password_hash(user.password_hash, password):
            return jsonify({"error": "Invalid email or password"}), 401

        if not user.is_active:
            return jsonify({"error": "Account is deactivated"}), 403

        login_user(user)

        return jsonify({"success": True, "user": user.to_dict()})

    except Exception as e:
        logger.exception(f"Login error: {e}")
        return jsonify({"error": "Login failed"}), 500


@auth_bp.route("/api/auth/logout", methods=["POST"])
@flask_login_required
def api_logout():
    """Logout current user."""
    logout_user()
    return jsonify({"success": True})


@auth_bp.route("/api/auth/me", methods=["GET"])
@flask_login_required
def api_me():
    """
    Get current user info.

    Response:
        - success: boolean
        - user: User info dict with role and AI permissions
    """
    user = current_user.to_dict()
    user["permissions"] = {
        "can_manage_providers": current_user.can_manage_providers,
        "can_manage_default_ai": current_user.can_manage_default_ai,
    }
    return jsonify({"success": True, "user": user})
