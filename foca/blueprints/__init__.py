"""Blueprints package."""

from .ai import ai_bp
from .auth import auth_bp
from .settings import settings_bp

__all__ = [
    "ai_bp",
    "auth_bp",
    "settings_bp",
]
