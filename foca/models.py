"""Database models for users, settings and AI usage tracking."""

import json
import uuid
from datetime import datetime
from typing import Any

from flask_login import UserMixin
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

USER_ROLES = ("user", "admin", "super_admin")
SETTING_TYPES = ("string", "boolean", "integer", "json", "array")


def generate_uuid() -> str:
    """Generate a UUID string."""
    return str(uuid.uuid4())


class User(UserMixin, db.Model):  # type: ignore[name-defined]
    """
    Application user.

    Only the role matters to the AI layer: super admins manage provider
    credentials, admins manage the default configuration for new projects.
    """

    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default="user")
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def is_super_admin(self) -> bool:
        return self.role == "super_admin"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def can_manage_providers(self) -> bool:
        """Provider API keys and base URLs are super admin only."""
        return self.is_super_admin

    @property
    def can_manage_default_ai(self) -> bool:
        """Default provider/model for new projects."""
        return self.is_super_admin or self.is_admin

    def to_dict(self) -> dict:
        """Convert user to dictionary."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"


class Setting(db.Model):  # type: ignore[name-defined]
    """
    Generic key-value settings store.

    Values are persisted as text and cast back according to ``type`` when read.
    AI configuration lives under ``ai.<provider>.<field>``, ``ai.default.<field>``
    and ``ai.provider``.
    """

    __tablename__ = "settings"

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(255), nullable=False, unique=True, index=True)
    value = db.Column(db.Text)
    type = db.Column(db.String(20), nullable=False, default="string")
    description = db.Column(db.String(255))
    is_public = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """Get a setting value by key, or ``default`` when it does not exist."""
        setting = cls.query.filter_by(key=key).first()
        if setting is None:
            return default
        return cls.cast_value(setting.value, setting.type)

    @classmethod
    def set(
        cls,
        key: str,
        value: Any,
        type: str = "string",
        description: str | None = None,
        is_public: bool = False,
    ) -> "Setting":
        """Create or update a setting."""
        if type not in SETTING_TYPES:
            raise ValueError(f"Unsupported setting type: {type}")

        setting = cls.query.filter_by(key=key).first()
        if setting is None:
            setting = cls(key=key)
            db.session.add(setting)

        setting.value = cls.prepare_value(value, type)
        setting.type = type
        setting.description = description
        setting.is_public = is_public
        db.session.commit()

        return setting

    @classmethod
    def has(cls, key: str) -> bool:
        return cls.query.filter_by(key=key).first() is not None

    @classmethod
    def forget(cls, key: str) -> bool:
        """Delete a setting. Returns True if a row was removed."""
        deleted = cls.query.filter_by(key=key).delete()
        db.session.commit()
        return deleted > 0

    @classmethod
    def all_settings(cls) -> dict[str, Any]:
        return {s.key: cls.cast_value(s.value, s.type) for s in cls.query.all()}

    @classmethod
    def public_settings(cls) -> dict[str, Any]:
        return {
            s.key: cls.cast_value(s.value, s.type)
            for s in cls.query.filter_by(is_public=True).all()
        }

    @staticmethod
    def cast_value(value: str | None, type: str) -> Any:
        if value is None:
            return None
        if type == "boolean":
            return value not in ("", "0", "false")
        if type == "integer":
            return int(value)
        if type in ("json", "array"):
            return json.loads(value)
        return str(value)

    @staticmethod
    def prepare_value(value: Any, type: str) -> str | None:
        if value is None:
            return None
        if type == "boolean":
            return "1" if value else "0"
        if type in ("json", "array"):
            return json.dumps(value)
        return str(value)

    def __repr__(self) -> str:
        return f"<Setting {self.key} ({self.type})>"


class AIUsageLog(db.Model):  # type: ignore[name-defined]
    """
    Append-only log of AI provider calls.

    One row per request; daily and monthly counters are aggregated at read time.
    """

    __tablename__ = "ai_usage_logs"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    provider = db.Column(db.String(50), nullable=False, index=True)
    model = db.Column(db.String(100))
    status = db.Column(db.String(20), nullable=False)  # 'success' or 'error'
    tokens = db.Column(db.Integer, default=0)
    cost = db.Column(db.Float)
    error = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def to_dict(self) -> dict:
        """Convert usage entry to dictionary."""
        return {
            "id": self.id,
            "provider": self.provider,
            "model": self.model,
            "status": self.status,
            "tokens": self.tokens,
            "cost": self.cost,
            "error": self.error,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<AIUsageLog {self.provider} {self.status} ({self.tokens} tokens)>"
