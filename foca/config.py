"""Application configuration."""

import os


class Config:
    """Base configuration."""

    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-key-change-in-production")
    DEBUG = False
    TESTING = False

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///foca.db")
    # Fix for Railway PostgreSQL URL format
    if SQLALCHEMY_DATABASE_URI.startswith("postgres://"):
        SQLALCHEMY_DATABASE_URI = SQLALCHEMY_DATABASE_URI.replace(
            "postgres://", "postgresql://", 1
        )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }

    # Active AI provider when no ai.provider setting has been saved
    AI_DEFAULT_PROVIDER = os.environ.get("AI_DEFAULT_PROVIDER", "cerebrus")

    # Request defaults shared by every provider
    AI_REQUEST_TIMEOUT = int(os.environ.get("AI_REQUEST_TIMEOUT", "30"))
    AI_MAX_TOKENS = int(os.environ.get("AI_MAX_TOKENS", "4000"))
    AI_TEMPERATURE = float(os.environ.get("AI_TEMPERATURE", "0.7"))

    # Cerebras Configuration
    CEREBRUS_API_KEY = os.environ.get("CEREBRUS_API_KEY")
    CEREBRUS_BASE_URL = os.environ.get(
        "CEREBRUS_BASE_URL", "https://api.cerebras.ai/v1"
    )
    CEREBRUS_MODEL = os.environ.get(
        "CEREBRUS_DEFAULT_MODEL", "llama-4-scout-17b-16e-instruct"
    )

    # OpenAI Configuration
    OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY")
    OPENAI_BASE_URL = os.environ.get("OPENAI_BASE_URL", "https://api.openai.com/v1")
    OPENAI_MODEL = os.environ.get("OPENAI_DEFAULT_MODEL", "gpt-4")
    OPENAI_ORGANIZATION = os.environ.get("OPENAI_ORGANIZATION")

    # Anthropic Configuration
    ANTHROPIC_API_KEY = os.environ.get("ANTHROPIC_API_KEY")
    ANTHROPIC_BASE_URL = os.environ.get(
        "ANTHROPIC_BASE_URL", "https://api.anthropic.com"
    )
    ANTHROPIC_MODEL = os.environ.get(
        "ANTHROPIC_DEFAULT_MODEL", "claude-3-sonnet-20240229"
    )

    # Usage tracking ($0.0015 per 1K tokens unless the provider says otherwise)
    AI_COST_PER_TOKEN = float(os.environ.get("AI_COST_PER_TOKEN", "0.0000015"))
    AI_USAGE_ESTIMATED_TOKENS = int(
        os.environ.get("AI_USAGE_ESTIMATED_TOKENS", "500")
    )
    AI_USAGE_RETENTION_DAYS = int(os.environ.get("AI_USAGE_RETENTION_DAYS", "90"))


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG = False


class TestingConfig(Config):
    """Testing configuration."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    # Providers must be configured explicitly through settings in tests
    CEREBRUS_API_KEY = None
    OPENAI_API_KEY = None
    ANTHROPIC_API_KEY = None
    AI_DEFAULT_PROVIDER = "cerebrus"
