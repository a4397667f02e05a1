"""Main Flask application."""

import logging
import os

import click
from flask import Flask, jsonify
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_migrate import Migrate

from foca.ai import init_ai_manager, init_usage_tracker
from foca.ai.catalog import PROVIDER_NAMES
from foca.blueprints.ai import ai_bp
from foca.blueprints.auth import auth_bp
from foca.blueprints.settings import settings_bp
from foca.config import Config
from foca.models import USER_ROLES, User, db
from foca.utils import validate_email

logger = logging.getLogger(__name__)

bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()


@login_manager.user_loader
def load_user(user_id: str):
    """Load user by ID for Flask-Login."""
    return db.session.get(User, user_id)


@login_manager.unauthorized_handler
def unauthorized():
    """Handle unauthorized access."""
    return jsonify({"error": "Authentication required"}), 401


def create_app(config_class: type = Config) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    bcrypt.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db, directory="migrations")

    # Keep bootstrap table creation for fresh ephemeral environments.
    with app.app_context():
        db.create_all()

    # Initialize usage tracker and AI manager
    tracker = init_usage_tracker(app)
    init_ai_manager(app, usage_tracker=tracker)

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(ai_bp)

    @app.route("/health")
    def health_check():
        """Health check endpoint."""
        manager = app.extensions["ai_manager"]
        return jsonify(
            {
                "status": "healthy",
                "version": "0.1.0",
                "ai_configured": manager.has_configured_provider(),
            }
        )

    # Register CLI commands
    @app.cli.command("ai-test")
    @click.argument("provider", required=False)
    def ai_test_command(provider):
        """Test one AI provider, or all of them when none is given."""
        manager = app.extensions["ai_manager"]
        names = [provider] if provider else list(PROVIDER_NAMES)
        failures = 0
        for name in names:
            result = manager.test_provider(name)
            if result["success"]:
                print(
                    f"[ok] {name}: {result['response']!r} "
                    f"({result['response_time']}s, {result['tokens_used']} tokens)"
                )
            else:
                failures += 1
                print(f"[failed] {name}: {result['message']}")
        if failures:
            raise SystemExit(1)

    @app.cli.command("prune-ai-usage")
    @click.option("--days", type=int, default=None, help="Retention in days")
    def prune_ai_usage_command(days):
        """Delete AI usage logs past the retention window."""
        days = days if days is not None else app.config["AI_USAGE_RETENTION_DAYS"]
        count = app.extensions["ai_usage_tracker"].prune(days)
        print(f"Deleted {count} AI usage logs older than {days} days")

    @app.cli.command("create-user")
    @click.argument("email")
    @click.argument("name")
    @click.password_option()
    @click.option("--role", type=click.Choice(USER_ROLES), default="user")
    def create_user_command(email, name, password, role):
        """Create a user (use --role super_admin for the first account)."""
        email = email.strip().lower()
        if not validate_email(email):
            raise click.BadParameter("Valid email is required", param_hint="EMAIL")
        if User.query.filter_by(email=email).first():
            raise click.ClickException("An account with this email already exists")

        user = User(
            email=email,
            name=name,
            password_hash=bcrypt.generate_password_hash(password).decode("utf-8"),
            role=role,
        )
        db.session.add(user)
        db.session.commit()
        print(f"Created {role} {email}")

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=os.environ.get("FLASK_DEBUG", "false").lower() == "true")
