"""
Legal Desk
Flask Application Factory.

Usage:
    from legal_desk import create_app
    app = create_app()           # defaults to "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask, abort, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate

from legal_desk.config import config
from legal_desk.models import db
from legal_desk.middleware.logging_config import configure_logging
from legal_desk.middleware.timing import init_request_timing
from legal_desk.middleware.diagnostics import run_startup_diagnostics
from legal_desk.middleware.rate_limiter import init_rate_limits
from legal_desk.middleware.jwt_auth import init_jwt_middleware
from legal_desk.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)

# ── SQLite FK enforcement (global engine event) ─────────────────────────
from sqlalchemy import event as _sa_event, engine as _sa_engine


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # limits are applied per blueprint
    storage_uri=os.getenv("RATELIMIT_STORAGE_URI", "memory://"),
)

# Paths that accept multipart bodies instead of JSON
MULTIPART_PATHS = ("/api/v1/upload",)

SEED_USERS = [
    ("Oliva Perera", "oliva.perera@testdimo.com", "INITIATOR", "Operations"),
    ("Grace Perera", "grace.perera@testdimo.com", "BUM", "Business Unit"),
    ("Madurika Samarasekera", "madurika.sama@testdimo.com", "FBP", "Finance"),
    ("Mangala Wickramasinghe", "mangala.wick@testdimo.com", "CLUSTER_HEAD", "Cluster"),
    ("Chief Executive", "ceo@testdimo.com", "CEO", "Executive"),
    ("Sandalie Gomes", "sandalie.gomes@testdimo.com", "LEGAL_OFFICER", "Legal"),
    ("Dinali Gurusinghe", "dinali.guru@testdimo.com", "LEGAL_GM", "Legal"),
    ("Special Approver", "special.approver@testdimo.com", "SPECIAL_APPROVER", "Legal"),
    ("Finance Team", "finance.team@testdimo.com", "FINANCE", "Finance"),
    ("Ruwan Fernando", "court.officer@testdimo.com", "COURT_OFFICER", "Legal"),
    ("Platform Admin", "admin@testdimo.com", "ADMIN", "IT"),
]


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    config_class = config[config_name]
    config_class.validate()
    app.config.from_object(config_class)

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── JWT auth middleware ──────────────────────────────────────────────
    init_jwt_middleware(app)

    # ── Request guards (input length + Content-Type) ─────────────────────
    app.config.setdefault("MAX_CONTENT_LENGTH", app.config.get("MAX_UPLOAD_SIZE", 2 * 1024 * 1024))

    @app.before_request
    def _guard_request():
        max_len = app.config.get("MAX_CONTENT_LENGTH")
        if max_len and request.content_length and request.content_length > max_len:
            abort(413, description="Request body too large")
        if request.method in ("POST", "PUT", "PATCH") and request.path.startswith("/api/"):
            ct = request.content_type or ""
            if request.path.startswith(MULTIPART_PATHS):
                if "multipart/form-data" not in ct:
                    abort(415, description="Content-Type must be multipart/form-data")
                return None
            if request.data and "json" not in ct:
                abort(415, description="Content-Type must be application/json")

    # ── Import all models so Alembic can detect them ─────────────────────
    from legal_desk.models import auth as _auth_models                # noqa: F401
    from legal_desk.models import form_config as _form_config_models  # noqa: F401
    from legal_desk.models import submission as _submission_models    # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    with app.app_context():
        try:
            db.create_all()
            app.logger.info("db.create_all() completed successfully")
        except Exception as e:
            app.logger.warning("db.create_all() failed: %s", e)

    # ── Blueprints ───────────────────────────────────────────────────────
    from legal_desk.blueprints.health_bp import health_bp
    from legal_desk.blueprints.dashboard_bp import dashboard_bp
    from legal_desk.blueprints.submission_bp import submission_bp
    from legal_desk.blueprints.approval_bp import approval_bp
    from legal_desk.blueprints.settings_bp import settings_bp
    from legal_desk.blueprints.user_bp import user_bp
    from legal_desk.blueprints.upload_bp import upload_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(submission_bp)
    app.register_blueprint(approval_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(user_bp)
    app.register_blueprint(upload_bp)

    # ── Error handlers ───────────────────────────────────────────────────
    register_error_handlers(app)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("seed-form-configs")
    def seed_form_configs_cmd():
        """Seed default configs for forms that have none."""
        from legal_desk.services.form_config_service import seed_default_form_configs
        count = seed_default_form_configs()
        logger.info("Seeded %s new form configs.", count)

    @app.cli.command("seed-users")
    def seed_users_cmd():
        """Seed the demo user directory (existing emails are skipped)."""
        from legal_desk.services.user_service import create_user, find_by_email
        created = 0
        for name, email, role, department in SEED_USERS:
            if find_by_email(email) is not None:
                continue
            create_user(name, email, role, department, form_ids=list(range(1, 11)), commit=False)
            created += 1
        db.session.commit()
        logger.info("Seeded %s new users.", created)

    @app.cli.command("issue-token")
    @click.argument("email")
    def issue_token_cmd(email):
        """Print a development access token for a seeded user."""
        from legal_desk.services.jwt_service import generate_access_token
        from legal_desk.services.user_service import find_by_email, normalize_email
        user = find_by_email(normalize_email(email))
        if user is None:
            raise click.ClickException(f"No user with email {email}")
        click.echo(generate_access_token(user.id, user.role, email=user.email, name=user.name))

    # ── Startup diagnostics ──────────────────────────────────────────────
    run_startup_diagnostics(app)

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
