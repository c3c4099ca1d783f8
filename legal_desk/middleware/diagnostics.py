"""
Startup diagnostics, run once from ``create_app``.

Logs a summary banner and one warning per problem found: unreachable
database, tables missing from the schema, forms without a config, an upload
folder that cannot be created. Problems are reported, never raised; the app
still starts so the health endpoint can describe them.
"""

import logging
import os
import sys

from flask import Flask
from sqlalchemy import func, inspect as sa_inspect, select
from sqlalchemy.exc import SQLAlchemyError

from legal_desk.models import db
from legal_desk.models.form_config import FORM_CATALOG, FormConfig

logger = logging.getLogger(__name__)


def _db_kind(uri):
    for marker, name in (("postgresql", "PostgreSQL"), ("sqlite", "SQLite"), ("mysql", "MySQL")):
        if marker in uri:
            return name
    return "unknown"


def _missing_tables():
    expected = set(db.metadata.tables)
    return sorted(expected - set(sa_inspect(db.engine).get_table_names()))


def _unconfigured_forms():
    configured = set(db.session.execute(select(FormConfig.form_id)).scalars())
    return [form_id for form_id in FORM_CATALOG if form_id not in configured]


def run_startup_diagnostics(app: Flask):
    """Collect and log startup checks. Skipped under TESTING."""
    if app.config.get("TESTING"):
        return

    issues: list[str] = []
    db_uri = str(app.config.get("SQLALCHEMY_DATABASE_URI", ""))
    db_status = "ok"
    tables = forms = "?"

    with app.app_context():
        try:
            db.session.execute(db.text("SELECT 1"))
            missing = _missing_tables()
            if missing:
                issues.append(f"Missing tables {missing}: run 'flask db upgrade'")
            tables = str(len(db.metadata.tables) - len(missing))

            unconfigured = _unconfigured_forms()
            if unconfigured:
                issues.append(f"Forms without config {unconfigured}: run 'flask seed-form-configs'")
            forms = f"{len(FORM_CATALOG) - len(unconfigured)}/{len(FORM_CATALOG)}"

            users = db.session.execute(
                select(func.count()).select_from(db.metadata.tables["users"])
            ).scalar_one()
            if users == 0:
                issues.append("User directory is empty: run 'flask seed-users'")
        except SQLAlchemyError as exc:
            db.session.rollback()
            db_status = "FAILED"
            issues.append(f"Database unreachable: {exc}")

    upload_folder = app.config.get("UPLOAD_FOLDER", "")
    try:
        os.makedirs(upload_folder, exist_ok=True)
        uploads = upload_folder
    except OSError as exc:
        uploads = "unavailable"
        issues.append(f"Upload folder {upload_folder!r} cannot be created: {exc}")

    py = ".".join(str(part) for part in sys.version_info[:3])
    rows = (
        ("Python", py),
        ("Debug", str(app.debug)),
        ("Database", f"{_db_kind(db_uri)} ({db_status})"),
        ("Tables", tables),
        ("Form configs", forms),
        ("Timezone", app.config.get("LOCAL_TIMEZONE", "UTC")),
        ("SLA days", str(app.config.get("SLA_DAYS"))),
        ("Uploads", uploads),
    )
    width = 60
    lines = ["", "╔" + "═" * width + "╗", "║  " + "Legal Desk startup".ljust(width - 2) + "║", "╠" + "═" * width + "╣"]
    lines += ["║  " + f"{label:<13}: {value}"[: width - 2].ljust(width - 2) + "║" for label, value in rows]
    lines.append("╚" + "═" * width + "╝")
    logger.info("\n".join(lines))

    for issue in issues:
        logger.warning("Startup check: %s", issue)
    if not issues:
        logger.info("All startup checks passed")
