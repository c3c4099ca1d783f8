"""
Per-blueprint rate limits (Flask-Limiter).

The Limiter in ``legal_desk/__init__.py`` has no default limits; each
blueprint gets the budget of its category here. Budgets can be overridden
with RATELIMIT_UPLOAD / RATELIMIT_WRITE / RATELIMIT_READ. Health probes are
exempt and nothing is limited under TESTING.
"""

import logging

logger = logging.getLogger(__name__)

DEFAULT_LIMITS = {
    "RATELIMIT_UPLOAD": "20/minute",
    "RATELIMIT_WRITE": "60/minute",
    "RATELIMIT_READ": "200/minute",
}

# blueprint name -> config key of its budget (None = exempt)
BLUEPRINT_LIMITS = {
    "upload_bp": "RATELIMIT_UPLOAD",
    "submission_bp": "RATELIMIT_WRITE",
    "approval_bp": "RATELIMIT_WRITE",
    "settings_bp": "RATELIMIT_WRITE",
    "user_bp": "RATELIMIT_WRITE",
    "dashboard_bp": "RATELIMIT_READ",
    "health_bp": None,
}


def init_rate_limits(app, limiter):
    """Attach limits to the registered blueprints. Call after registration."""
    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    applied = {}
    for bp_name, key in BLUEPRINT_LIMITS.items():
        bp = app.blueprints.get(bp_name)
        if bp is None:
            continue
        if key is None:
            limiter.exempt(bp)
            continue
        limit = app.config.get(key) or DEFAULT_LIMITS[key]
        limiter.limit(limit)(bp)
        applied[bp_name] = limit

    logger.info("Rate limits applied: %s", ", ".join(f"{n}={l}" for n, l in applied.items()))
