"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter.
The Limiter instance is created in runboard/__init__.py with no default
limits; this module applies granular limits per route category.

Usage:
    from runboard.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

WRITE_LIMIT = "60/minute"
REPORT_LIMIT = "120/minute"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Submissions / profile:  60/minute
        - Coordinator reports:    120/minute (each call scans a date window)
        - Health check:           exempt

    Rate limiting is disabled in testing mode.
    """

    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    for bp_name in ("submission", "auth"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(WRITE_LIMIT)(bp)

    bp = app.blueprints.get("coordinator")
    if bp:
        limiter.limit(REPORT_LIMIT)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured — submissions/profile: %s, reports: %s",
        WRITE_LIMIT, REPORT_LIMIT,
    )
