"""
Per-blueprint Flask-Limiter limits, keyed by remote address.

The shared ``Limiter`` in ``projecthub`` has no default limits; call
``init_rate_limits(app, limiter)`` after the blueprints are registered.
"""

import logging

logger = logging.getLogger(__name__)

# blueprint name -> limit; None exempts the blueprint
BLUEPRINT_LIMITS = {
    "auth": "20/minute",
    "projects": "60/minute",
    "preferences": "60/minute",
    "stakeholders": "60/minute",
    "board": "200/minute",
    "health": None,
}


def init_rate_limits(app, limiter):
    """Attach ``BLUEPRINT_LIMITS`` to the registered blueprints.

    No-op under TESTING.
    """
    if app.config.get("TESTING"):
        logger.debug("Rate limits skipped in testing")
        return

    applied = {}
    for name, limit in BLUEPRINT_LIMITS.items():
        blueprint = app.blueprints.get(name)
        if blueprint is None:
            continue
        if limit is None:
            limiter.exempt(blueprint)
        else:
            limiter.limit(limit)(blueprint)
        applied[name] = limit or "exempt"

    logger.info("Rate limits: %s", ", ".join(f"{k}={v}" for k, v in applied.items()))
