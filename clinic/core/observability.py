"""
Error tracking (Sentry) and Prometheus metrics.

Domain counters live in the default prometheus_client registry and are
exported by ``/metrics`` when the app uses that registry.
"""

import logging
import os
from typing import Optional

from prometheus_client import CollectorRegistry, Counter
from prometheus_flask_exporter import PrometheusMetrics

from clinic import __version__

logger = logging.getLogger(__name__)

SCHEDULING_DECISIONS = Counter(
    "clinic_scheduling_decisions_total",
    "Scheduling policy outcomes for booking and availability requests",
    ["decision"],
)
CANCELLATION_DECISIONS = Counter(
    "clinic_cancellation_decisions_total",
    "Cancellation policy outcomes",
    ["decision"],
)
NEXT_SLOT_SEARCHES = Counter(
    "clinic_next_slot_searches_total",
    "Next-available-slot searches by outcome",
    ["outcome"],
)


def init_sentry(environment: str) -> bool:
    """Initialize Sentry when SENTRY_DSN is set. Returns whether it was."""
    sentry_dsn = os.getenv("SENTRY_DSN")
    if not sentry_dsn:
        logger.info(
            "Sentry not initialized (SENTRY_DSN not set)",
            extra={"context": {"environment": environment}},
        )
        return False

    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    release = os.getenv("GIT_SHA", __version__)
    sentry_sdk.init(
        dsn=sentry_dsn,
        environment=environment,
        release=release,
        integrations=[FlaskIntegration(), SqlalchemyIntegration()],
        traces_sample_rate=0.1,
        send_default_pii=False,  # patient data never leaves the service
    )
    logger.info(
        "Sentry initialized",
        extra={"context": {"environment": environment, "release": release}},
    )
    return True


def init_metrics(
    app, environment: str, registry: Optional[CollectorRegistry] = None
) -> PrometheusMetrics:
    """Expose ``/metrics`` for the app; ``registry`` defaults to the global one."""
    metrics = PrometheusMetrics(app, registry=registry, excluded_paths=["/health"])
    try:
        metrics.info(
            "clinic_app_info",
            "Clinic scheduling application information",
            version=__version__,
            environment=environment,
        )
    except ValueError as e:
        # Already registered by an earlier app on the same registry
        logger.debug(
            "clinic_app_info metric already registered",
            extra={"context": {"error": str(e)}},
        )
    logger.info(
        "Prometheus metrics initialized",
        extra={"context": {"metrics_endpoint": "/metrics"}},
    )
    return metrics
