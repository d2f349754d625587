"""
Tests for Sentry initialization and Prometheus metrics.
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from prometheus_client import REGISTRY, CollectorRegistry

from clinic.core.observability import init_sentry
from clinic.services.appointment_service import AppointmentService
from tests.factories.domain_factories import MONDAY, at, make_appointment


def sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.mark.unit
class TestSentry:
    def test_not_initialized_without_dsn(self, monkeypatch):
        monkeypatch.delenv("SENTRY_DSN", raising=False)
        with patch("sentry_sdk.init") as sentry_init:
            assert init_sentry("development") is False
        sentry_init.assert_not_called()

    def test_initialized_without_pii(self, monkeypatch):
        monkeypatch.setenv("SENTRY_DSN", "https://key@sentry.example/1")
        with patch("sentry_sdk.init") as sentry_init:
            assert init_sentry("production") is True

        kwargs = sentry_init.call_args.kwargs
        assert kwargs["environment"] == "production"
        assert kwargs["send_default_pii"] is False


@pytest.mark.unit
@pytest.mark.services
class TestDomainCounters:
    def test_availability_checks_are_counted(self, memory_repos, clock):
        appointments, doctors, patients = memory_repos
        appointments.create(make_appointment(appointment_id=None))
        service = AppointmentService(appointments, doctors, patients, clock=clock)
        before = sample(
            "clinic_scheduling_decisions_total", decision="rejected_conflict"
        )

        service.check_availability(1, at(MONDAY, 10, 15), timedelta(minutes=30))

        assert sample(
            "clinic_scheduling_decisions_total", decision="rejected_conflict"
        ) == before + 1

    def test_next_slot_outcomes_are_counted(self, memory_repos, clock):
        appointments, doctors, patients = memory_repos
        service = AppointmentService(appointments, doctors, patients, clock=clock)
        found_before = sample("clinic_next_slot_searches_total", outcome="found")

        service.next_available_slot(1, timedelta(minutes=30))

        assert (
            sample("clinic_next_slot_searches_total", outcome="found")
            == found_before + 1
        )


@pytest.mark.integration
@pytest.mark.api
class TestMetricsEndpoint:
    def test_metrics_endpoint_exports_request_metrics(self, fresh_database, clock):
        from clinic.main import create_app

        app = create_app(
            {
                "LOGIN_DISABLED": True,
                "CLINIC_CLOCK": clock,
                "METRICS_ENABLED": True,
                "METRICS_REGISTRY": CollectorRegistry(auto_describe=True),
            }
        )
        client = app.test_client()
        client.get("/api/appointments/doctor/1")

        response = client.get("/metrics")

        assert response.status_code == 200
        body = response.get_data(as_text=True)
        assert "flask_http_request_duration_seconds" in body
        assert "clinic_app_info" in body

    def test_metrics_disabled_for_test_apps_by_default(self, app):
        assert app.test_client().get("/metrics").status_code == 404
