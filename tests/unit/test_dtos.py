"""
Unit tests for request/response DTOs and their validation.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from clinic.schemas.dtos import (
    AppointmentCancelRequest,
    AppointmentCreateRequest,
    AppointmentResponse,
    AppointmentUpdateRequest,
    ErrorResponse,
    parse_datetime,
    parse_optional_text,
    parse_positive_int,
)
from tests.factories.domain_factories import MONDAY, REFERENCE_NOW, at, make_appointment


def valid_payload(**overrides):
    payload = {
        "doctor_id": 1,
        "patient_id": "2",
        "start_time": "2030-01-07T10:00:00Z",
        "duration_minutes": 30,
        "reason_for_visit": "Checkup",
    }
    payload.update(overrides)
    return payload


@pytest.mark.unit
class TestParsers:
    def test_parse_datetime_accepts_zulu_suffix(self):
        assert parse_datetime("2030-01-07T10:00:00Z", "start") == at(MONDAY, 10)

    def test_parse_datetime_converts_offsets_to_utc(self):
        parsed = parse_datetime("2030-01-07T12:00:00+02:00", "start")
        assert parsed == at(MONDAY, 10)
        assert parsed.tzinfo == timezone.utc

    def test_parse_datetime_treats_naive_as_utc(self):
        assert parse_datetime("2030-01-07T10:00:00", "start") == at(MONDAY, 10)

    def test_parse_datetime_accepts_datetime_instances(self):
        assert parse_datetime(datetime(2030, 1, 7, 10), "start") == at(MONDAY, 10)

    @pytest.mark.parametrize("value", [None, "", "   ", "tomorrow", 12])
    def test_parse_datetime_rejects_garbage(self, value):
        with pytest.raises(ValueError, match="start"):
            parse_datetime(value, "start")

    def test_parse_positive_int(self):
        assert parse_positive_int("7", "doctor_id") == 7
        with pytest.raises(ValueError, match="integer"):
            parse_positive_int("abc", "doctor_id")
        with pytest.raises(ValueError, match="positive"):
            parse_positive_int(0, "doctor_id")

    def test_parse_optional_text(self):
        assert parse_optional_text(None, "notes") is None
        assert parse_optional_text("Fasting", "notes") == "Fasting"
        with pytest.raises(ValueError, match="notes must be a string"):
            parse_optional_text(42, "notes")


@pytest.mark.unit
@pytest.mark.appointment
class TestAppointmentCreateRequest:
    def test_from_json_parses_fields(self):
        request = AppointmentCreateRequest.from_json(valid_payload())
        assert request.patient_id == 2
        assert request.start_time == at(MONDAY, 10)
        assert request.duration == timedelta(minutes=30)

    def test_from_json_requires_ids(self):
        with pytest.raises(ValueError, match="doctor_id"):
            AppointmentCreateRequest.from_json(valid_payload(doctor_id=None))

    def test_valid_request_passes(self):
        AppointmentCreateRequest.from_json(valid_payload()).validate(REFERENCE_NOW)

    @pytest.mark.parametrize(
        "minutes, message",
        [
            (10, "at least"),
            (20, "increments"),
            (495, "exceed"),
        ],
    )
    def test_duration_rules(self, minutes, message):
        request = AppointmentCreateRequest.from_json(
            valid_payload(duration_minutes=minutes)
        )
        with pytest.raises(ValueError, match=message):
            request.validate(REFERENCE_NOW)

    def test_lead_time_boundary(self):
        request = AppointmentCreateRequest.from_json(valid_payload())
        exactly_thirty = request.start_time - timedelta(minutes=30)
        with pytest.raises(ValueError, match="in advance"):
            request.validate(exactly_thirty)
        request.validate(exactly_thirty - timedelta(seconds=1))

    def test_reason_length_limit(self):
        request = AppointmentCreateRequest.from_json(
            valid_payload(reason_for_visit="x" * 101)
        )
        with pytest.raises(ValueError, match="Reason for visit"):
            request.validate(REFERENCE_NOW)

    @pytest.mark.parametrize(
        "field", ["reason_for_visit", "appointment_type", "notes"]
    )
    def test_non_string_text_fields_rejected(self, field):
        with pytest.raises(ValueError, match=f"{field} must be a string"):
            AppointmentCreateRequest.from_json(valid_payload(**{field: 42}))

    def test_appointment_type_length_limit(self):
        request = AppointmentCreateRequest.from_json(
            valid_payload(appointment_type="t" * 31)
        )
        with pytest.raises(ValueError, match="Appointment type"):
            request.validate(REFERENCE_NOW)


@pytest.mark.unit
@pytest.mark.appointment
class TestAppointmentUpdateRequest:
    def test_empty_update_changes_nothing(self):
        request = AppointmentUpdateRequest.from_json({})
        assert not request.changes_time
        request.validate(REFERENCE_NOW)

    def test_new_start_is_a_time_change(self):
        request = AppointmentUpdateRequest.from_json(
            {"start_time": "2030-01-07T11:00:00Z"}
        )
        assert request.changes_time
        assert request.start_time == at(MONDAY, 11)

    def test_start_in_the_past_rejected(self):
        request = AppointmentUpdateRequest(start_time=REFERENCE_NOW - timedelta(hours=1))
        with pytest.raises(ValueError):
            request.validate(REFERENCE_NOW)

    def test_notes_length_limit(self):
        with pytest.raises(ValueError, match="Notes"):
            AppointmentUpdateRequest(notes="n" * 1001).validate(REFERENCE_NOW)

    def test_non_string_reason_rejected(self):
        with pytest.raises(ValueError, match="reason_for_visit must be a string"):
            AppointmentUpdateRequest.from_json({"reason_for_visit": ["Checkup"]})

    def test_appointment_type_is_parsed(self):
        request = AppointmentUpdateRequest.from_json({"appointment_type": "Emergency"})
        assert request.appointment_type == "Emergency"
        assert not request.changes_time


@pytest.mark.unit
class TestResponses:
    def test_cancel_reason_limit(self):
        AppointmentCancelRequest(reason="r" * 500).validate()
        with pytest.raises(ValueError):
            AppointmentCancelRequest(reason="r" * 501).validate()

    def test_appointment_response_serializes_times_and_fee(self):
        appointment = make_appointment(appointment_id=4, appointment_type="Follow-up")
        appointment.consultation_fee = Decimal("150.00")
        data = AppointmentResponse.from_domain(appointment).to_dict()

        assert data["id"] == 4
        assert data["start_time"] == "2030-01-07T10:00:00+00:00"
        assert data["end_time"] == "2030-01-07T10:30:00+00:00"
        assert data["status"] == "Scheduled"
        assert data["appointment_type"] == "Follow-up"
        assert data["consultation_fee"] == "150.00"
        assert data["created_at"] is None

    def test_error_response_envelope(self):
        body = ErrorResponse.scheduling_conflict(
            "Slot taken", {"decision": "rejected_conflict"}
        ).to_dict()
        assert body == {
            "success": False,
            "error": "scheduling_rejected",
            "message": "Slot taken",
            "details": {"decision": "rejected_conflict"},
        }
        assert "details" not in ErrorResponse.not_found("gone").to_dict()
