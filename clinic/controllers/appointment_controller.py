"""
Appointment controller following SOLID principles.

This controller demonstrates:
- Single Responsibility: Handles only HTTP concerns for appointments
- Dependency Inversion: Depends on the application service, built per request
- Open/Closed: New endpoints can be added without modifying existing code
"""

from datetime import timedelta
from typing import Any, Callable, Dict, Tuple

import sentry_sdk
from flask import Blueprint, current_app, jsonify, request

from clinic.controllers.dependencies import get_appointment_service
from clinic.core.auth_decorators import get_current_user, require_roles
from clinic.core.exceptions import (
    AppointmentConflictError,
    CancellationRejectedError,
    DataSourceUnavailableError,
    InvalidAppointmentStatusError,
    NotFoundError,
    SchedulingRejectedError,
    SlotSearchCancelledError,
)
from clinic.core.logging_config import get_logger
from clinic.domain.entities import ClinicRoles
from clinic.schemas.dtos import (
    AppointmentCancelRequest,
    AppointmentCreateRequest,
    AppointmentUpdateRequest,
    ErrorResponse,
    parse_datetime,
    parse_optional_text,
    parse_positive_int,
)
from clinic.services.appointment_service import AppointmentService

logger = get_logger(__name__)

appointment_bp = Blueprint("appointments", __name__, url_prefix="/api/appointments")

DEFAULT_NEXT_SLOT_TIMEOUT_SECONDS = 5.0

Result = Tuple[Dict[str, Any], int]


class AppointmentController:
    """Controller for appointment-related HTTP endpoints.

    Each public method returns ``(body, status_code)``. Domain exceptions are
    translated into the JSON error envelope in one place.
    """

    def __init__(self, appointment_service: AppointmentService):
        self.appointment_service = appointment_service

    def _run(self, action: Callable[[], Result]) -> Result:
        try:
            return action()
        except NotFoundError as e:
            return ErrorResponse.not_found(str(e)).to_dict(), 404
        except AppointmentConflictError as e:
            return (
                ErrorResponse.scheduling_conflict(
                    str(e), {"decision": "rejected_conflict"}
                ).to_dict(),
                409,
            )
        except SchedulingRejectedError as e:
            return (
                ErrorResponse.scheduling_conflict(
                    str(e), {"decision": e.decision.value}
                ).to_dict(),
                409,
            )
        except CancellationRejectedError as e:
            return (
                ErrorResponse.business_rule(
                    str(e), {"decision": e.decision.value}
                ).to_dict(),
                400,
            )
        except InvalidAppointmentStatusError as e:
            return (
                ErrorResponse.business_rule(
                    str(e), {"current_status": e.current_status.value}
                ).to_dict(),
                409,
            )
        except (DataSourceUnavailableError, SlotSearchCancelledError) as e:
            return ErrorResponse.unavailable(str(e)).to_dict(), 503
        except ValueError as e:
            return ErrorResponse.validation_error(str(e)).to_dict(), 400
        except Exception as e:
            logger.error(
                f"Unhandled error in appointment endpoint: {e}",
                exc_info=True,
                extra={"context": {"path": request.path}},
            )
            sentry_sdk.capture_exception(e)
            return ErrorResponse.server_error().to_dict(), 500

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_appointment(self) -> Result:
        """Create a new appointment."""

        def action() -> Result:
            data = request.get_json(silent=True) or {}
            create_request = AppointmentCreateRequest.from_json(data)
            response = self.appointment_service.create_appointment(create_request)
            current = get_current_user()
            logger.info(
                "Appointment booked via API",
                extra={
                    "context": {
                        "appointment_id": response.id,
                        "booked_by": getattr(current, "id", None),
                    }
                },
            )
            return {"success": True, "data": response.to_dict()}, 201

        return self._run(action)

    def update_appointment(self, appointment_id: int) -> Result:
        """Reschedule or edit an existing appointment."""

        def action() -> Result:
            data = request.get_json(silent=True) or {}
            update_request = AppointmentUpdateRequest.from_json(data)
            response = self.appointment_service.update_appointment(
                appointment_id, update_request
            )
            return {"success": True, "data": response.to_dict()}, 200

        return self._run(action)

    def cancel_appointment(self, appointment_id: int) -> Result:
        """Cancel an appointment."""

        def action() -> Result:
            data = request.get_json(silent=True) or {}
            cancel_request = AppointmentCancelRequest(
                reason=parse_optional_text(data.get("reason"), "reason")
            )
            cancel_request.validate()
            response = self.appointment_service.cancel_appointment(
                appointment_id, cancel_request.reason
            )
            return {
                "success": True,
                "message": "Appointment cancelled successfully",
                "data": response.to_dict(),
            }, 200

        return self._run(action)

    def confirm_appointment(self, appointment_id: int) -> Result:
        return self._run(
            lambda: (
                {
                    "success": True,
                    "data": self.appointment_service.confirm_appointment(
                        appointment_id
                    ).to_dict(),
                },
                200,
            )
        )

    def start_appointment(self, appointment_id: int) -> Result:
        return self._run(
            lambda: (
                {
                    "success": True,
                    "data": self.appointment_service.start_appointment(
                        appointment_id
                    ).to_dict(),
                },
                200,
            )
        )

    def complete_appointment(self, appointment_id: int) -> Result:
        def action() -> Result:
            data = request.get_json(silent=True) or {}
            response = self.appointment_service.complete_appointment(
                appointment_id, parse_optional_text(data.get("notes"), "notes")
            )
            return {"success": True, "data": response.to_dict()}, 200

        return self._run(action)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_appointment(self, appointment_id: int) -> Result:
        """Get a specific appointment."""

        def action() -> Result:
            response = self.appointment_service.get_appointment(appointment_id)
            if response is None:
                raise NotFoundError("Appointment", appointment_id)
            return {"success": True, "data": response.to_dict()}, 200

        return self._run(action)

    def get_doctor_appointments(self, doctor_id: int) -> Result:
        return self._run(
            lambda: (
                {
                    "success": True,
                    "data": [
                        apt.to_dict()
                        for apt in self.appointment_service.get_appointments_for_doctor(
                            doctor_id
                        )
                    ],
                },
                200,
            )
        )

    def get_patient_appointments(self, patient_id: int) -> Result:
        return self._run(
            lambda: (
                {
                    "success": True,
                    "data": [
                        apt.to_dict()
                        for apt in self.appointment_service.get_appointments_for_patient(
                            patient_id
                        )
                    ],
                },
                200,
            )
        )

    def check_availability(self) -> Result:
        """Evaluate a slot without booking it."""

        def action() -> Result:
            args = request.args
            doctor_id = parse_positive_int(args.get("doctor_id"), "doctor_id")
            start = parse_datetime(args.get("start"), "start")
            duration = timedelta(
                minutes=parse_positive_int(
                    args.get("duration_minutes"), "duration_minutes"
                )
            )
            decision = self.appointment_service.check_availability(
                doctor_id, start, duration
            )
            return {
                "success": True,
                "data": {
                    "available": decision.accepted,
                    "decision": decision.value,
                    "message": decision.message,
                },
            }, 200

        return self._run(action)

    def next_available_slot(self) -> Result:
        """Find the doctor's next bookable start."""

        def action() -> Result:
            args = request.args
            doctor_id = parse_positive_int(args.get("doctor_id"), "doctor_id")
            duration = timedelta(
                minutes=parse_positive_int(
                    args.get("duration_minutes"), "duration_minutes"
                )
            )
            after = parse_datetime(args["after"], "after") if args.get("after") else None
            slot = self.appointment_service.next_available_slot(
                doctor_id,
                duration,
                after=after,
                timeout_seconds=current_app.config.get(
                    "NEXT_SLOT_TIMEOUT_SECONDS", DEFAULT_NEXT_SLOT_TIMEOUT_SECONDS
                ),
            )
            return {
                "success": True,
                "data": {"slot": slot.isoformat() if slot else None},
            }, 200

        return self._run(action)

    def quote_fee(self) -> Result:
        def action() -> Result:
            args = request.args
            doctor_id = parse_positive_int(args.get("doctor_id"), "doctor_id")
            duration = timedelta(
                minutes=parse_positive_int(
                    args.get("duration_minutes"), "duration_minutes"
                )
            )
            quote = self.appointment_service.quote_fee(
                doctor_id, duration, args.get("appointment_type")
            )
            return {"success": True, "data": quote.to_dict()}, 200

        return self._run(action)


def _controller() -> AppointmentController:
    return AppointmentController(get_appointment_service())


def _respond(result: Result):
    body, status = result
    return jsonify(body), status


@appointment_bp.route("", methods=["POST"])
@require_roles(*ClinicRoles.ALL)
def create_appointment():
    """Create appointment endpoint."""
    return _respond(_controller().create_appointment())


@appointment_bp.route("/availability", methods=["GET"])
@require_roles(*ClinicRoles.ALL)
def check_availability():
    return _respond(_controller().check_availability())


@appointment_bp.route("/next-slot", methods=["GET"])
@require_roles(*ClinicRoles.ALL)
def next_available_slot():
    return _respond(_controller().next_available_slot())


@appointment_bp.route("/fee-quote", methods=["GET"])
@require_roles(*ClinicRoles.ALL)
def quote_fee():
    return _respond(_controller().quote_fee())


@appointment_bp.route("/doctor/<int:doctor_id>", methods=["GET"])
@require_roles(*ClinicRoles.STAFF)
def get_doctor_appointments(doctor_id: int):
    return _respond(_controller().get_doctor_appointments(doctor_id))


@appointment_bp.route("/patient/<int:patient_id>", methods=["GET"])
@require_roles(*ClinicRoles.ALL)
def get_patient_appointments(patient_id: int):
    return _respond(_controller().get_patient_appointments(patient_id))


@appointment_bp.route("/<int:appointment_id>", methods=["GET"])
@require_roles(*ClinicRoles.ALL)
def get_appointment(appointment_id: int):
    """Get appointment endpoint."""
    return _respond(_controller().get_appointment(appointment_id))


@appointment_bp.route("/<int:appointment_id>", methods=["PUT"])
@require_roles(*ClinicRoles.STAFF)
def update_appointment(appointment_id: int):
    """Update appointment endpoint."""
    return _respond(_controller().update_appointment(appointment_id))


@appointment_bp.route("/<int:appointment_id>/cancel", methods=["POST"])
@require_roles(*ClinicRoles.ALL)
def cancel_appointment(appointment_id: int):
    """Cancel appointment endpoint."""
    return _respond(_controller().cancel_appointment(appointment_id))


@appointment_bp.route("/<int:appointment_id>/confirm", methods=["POST"])
@require_roles(*ClinicRoles.STAFF)
def confirm_appointment(appointment_id: int):
    return _respond(_controller().confirm_appointment(appointment_id))


@appointment_bp.route("/<int:appointment_id>/start", methods=["POST"])
@require_roles(*ClinicRoles.STAFF)
def start_appointment(appointment_id: int):
    return _respond(_controller().start_appointment(appointment_id))


@appointment_bp.route("/<int:appointment_id>/complete", methods=["POST"])
@require_roles(*ClinicRoles.STAFF)
def complete_appointment(appointment_id: int):
    return _respond(_controller().complete_appointment(appointment_id))
