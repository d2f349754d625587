"""
Appointment notifications.

Reminder and summary delivery is handled outside this service; the default
sink only records the events so a log shipper or job runner can pick them up.
"""

from clinic.core.config import APP_TZ
from clinic.core.logging_config import get_logger
from clinic.domain.entities import Appointment
from clinic.domain.interfaces import INotificationSink

logger = get_logger(__name__)


class LoggingNotificationSink(INotificationSink):
    """Notification sink that writes structured log records."""

    def appointment_scheduled(self, appointment: Appointment) -> None:
        logger.info(
            "Appointment scheduled notification queued",
            extra={
                "context": {
                    "event": "appointment_scheduled",
                    "appointment_id": appointment.id,
                    "doctor_id": appointment.doctor_id,
                    "patient_id": appointment.patient_id,
                    "local_start": appointment.start_time.astimezone(APP_TZ).isoformat(),
                }
            },
        )

    def appointment_cancelled(self, appointment: Appointment) -> None:
        logger.info(
            "Appointment cancelled notification queued",
            extra={
                "context": {
                    "event": "appointment_cancelled",
                    "appointment_id": appointment.id,
                    "doctor_id": appointment.doctor_id,
                    "patient_id": appointment.patient_id,
                    "reason": appointment.cancellation_reason,
                }
            },
        )
