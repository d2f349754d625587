"""
Schemas package - Data Transfer Objects and validation.

This package contains DTOs that define the API contracts
and handle validation following SOLID principles.
"""

from .dtos import (
    AppointmentCancelRequest,
    AppointmentCreateRequest,
    AppointmentResponse,
    AppointmentUpdateRequest,
    ErrorResponse,
    parse_datetime,
    parse_positive_int,
)

__all__ = [
    # Appointment DTOs
    "AppointmentCreateRequest",
    "AppointmentUpdateRequest",
    "AppointmentCancelRequest",
    "AppointmentResponse",
    # Common DTOs
    "ErrorResponse",
    # Parsing helpers
    "parse_datetime",
    "parse_positive_int",
]
