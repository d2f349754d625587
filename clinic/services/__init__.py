# Services package initialization
# This file makes the services directory a Python package
# and allows importing service modules

from . import appointment_domain_service
from . import appointment_service
from . import notification_service

__all__ = [
    "appointment_domain_service",
    "appointment_service",
    "notification_service",
]
