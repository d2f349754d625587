"""
Consultation fee calculation.

fee = base fee x specialization multiplier x duration multiplier x type multiplier,
rounded half-up to cents. Unknown categories fall back to a default
multiplier instead of failing.
"""

from dataclasses import dataclass
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Dict, Optional, Tuple

CENTS = Decimal("0.01")


class Specialization(Enum):
    CARDIOLOGY = "cardiology"
    NEUROLOGY = "neurology"
    ORTHOPEDICS = "orthopedics"
    PEDIATRICS = "pediatrics"
    GENERAL = "general"
    OTHER = "other"

    @classmethod
    def parse(cls, name: Optional[str]) -> "Specialization":
        """Case-insensitive lookup; anything unrecognised is OTHER."""
        key = (name or "").strip().lower()
        for member in cls:
            if member is not cls.OTHER and member.value == key:
                return member
        return cls.OTHER


class AppointmentType(Enum):
    EMERGENCY = "emergency"
    FOLLOW_UP = "follow-up"
    CONSULTATION = "consultation"
    REGULAR = "regular"
    OTHER = "other"

    @classmethod
    def parse(cls, name: Optional[str]) -> "AppointmentType":
        """Case-insensitive lookup; missing means REGULAR, unknown means OTHER."""
        if name is None or not name.strip():
            return cls.REGULAR
        key = name.strip().lower()
        for member in cls:
            if member is not cls.OTHER and member.value == key:
                return member
        return cls.OTHER


SPECIALIZATION_MULTIPLIERS: Dict[Specialization, Decimal] = {
    Specialization.CARDIOLOGY: Decimal("1.5"),
    Specialization.NEUROLOGY: Decimal("1.4"),
    Specialization.ORTHOPEDICS: Decimal("1.3"),
    Specialization.PEDIATRICS: Decimal("1.1"),
    Specialization.GENERAL: Decimal("1.0"),
    Specialization.OTHER: Decimal("1.2"),
}

TYPE_MULTIPLIERS: Dict[AppointmentType, Decimal] = {
    AppointmentType.EMERGENCY: Decimal("2.0"),
    AppointmentType.FOLLOW_UP: Decimal("0.8"),
    AppointmentType.CONSULTATION: Decimal("1.2"),
    AppointmentType.REGULAR: Decimal("1.0"),
    AppointmentType.OTHER: Decimal("1.0"),
}

# (inclusive upper bound in minutes, multiplier); longer durations use the last step
DURATION_BUCKETS: Tuple[Tuple[int, Decimal], ...] = (
    (15, Decimal("0.5")),
    (30, Decimal("1.0")),
    (60, Decimal("1.5")),
    (90, Decimal("2.0")),
)
LONG_DURATION_MULTIPLIER = Decimal("2.5")


def duration_multiplier(duration: timedelta) -> Decimal:
    minutes = duration.total_seconds() / 60
    for upper_bound, multiplier in DURATION_BUCKETS:
        if minutes <= upper_bound:
            return multiplier
    return LONG_DURATION_MULTIPLIER


@dataclass(frozen=True)
class FeeQuote:
    """A computed fee together with the multipliers that produced it."""

    base_fee: Decimal
    specialization: Specialization
    appointment_type: AppointmentType
    specialization_multiplier: Decimal
    duration_multiplier: Decimal
    type_multiplier: Decimal
    amount: Decimal

    def to_dict(self) -> dict:
        return {
            "base_fee": str(self.base_fee),
            "specialization": self.specialization.value,
            "appointment_type": self.appointment_type.value,
            "specialization_multiplier": str(self.specialization_multiplier),
            "duration_multiplier": str(self.duration_multiplier),
            "type_multiplier": str(self.type_multiplier),
            "amount": str(self.amount),
        }


def calculate_fee(
    base_fee: Decimal,
    specialization: Optional[str],
    duration: timedelta,
    appointment_type: Optional[str] = "Regular",
) -> FeeQuote:
    """Compute the consultation fee. Pure, never raises for unknown categories."""
    base = base_fee if isinstance(base_fee, Decimal) else Decimal(str(base_fee))
    specialty = Specialization.parse(specialization)
    kind = AppointmentType.parse(appointment_type)

    specialty_multiplier = SPECIALIZATION_MULTIPLIERS[specialty]
    dur_multiplier = duration_multiplier(duration)
    type_multiplier = TYPE_MULTIPLIERS[kind]

    amount = (base * specialty_multiplier * dur_multiplier * type_multiplier).quantize(
        CENTS, rounding=ROUND_HALF_UP
    )
    return FeeQuote(
        base_fee=base,
        specialization=specialty,
        appointment_type=kind,
        specialization_multiplier=specialty_multiplier,
        duration_multiplier=dur_multiplier,
        type_multiplier=type_multiplier,
        amount=amount,
    )
