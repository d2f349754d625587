"""
Unit tests for consultation fee calculation.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from clinic.domain.fees import (
    AppointmentType,
    Specialization,
    calculate_fee,
    duration_multiplier,
)


@pytest.mark.unit
@pytest.mark.domain
class TestCalculateFee:
    def test_cardiology_regular_half_hour(self):
        quote = calculate_fee(Decimal("100"), "Cardiology", timedelta(minutes=30), "Regular")
        assert quote.amount == Decimal("150.00")
        assert quote.specialization is Specialization.CARDIOLOGY
        assert quote.appointment_type is AppointmentType.REGULAR

    @pytest.mark.parametrize(
        "specialization, expected",
        [
            ("cardiology", "150.00"),
            ("NEUROLOGY", "140.00"),
            ("Orthopedics", "130.00"),
            ("pediatrics", "110.00"),
            ("General", "100.00"),
            ("Dermatology", "120.00"),
            (None, "120.00"),
        ],
    )
    def test_specialization_multipliers(self, specialization, expected):
        quote = calculate_fee(Decimal("100"), specialization, timedelta(minutes=30))
        assert quote.amount == Decimal(expected)

    @pytest.mark.parametrize(
        "appointment_type, expected",
        [
            ("Emergency", "200.00"),
            ("follow-up", "80.00"),
            ("CONSULTATION", "120.00"),
            ("regular", "100.00"),
            ("checkup", "100.00"),
            (None, "100.00"),
            ("   ", "100.00"),
        ],
    )
    def test_type_multipliers(self, appointment_type, expected):
        quote = calculate_fee(
            Decimal("100"), "General", timedelta(minutes=30), appointment_type
        )
        assert quote.amount == Decimal(expected)

    def test_unknown_type_parses_as_other(self):
        assert AppointmentType.parse("checkup") is AppointmentType.OTHER
        assert AppointmentType.parse(None) is AppointmentType.REGULAR

    def test_rounds_half_up_to_cents(self):
        # 33.33 x 1.5 x 0.5 = 24.9975 -> 25.00
        quote = calculate_fee(Decimal("33.33"), "Cardiology", timedelta(minutes=15))
        assert quote.amount == Decimal("25.00")

    def test_accepts_non_decimal_base(self):
        quote = calculate_fee(100, "General", timedelta(minutes=60))
        assert quote.amount == Decimal("150.00")

    def test_quote_serializes_as_strings(self):
        data = calculate_fee(Decimal("100"), "Cardiology", timedelta(minutes=30)).to_dict()
        assert data["amount"] == "150.00"
        assert data["specialization"] == "cardiology"
        assert data["appointment_type"] == "regular"


@pytest.mark.unit
@pytest.mark.domain
class TestDurationMultiplier:
    @pytest.mark.parametrize(
        "minutes, expected",
        [
            (10, "0.5"),
            (15, "0.5"),
            (16, "1.0"),
            (30, "1.0"),
            (45, "1.5"),
            (60, "1.5"),
            (90, "2.0"),
            (91, "2.5"),
            (240, "2.5"),
        ],
    )
    def test_bucket_boundaries_are_inclusive(self, minutes, expected):
        assert duration_multiplier(timedelta(minutes=minutes)) == Decimal(expected)

    def test_multiplier_is_monotonic(self):
        previous = Decimal("0")
        for minutes in range(1, 300):
            current = duration_multiplier(timedelta(minutes=minutes))
            assert current >= previous
            previous = current
