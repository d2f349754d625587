from __future__ import annotations

from datetime import datetime, time
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .session import Base

# Rows in this status never take part in double-booking checks
ACTIVE_APPOINTMENT_CLAUSE = "status <> 'Cancelled'"


class Doctor(Base):
    """Doctor model for database persistence"""

    __tablename__ = "doctors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    specialization: Mapped[str] = mapped_column(
        String(50), nullable=False, default="General", index=True
    )
    consultation_fee: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    schedules: Mapped[List["DoctorSchedule"]] = relationship(
        "DoctorSchedule",
        back_populates="doctor",
        cascade="all, delete-orphan",
        order_by="DoctorSchedule.day_of_week",
    )

    def __repr__(self):
        return (
            f"<Doctor(id={self.id}, name='{self.first_name} {self.last_name}', "
            f"specialization='{self.specialization}')>"
        )


class DoctorSchedule(Base):
    """Weekly availability window. day_of_week uses Monday=0 ... Sunday=6."""

    __tablename__ = "doctor_schedules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    doctor_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("doctors.id"), nullable=False, index=True
    )
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    break_start: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    break_end: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    slot_duration_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=30
    )

    doctor: Mapped["Doctor"] = relationship("Doctor", back_populates="schedules")

    __table_args__ = (
        CheckConstraint(
            "day_of_week BETWEEN 0 AND 6", name="ck_doctor_schedules_day_of_week"
        ),
    )

    def __repr__(self):
        return (
            f"<DoctorSchedule(doctor_id={self.doctor_id}, day={self.day_of_week}, "
            f"{self.start_time}-{self.end_time})>"
        )


class Patient(Base):
    """Patient model for database persistence"""

    __tablename__ = "patients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self):
        return f"<Patient(id={self.id}, name='{self.first_name} {self.last_name}')>"


class Appointment(Base):
    """Appointment model.

    ``end_time`` is stored alongside ``duration_minutes`` so the overlap query
    can be answered by the (doctor_id, start_time, end_time) index.
    """

    __tablename__ = "appointments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    doctor_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("doctors.id"), nullable=False
    )
    patient_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("patients.id"), nullable=False, index=True
    )
    start_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="Scheduled"
    )  # Scheduled, Confirmed, InProgress, Completed, Cancelled
    reason_for_visit: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    appointment_type: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cancellation_reason: Mapped[Optional[str]] = mapped_column(
        String(500), nullable=True
    )
    consultation_fee: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2), nullable=True
    )
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    doctor: Mapped["Doctor"] = relationship(
        "Doctor", foreign_keys=[doctor_id], backref="appointments"
    )
    patient: Mapped["Patient"] = relationship(
        "Patient", foreign_keys=[patient_id], backref="appointments"
    )

    __table_args__ = (
        Index("ix_appointments_doctor_window", "doctor_id", "start_time", "end_time"),
        # Last line of defence against two concurrent bookings of the same slot
        Index(
            "uq_appointments_doctor_start_active",
            "doctor_id",
            "start_time",
            unique=True,
            postgresql_where=text(ACTIVE_APPOINTMENT_CLAUSE),
            sqlite_where=text(ACTIVE_APPOINTMENT_CLAUSE),
        ),
        CheckConstraint("duration_minutes > 0", name="ck_appointments_duration"),
    )

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, doctor_id={self.doctor_id}, "
            f"start_time={self.start_time}, status={self.status})>"
        )
