"""SQLAlchemy ORM models for donors, donation requests and confirmations."""

from __future__ import annotations

from datetime import UTC, date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from infrastructure.db.base import Base

from .types import ConfirmationStatus, RequestStatus, UrgencyLevel


def _utcnow() -> datetime:
    """Return a timezone-aware UTC timestamp for ORM defaults."""
    return datetime.now(UTC)


class BloodType(Base):
    """Seeded ABO/Rh blood group."""

    __tablename__ = "blood_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    type: Mapped[str] = mapped_column(String(5), nullable=False, unique=True)


class Location(Base):
    """Seeded district used for exact-region matching."""

    __tablename__ = "locations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    district: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)


class Donor(Base):
    """User account backing a donor profile."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    phone_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    role: Mapped[str] = mapped_column(String(50), nullable=False, default="Donor")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )

    profile: Mapped["DonorProfile | None"] = relationship(
        back_populates="donor",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class DonorProfile(Base):
    """Donation eligibility and preferences for a single donor."""

    __tablename__ = "donor_profiles"

    donor_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        autoincrement=False,
    )
    blood_type_id: Mapped[int] = mapped_column(
        ForeignKey("blood_types.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    location_id: Mapped[int] = mapped_column(
        ForeignKey("locations.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    is_healthy_for_donation: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_identity_hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_donation_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(10), nullable=True)

    donor: Mapped[Donor] = relationship(back_populates="profile", lazy="selectin")
    blood_type: Mapped[BloodType] = relationship(lazy="selectin")
    location: Mapped[Location] = relationship(lazy="selectin")
    confirmations: Mapped[list["DonorConfirmation"]] = relationship(
        back_populates="donor_profile",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_eligible(self) -> bool:
        return self.is_available and self.is_healthy_for_donation


class DonorRequest(Base):
    """A hospital or administrator's request for donors of one blood type."""

    __tablename__ = "donor_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    patient_name: Mapped[str] = mapped_column(String(200), nullable=False)
    blood_type_id: Mapped[int] = mapped_column(
        ForeignKey("blood_types.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    location_id: Mapped[int] = mapped_column(
        ForeignKey("locations.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    urgency_level: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UrgencyLevel.NORMAL.value
    )
    contact_number: Mapped[str] = mapped_column(String(20), nullable=False)
    hospital_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    additional_notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
    requested_by_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    requester_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RequestStatus.PENDING.value, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    blood_type: Mapped[BloodType] = relationship(lazy="selectin")
    location: Mapped[Location] = relationship(lazy="selectin")


class DonorConfirmation(Base):
    """A donor's recorded answer to a request, unique per (request, donor)."""

    __tablename__ = "donor_confirmations"
    __table_args__ = (
        UniqueConstraint("request_id", "donor_id", name="uq_donor_confirmations_request_donor"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Deleting a request must not silently drop its confirmation history
    request_id: Mapped[int] = mapped_column(
        ForeignKey("donor_requests.id", ondelete="NO ACTION"), nullable=False, index=True
    )
    donor_id: Mapped[int] = mapped_column(
        ForeignKey("donor_profiles.donor_id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default=ConfirmationStatus.CONFIRMED.value
    )
    message: Mapped[str | None] = mapped_column(String(500), nullable=True)
    confirmed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )
    contacted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    admin_notes: Mapped[str | None] = mapped_column(String(200), nullable=True)

    request: Mapped[DonorRequest] = relationship(lazy="selectin")
    donor_profile: Mapped[DonorProfile] = relationship(
        back_populates="confirmations",
        lazy="selectin",
    )


__all__ = [
    "BloodType",
    "Location",
    "Donor",
    "DonorProfile",
    "DonorRequest",
    "DonorConfirmation",
]
