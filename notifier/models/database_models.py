"""SQLAlchemy ORM models for users, matches and the notification log."""
from datetime import date, datetime, time
from sqlalchemy import Integer, Date, DateTime, String, Boolean, Text, Time, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notifier.database import Base


class UserProfile(Base):
    """Account owning at most one push token."""

    __tablename__ = "user_profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    full_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    push_token: Mapped[str | None] = mapped_column(String(255), nullable=True)  # nulled on DeviceNotRegistered

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Booking(Base):
    """A booked pitch slot, i.e. one match."""

    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    pitch_name: Mapped[str] = mapped_column(String(200), nullable=False)
    pitch_location: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Kick-off, stored in UTC
    match_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    match_time: Mapped[time] = mapped_column(Time, nullable=False)
    match_type: Mapped[str] = mapped_column(String(20), default="friendly", nullable=False)  # ranked, friendly
    status: Mapped[str] = mapped_column(String(20), default="confirmed", nullable=False)  # confirmed, cancelled

    # Reminder tracking
    reminder_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    reminder_sent_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    participants: Mapped[list["BookingParticipant"]] = relationship(
        "BookingParticipant", back_populates="booking", cascade="all, delete-orphan"
    )

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.match_date, self.match_time)


class BookingParticipant(Base):
    """Join table between bookings and the users playing in them."""

    __tablename__ = "booking_participants"
    __table_args__ = (UniqueConstraint("booking_id", "user_id", name="uq_booking_participant"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_id: Mapped[str] = mapped_column(String(36), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False, index=True)

    booking: Mapped["Booking"] = relationship("Booking", back_populates="participants")
    user: Mapped["UserProfile"] = relationship("UserProfile")


class Notification(Base):
    """Log row written for every push notification handed to the provider."""

    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)  # match_reminder, game_invitation, broadcast
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="sent", nullable=False)  # sent, failed

    sent_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
