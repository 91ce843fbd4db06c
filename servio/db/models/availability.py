# servio/db/models/availability.py
from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, String, Time, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from servio.db.base import Base

# index == date.weekday()
DAYS_OF_WEEK = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class ProviderAvailability(Base):
    """
    Recurring weekly availability for a provider.
    day_of_week: monday .. sunday
    start_time, end_time: wall-clock times, minute precision
    Several windows per day are allowed; they are expected not to overlap.
    """
    __tablename__ = "provider_availability"
    __table_args__ = (
        CheckConstraint(
            "day_of_week IN ({})".format(", ".join(f"'{d}'" for d in DAYS_OF_WEEK)),
            name="ck_provider_availability_day_of_week",
        ),
        CheckConstraint("start_time < end_time", name="ck_provider_availability_time_order"),
    )

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(String(9), nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    provider = relationship("User", back_populates="availabilities")


class ProviderBlockedDate(Base):
    """
    A whole day on which the provider takes no bookings, whatever the weekly windows say.
    """
    __tablename__ = "provider_blocked_dates"
    __table_args__ = (
        UniqueConstraint("provider_id", "blocked_date", name="uq_provider_blocked_dates_provider_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    blocked_date = Column(Date, nullable=False)
    reason = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    provider = relationship("User", back_populates="blocked_dates")
