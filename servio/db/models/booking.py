# servio/db/models/booking.py
import enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, Time, func
from sqlalchemy.orm import relationship
from servio.db.base import Base


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    WALLET = "wallet"
    NOQOODY = "noqoody"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


# bookings in these states no longer hold their time slot
RELEASED_STATUSES = (BookingStatus.CANCELLED.value, BookingStatus.REJECTED.value)


class Booking(Base):
    """
    One customer appointment with a provider. Created pending, then only
    moved through the status state machine; never deleted.
    Money columns are fixed when the booking is created:
        subtotal = service_price + addons_price
        commission_amount = round(subtotal * commission_rate / 100, 2)
        provider_earnings = subtotal - commission_amount
    """
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_number = Column(String(16), unique=True, nullable=False, index=True)

    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    address_id = Column(Integer, nullable=True)  # address book lives outside the engine

    scheduled_date = Column(Date, nullable=False)
    scheduled_time = Column(Time, nullable=False)

    status = Column(String, nullable=False, default=BookingStatus.PENDING.value)

    service_price = Column(Numeric(10, 2), nullable=False)
    addons_price = Column(Numeric(10, 2), nullable=False, default=0)
    subtotal = Column(Numeric(10, 2), nullable=False)
    commission_rate = Column(Numeric(5, 2), nullable=False)
    commission_amount = Column(Numeric(10, 2), nullable=False)
    provider_earnings = Column(Numeric(10, 2), nullable=False)

    payment_method = Column(String, nullable=False, default=PaymentMethod.CASH.value)
    payment_status = Column(String, nullable=False, default=PaymentStatus.PENDING.value)

    customer_notes = Column(Text, nullable=True)
    provider_notes = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    accepted_at = Column(DateTime(timezone=True), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # relationships
    customer = relationship("User", foreign_keys=[customer_id])
    provider = relationship("User", foreign_keys=[provider_id])
    service = relationship("Service", foreign_keys=[service_id])
    addon_lines = relationship(
        "BookingAddonLine",
        back_populates="booking",
        lazy="selectin",
        order_by="BookingAddonLine.id",
    )


class BookingAddonLine(Base):
    """
    Snapshot of an addon as it was priced when the booking was made.
    Later edits or removal of the addon never touch these rows.
    """
    __tablename__ = "booking_addons"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    addon_id = Column(Integer, ForeignKey("service_addons.id", ondelete="SET NULL"), nullable=True)

    addon_name = Column(String, nullable=False)
    addon_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)

    booking = relationship("Booking", back_populates="addon_lines")
