"""Booking store - bookings and their addon line items.

Writes here only stage changes on the session. The caller owns the
transaction and decides when to commit or roll back.
"""

from datetime import date
from typing import Any, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, aliased

from servio.db.models.booking import RELEASED_STATUSES, Booking, BookingAddonLine
from servio.db.models.business_profile import BusinessProfile
from servio.db.models.service import Service
from servio.db.models.user import User

# fields the state machine may write on an existing booking
UPDATABLE_BOOKING_FIELDS = (
    "status",
    "cancellation_reason",
    "provider_notes",
    "accepted_at",
    "started_at",
    "completed_at",
    "cancelled_at",
    "payment_status",
)


class BookingStore:
    def __init__(self, db: Session):
        self.db = db

    def booked_times(self, provider_id: int, on_date: date) -> list[str]:
        """Start times ("HH:MM") of bookings still holding a slot on that date"""
        rows = (
            self.db.query(Booking.scheduled_time)
            .filter(
                Booking.provider_id == provider_id,
                Booking.scheduled_date == on_date,
                Booking.status.notin_(RELEASED_STATUSES),
            )
            .all()
        )
        return [row.scheduled_time.strftime("%H:%M") for row in rows]

    def add_booking(self, booking: Booking, addon_lines: list[BookingAddonLine]) -> Booking:
        booking.addon_lines.extend(addon_lines)
        self.db.add(booking)
        self.db.flush()  # assigns ids, still inside the caller's transaction
        return booking

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        return self.db.query(Booking).filter(Booking.id == booking_id).first()

    def get_booking_for_update(self, booking_id: int) -> Optional[Booking]:
        """Load a booking and lock its row until the transaction ends (no-op on SQLite)"""
        return self.db.query(Booking).filter(Booking.id == booking_id).with_for_update().first()

    def apply_changes(self, booking: Booking, changes: dict[str, Any]) -> Booking:
        unknown = set(changes) - set(UPDATABLE_BOOKING_FIELDS)
        if unknown:
            raise ValueError(f"Booking fields not updatable: {', '.join(sorted(unknown))}")

        for field, value in changes.items():
            setattr(booking, field, value)
        self.db.flush()
        return booking

    def list_for_user(self, user_id: int, role: str) -> list[Booking]:
        query = self.db.query(Booking)
        if role == "customer":
            query = query.filter(Booking.customer_id == user_id)
        elif role == "provider":
            query = query.filter(Booking.provider_id == user_id)
        elif role != "admin":
            return []
        return query.order_by(Booking.created_at.desc(), Booking.id.desc()).all()

    def list_all(self, status: Optional[str] = None, search: Optional[str] = None) -> list[Booking]:
        """Admin listing. `search` matches the booking number, customer and
        provider name or email, business name and service title."""
        query = self.db.query(Booking)
        if status and status != "all":
            query = query.filter(Booking.status == status)
        if search:
            pattern = f"%{search}%"
            customer = aliased(User)
            provider = aliased(User)
            query = (
                query.join(customer, Booking.customer_id == customer.id)
                .join(provider, Booking.provider_id == provider.id)
                .join(Service, Booking.service_id == Service.id)
                .outerjoin(BusinessProfile, BusinessProfile.user_id == Booking.provider_id)
                .filter(
                    or_(
                        Booking.booking_number.ilike(pattern),
                        customer.name.ilike(pattern),
                        customer.email.ilike(pattern),
                        provider.name.ilike(pattern),
                        provider.email.ilike(pattern),
                        BusinessProfile.business_name.ilike(pattern),
                        Service.title.ilike(pattern),
                    )
                )
            )
        return query.order_by(Booking.created_at.desc(), Booking.id.desc()).all()
