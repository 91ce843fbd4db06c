"""Booking status transitions and the side effects bound to them"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from sqlalchemy.orm import Session

from servio.core.exceptions import BookingNotFound, InvalidTransition
from servio.db.models.booking import Booking, BookingStatus, PaymentStatus
from servio.db.repositories.booking_store import BookingStore
from servio.services.collaborators import EarningsRecorder, Notifier

logger = logging.getLogger(__name__)

VALID_TRANSITIONS: dict[BookingStatus, tuple[BookingStatus, ...]] = {
    BookingStatus.PENDING: (BookingStatus.ACCEPTED, BookingStatus.REJECTED, BookingStatus.CANCELLED),
    BookingStatus.ACCEPTED: (BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED),
    BookingStatus.IN_PROGRESS: (BookingStatus.COMPLETED, BookingStatus.CANCELLED),
    BookingStatus.COMPLETED: (),
    BookingStatus.CANCELLED: (),
    BookingStatus.REJECTED: (),
}

TERMINAL_STATUSES = frozenset(s for s, targets in VALID_TRANSITIONS.items() if not targets)

# transition -> timestamp column stamped with it
TRANSITION_TIMESTAMPS = {
    BookingStatus.ACCEPTED: "accepted_at",
    BookingStatus.IN_PROGRESS: "started_at",
    BookingStatus.COMPLETED: "completed_at",
    BookingStatus.CANCELLED: "cancelled_at",
}

CUSTOMER_MESSAGES = {
    BookingStatus.ACCEPTED: ("✅ Booking Accepted", "Your booking #{number} has been accepted."),
    BookingStatus.REJECTED: ("❌ Booking Rejected", "Your booking #{number} was rejected."),
    BookingStatus.IN_PROGRESS: ("🔧 Service Started", "Your booking #{number} is now in progress."),
    BookingStatus.COMPLETED: ("✨ Service Completed", "Your booking #{number} has been completed."),
    BookingStatus.CANCELLED: ("🚫 Booking Cancelled", "Booking #{number} has been cancelled."),
}


def can_transition(from_status: Union[str, BookingStatus], to_status: Union[str, BookingStatus]) -> bool:
    try:
        source, target = BookingStatus(from_status), BookingStatus(to_status)
    except ValueError:
        return False
    return target in VALID_TRANSITIONS[source]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookingStateMachine:
    def __init__(
        self,
        db: Session,
        store: BookingStore,
        earnings: EarningsRecorder,
        notifier: Notifier,
        now: Callable[[], datetime] = _utcnow,
    ):
        self.db = db
        self.store = store
        self.earnings = earnings
        self.notifier = notifier
        self.now = now

    def transition(
        self,
        booking_id: int,
        new_status: Union[str, BookingStatus],
        cancellation_reason: Optional[str] = None,
        provider_notes: Optional[str] = None,
        notify_customer: bool = True,
    ) -> Booking:
        """
        Move a booking to new_status and stamp the matching timestamp, all in
        one transaction. Completion also marks the booking paid and, after the
        commit, hands the money split to the earnings recorder.
        """
        try:
            booking = self.store.get_booking_for_update(booking_id)
            if not booking:
                raise BookingNotFound(booking_id)

            current = booking.status
            if not can_transition(current, new_status):
                target = new_status.value if isinstance(new_status, BookingStatus) else new_status
                raise InvalidTransition(current, target)
            target = BookingStatus(new_status)

            changes = {"status": target.value}
            if cancellation_reason is not None:
                changes["cancellation_reason"] = cancellation_reason
            if provider_notes is not None:
                changes["provider_notes"] = provider_notes
            if target in TRANSITION_TIMESTAMPS:
                changes[TRANSITION_TIMESTAMPS[target]] = self.now()
            if target == BookingStatus.COMPLETED:
                changes["payment_status"] = PaymentStatus.PAID.value

            self.store.apply_changes(booking, changes)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.warning(f"Status change of booking {booking_id} to {new_status} refused: {e}")
            raise

        self.db.refresh(booking)
        logger.info(f"Booking {booking.booking_number}: {current} -> {target.value}")

        if target == BookingStatus.COMPLETED:
            self._recognize_earnings(booking)
        if notify_customer:
            self._notify_customer(booking, target)
        return booking

    def _recognize_earnings(self, booking: Booking) -> None:
        # the booking is already completed; a failure here is reconciled later
        try:
            self.earnings.record_earnings(
                booking.provider_id,
                booking.id,
                amount=booking.subtotal,
                commission=booking.commission_amount,
                net=booking.provider_earnings,
            )
        except Exception:
            self.db.rollback()
            logger.exception(f"Earnings recognition failed for completed booking {booking.id}")

    def _notify_customer(self, booking: Booking, status: BookingStatus) -> None:
        title, body = CUSTOMER_MESSAGES[status]
        try:
            self.notifier.notify(
                booking.customer_id,
                f"booking_{status.value}",
                {
                    "title": title,
                    "message": body.format(number=booking.booking_number),
                    "data": {"booking_id": booking.id, "booking_number": booking.booking_number},
                },
            )
        except Exception:
            logger.exception(f"Customer notification failed for booking {booking.id}")
