"""
Collaborators the booking engine calls but does not own.

Each class is the database-backed default; anything with the same
method can be injected instead (tests pass stubs).
"""

import logging
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from servio.core.config import DEFAULT_COMMISSION_RATE
from servio.db.models.business_profile import BusinessProfile
from servio.db.models.earning import Earning
from servio.db.models.notification import Notification

logger = logging.getLogger(__name__)


class VerificationGate:
    """Reads a provider's verification status (approved|pending|rejected|resubmitted)"""

    def __init__(self, db: Session):
        self.db = db

    def get_verification_status(self, provider_id: int) -> Optional[str]:
        """
        Returns None when the provider has no business profile.
        The profile row stays locked until the caller's transaction ends, so the
        status cannot flip while a booking is being priced against it.
        """
        profile = (
            self.db.query(BusinessProfile)
            .filter(BusinessProfile.user_id == provider_id)
            .with_for_update()
            .first()
        )
        return profile.verification_status if profile else None


class CommissionSource:
    def __init__(self, db: Session, default_rate: Decimal = DEFAULT_COMMISSION_RATE):
        self.db = db
        self.default_rate = default_rate

    def get_commission_rate(self, provider_id: int) -> Decimal:
        rate = (
            self.db.query(BusinessProfile.commission_rate)
            .filter(BusinessProfile.user_id == provider_id)
            .scalar()
        )
        if rate is None:
            return self.default_rate
        return Decimal(str(rate))


class EarningsRecorder:
    """Writes the earnings row for a completed booking, at most once per booking"""

    def __init__(self, db: Session):
        self.db = db

    def record_earnings(
        self,
        provider_id: int,
        booking_id: int,
        amount: Decimal,
        commission: Decimal,
        net: Decimal,
    ) -> None:
        existing = self.db.query(Earning.id).filter(Earning.booking_id == booking_id).first()
        if existing:
            logger.info(f"Earnings for booking {booking_id} already recorded, skipping")
            return

        self.db.add(
            Earning(
                provider_id=provider_id,
                booking_id=booking_id,
                amount=amount,
                commission=commission,
                net_amount=net,
            )
        )
        try:
            self.db.commit()
        except IntegrityError:
            # a concurrent completion inserted it first
            self.db.rollback()
            logger.info(f"Earnings for booking {booking_id} recorded concurrently, skipping")
            return
        logger.info(f"💰 Recorded earnings for booking {booking_id}: net {net}")


class Notifier:
    """In-app notifications. Fire-and-forget: delivery problems never reach the caller."""

    def __init__(self, db: Session):
        self.db = db

    def notify(self, user_id: int, type: str, payload: dict[str, Any]) -> None:
        try:
            self.db.add(
                Notification(
                    user_id=user_id,
                    type=type,
                    title=payload.get("title", type),
                    message=payload.get("message", ""),
                    data=payload.get("data"),
                )
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Failed to notify user {user_id} ({type}): {e}")
