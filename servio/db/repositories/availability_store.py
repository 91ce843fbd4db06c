"""Availability store - weekly windows and blocked dates per provider"""

import logging
from datetime import date, time
from typing import Any, Optional

from sqlalchemy import case
from sqlalchemy.orm import Session

from servio.core.exceptions import AvailabilityNotFound, InvalidTimeRange
from servio.db.models.availability import DAYS_OF_WEEK, ProviderAvailability, ProviderBlockedDate

logger = logging.getLogger(__name__)

# fields a provider may change on an existing window
UPDATABLE_AVAILABILITY_FIELDS = ("day_of_week", "start_time", "end_time", "is_available")

_weekday_order = case(
    {day: index for index, day in enumerate(DAYS_OF_WEEK)},
    value=ProviderAvailability.day_of_week,
)


class AvailabilityStore:
    """Persistence for ProviderAvailability and ProviderBlockedDate rows"""

    def __init__(self, db: Session):
        self.db = db

    # ---------------- Weekly windows ----------------

    def list_availability(self, provider_id: int) -> list[ProviderAvailability]:
        """All windows for a provider, monday first, then by start time"""
        return (
            self.db.query(ProviderAvailability)
            .filter(ProviderAvailability.provider_id == provider_id)
            .order_by(_weekday_order, ProviderAvailability.start_time.asc())
            .all()
        )

    def get_availability(self, availability_id: int, provider_id: int) -> Optional[ProviderAvailability]:
        return (
            self.db.query(ProviderAvailability)
            .filter(
                ProviderAvailability.id == availability_id,
                ProviderAvailability.provider_id == provider_id,
            )
            .first()
        )

    def create_availability(
        self,
        provider_id: int,
        day_of_week: str,
        start_time: time,
        end_time: time,
        is_available: Optional[bool] = True,
    ) -> ProviderAvailability:
        if start_time >= end_time:
            raise InvalidTimeRange()

        window = ProviderAvailability(
            provider_id=provider_id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            is_available=True if is_available is None else is_available,
        )
        self.db.add(window)
        self.db.commit()
        self.db.refresh(window)
        logger.info(f"Provider {provider_id} added {day_of_week} window {start_time}-{end_time}")
        return window

    def update_availability(
        self, availability_id: int, provider_id: int, changes: dict[str, Any]
    ) -> ProviderAvailability:
        """
        Apply a sparse set of (field, value) pairs.
        Only UPDATABLE_AVAILABILITY_FIELDS are honoured; anything else, and null
        values (every field is non-nullable), are ignored.
        """
        window = self.get_availability(availability_id, provider_id)
        if not window:
            raise AvailabilityNotFound(availability_id)

        updates = {
            k: v for k, v in changes.items() if k in UPDATABLE_AVAILABILITY_FIELDS and v is not None
        }
        if not updates:
            return window

        start = updates.get("start_time", window.start_time)
        end = updates.get("end_time", window.end_time)
        if start >= end:
            raise InvalidTimeRange()

        for field, value in updates.items():
            setattr(window, field, value)

        self.db.commit()
        self.db.refresh(window)
        return window

    def delete_availability(self, availability_id: int, provider_id: int) -> bool:
        window = self.get_availability(availability_id, provider_id)
        if not window:
            return False
        self.db.delete(window)
        self.db.commit()
        return True

    def windows_for_day(self, provider_id: int, day_of_week: str) -> list[ProviderAvailability]:
        """Active windows for one weekday, earliest first"""
        return (
            self.db.query(ProviderAvailability)
            .filter(
                ProviderAvailability.provider_id == provider_id,
                ProviderAvailability.day_of_week == day_of_week,
                ProviderAvailability.is_available == True,  # noqa: E712
            )
            .order_by(ProviderAvailability.start_time.asc())
            .all()
        )

    # ---------------- Blocked dates ----------------

    def list_blocked_dates(self, provider_id: int) -> list[ProviderBlockedDate]:
        return (
            self.db.query(ProviderBlockedDate)
            .filter(ProviderBlockedDate.provider_id == provider_id)
            .order_by(ProviderBlockedDate.blocked_date.desc())
            .all()
        )

    def add_blocked_date(
        self, provider_id: int, blocked_date: date, reason: Optional[str] = None
    ) -> ProviderBlockedDate:
        """Block a date. Blocking an already blocked date replaces its reason."""
        blocked = (
            self.db.query(ProviderBlockedDate)
            .filter(
                ProviderBlockedDate.provider_id == provider_id,
                ProviderBlockedDate.blocked_date == blocked_date,
            )
            .first()
        )
        if blocked:
            blocked.reason = reason
        else:
            blocked = ProviderBlockedDate(provider_id=provider_id, blocked_date=blocked_date, reason=reason)
            self.db.add(blocked)

        self.db.commit()
        self.db.refresh(blocked)
        return blocked

    def delete_blocked_date(self, blocked_date_id: int, provider_id: int) -> bool:
        blocked = (
            self.db.query(ProviderBlockedDate)
            .filter(
                ProviderBlockedDate.id == blocked_date_id,
                ProviderBlockedDate.provider_id == provider_id,
            )
            .first()
        )
        if not blocked:
            return False
        self.db.delete(blocked)
        self.db.commit()
        return True

    def is_blocked(self, provider_id: int, on_date: date) -> bool:
        return (
            self.db.query(ProviderBlockedDate.id)
            .filter(
                ProviderBlockedDate.provider_id == provider_id,
                ProviderBlockedDate.blocked_date == on_date,
            )
            .first()
            is not None
        )
