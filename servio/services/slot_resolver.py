"""
Slot resolution - which start times a provider can still be booked at on a date.

A provider's day is the union of its weekly windows for that weekday. Inside a
window candidate starts are laid out from the window start, one every
(duration + buffer) minutes, as long as the service still ends inside the
window. A candidate is dropped when any slot-step tick it covers is already
taken by a live booking.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, time, timedelta
from typing import Callable, Iterator

from servio.core.config import BookingConfig
from servio.core.exceptions import InvalidDuration, OutOfRangeDate
from servio.db.models.availability import DAYS_OF_WEEK, ProviderAvailability
from servio.db.repositories.availability_store import AvailabilityStore
from servio.db.repositories.booking_store import BookingStore

logger = logging.getLogger(__name__)


@dataclass
class SlotResult:
    provider_id: int
    date: date
    buffer_minutes: int
    slots: list[str] = field(default_factory=list)
    unavailable: bool = False
    no_weekly_availability: bool = False


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def format_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


class SlotResolver:
    def __init__(
        self,
        availability: AvailabilityStore,
        bookings: BookingStore,
        config: BookingConfig,
        today: Callable[[], date] = date.today,
    ):
        self.availability = availability
        self.bookings = bookings
        self.config = config
        self.today = today

    def booking_window(self) -> tuple[date, date]:
        """First and last bookable dates, both inclusive"""
        first = self.today()
        return first, first + timedelta(days=self.config.horizon_days)

    def resolve(self, provider_id: int, on_date: date, duration_minutes: int) -> SlotResult:
        if duration_minutes is None or duration_minutes <= 0:
            raise InvalidDuration(duration_minutes)

        earliest, latest = self.booking_window()
        if on_date < earliest or on_date > latest:
            raise OutOfRangeDate(on_date, earliest, latest)

        result = SlotResult(provider_id=provider_id, date=on_date, buffer_minutes=self.config.buffer_minutes)

        if self.availability.is_blocked(provider_id, on_date):
            result.unavailable = True
            return result

        day_of_week = DAYS_OF_WEEK[on_date.weekday()]
        windows = self.availability.windows_for_day(provider_id, day_of_week)
        if not windows:
            result.no_weekly_availability = True
            return result

        consumed = set(self.bookings.booked_times(provider_id, on_date))

        for window in windows:
            result.slots.extend(self._window_slots(window, duration_minutes, consumed))

        logger.debug(
            f"Provider {provider_id} on {on_date}: {len(result.slots)} slots "
            f"for {duration_minutes}min across {len(windows)} window(s)"
        )
        return result

    def _window_slots(
        self, window: ProviderAvailability, duration_minutes: int, consumed: set[str]
    ) -> Iterator[str]:
        step = self.config.slot_step_minutes
        stride = duration_minutes + self.config.buffer_minutes
        window_end = to_minutes(window.end_time)

        cursor = to_minutes(window.start_time)
        while cursor + duration_minutes <= window_end:
            covered = (format_minutes(tick) for tick in range(cursor, cursor + duration_minutes, step))
            if not any(tick in consumed for tick in covered):
                yield format_minutes(cursor)
            # taken or not, the next candidate starts after this one plus the buffer
            cursor += stride
