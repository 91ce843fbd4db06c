"""Tests for slot resolution."""

from datetime import timedelta

import pytest

from factories import TODAY, TOMORROW, add_window, book_directly, make_provider, make_service
from servio.core.exceptions import InvalidDuration, OutOfRangeDate


class TestSlotLayout:
    def test_duration_plus_buffer_stride(self, db, resolver, provider):
        add_window(db, provider, "tuesday", "09:00", "12:00")

        result = resolver.resolve(provider.id, TOMORROW, 60)

        assert result.slots == ["09:00", "10:30"]
        assert result.buffer_minutes == 30
        assert result.unavailable is False
        assert result.no_weekly_availability is False

    def test_existing_booking_removes_its_slot(self, db, resolver, provider, customer, service):
        add_window(db, provider, "tuesday", "09:00", "12:00")
        book_directly(db, customer, service, TOMORROW, "09:00")

        assert resolver.resolve(provider.id, TOMORROW, 60).slots == ["10:30"]

    def test_booking_inside_the_service_span_collides(self, db, resolver, provider, customer, service):
        add_window(db, provider, "tuesday", "09:00", "12:00")
        book_directly(db, customer, service, TOMORROW, "09:30")

        assert resolver.resolve(provider.id, TOMORROW, 60).slots == ["10:30"]

    def test_booking_in_the_buffer_gap_does_not_collide(self, db, resolver, provider, customer, service):
        add_window(db, provider, "tuesday", "09:00", "12:00")
        book_directly(db, customer, service, TOMORROW, "10:00")

        assert resolver.resolve(provider.id, TOMORROW, 60).slots == ["09:00", "10:30"]

    def test_taken_candidate_still_consumes_a_full_stride(self, db, resolver, provider, customer, service):
        add_window(db, provider, "tuesday", "09:00", "13:30")
        book_directly(db, customer, service, TOMORROW, "09:00")

        # 09:00 is taken; the next candidate is 10:30, not 09:30
        assert resolver.resolve(provider.id, TOMORROW, 60).slots == ["10:30", "12:00"]

    @pytest.mark.parametrize("status", ["cancelled", "rejected"])
    def test_released_bookings_do_not_consume_slots(self, db, resolver, provider, customer, service, status):
        add_window(db, provider, "tuesday", "09:00", "12:00")
        book_directly(db, customer, service, TOMORROW, "09:00", status=status)

        assert resolver.resolve(provider.id, TOMORROW, 60).slots == ["09:00", "10:30"]

    def test_duration_not_aligned_to_step(self, db, resolver, provider):
        add_window(db, provider, "tuesday", "09:00", "11:00")

        assert resolver.resolve(provider.id, TOMORROW, 45).slots == ["09:00", "10:15"]

    def test_windows_are_concatenated_in_start_order(self, db, resolver, provider):
        add_window(db, provider, "tuesday", "13:00", "15:00")
        add_window(db, provider, "tuesday", "09:00", "11:00")

        assert resolver.resolve(provider.id, TOMORROW, 60).slots == ["09:00", "13:00"]

    def test_window_shorter_than_service_yields_nothing(self, db, resolver, provider):
        add_window(db, provider, "tuesday", "09:00", "09:30")

        result = resolver.resolve(provider.id, TOMORROW, 60)

        assert result.slots == []
        assert result.no_weekly_availability is False

    def test_other_weekdays_are_ignored(self, db, resolver, provider):
        add_window(db, provider, "monday", "09:00", "12:00")

        result = resolver.resolve(provider.id, TOMORROW, 60)

        assert result.slots == []
        assert result.no_weekly_availability is True

    def test_switched_off_window_counts_as_no_availability(self, db, resolver, provider):
        add_window(db, provider, "tuesday", "09:00", "12:00", is_available=False)

        assert resolver.resolve(provider.id, TOMORROW, 60).no_weekly_availability is True

    def test_other_providers_bookings_do_not_interfere(self, db, resolver, provider, customer):
        other = make_provider(db)
        other_service = make_service(db, other)
        add_window(db, provider, "tuesday", "09:00", "12:00")
        book_directly(db, customer, other_service, TOMORROW, "09:00")

        assert resolver.resolve(provider.id, TOMORROW, 60).slots == ["09:00", "10:30"]


class TestBlockedDates:
    def test_blocked_date_is_flagged_not_an_error(self, db, resolver, availability_store, provider):
        add_window(db, provider, "tuesday", "09:00", "12:00")
        availability_store.add_blocked_date(provider.id, TOMORROW, "Holiday")

        result = resolver.resolve(provider.id, TOMORROW, 60)

        assert result.slots == []
        assert result.unavailable is True


class TestValidation:
    @pytest.mark.parametrize("duration", [0, -30])
    def test_non_positive_duration_is_rejected(self, resolver, provider, duration):
        with pytest.raises(InvalidDuration):
            resolver.resolve(provider.id, TOMORROW, duration)

    def test_last_day_of_horizon_is_allowed(self, db, resolver, provider):
        last_day = TODAY + timedelta(days=30)  # a wednesday
        add_window(db, provider, "wednesday", "09:00", "10:00")

        assert resolver.resolve(provider.id, last_day, 60).slots == ["09:00"]

    def test_day_after_horizon_is_rejected(self, resolver, provider):
        with pytest.raises(OutOfRangeDate) as exc_info:
            resolver.resolve(provider.id, TODAY + timedelta(days=31), 60)

        assert exc_info.value.latest == TODAY + timedelta(days=30)

    def test_past_date_is_rejected(self, resolver, provider):
        with pytest.raises(OutOfRangeDate):
            resolver.resolve(provider.id, TODAY - timedelta(days=1), 60)

    def test_today_is_allowed(self, db, resolver, provider):
        add_window(db, provider, "monday", "09:00", "10:00")

        assert resolver.resolve(provider.id, TODAY, 60).slots == ["09:00"]
