# backend/tests/unit/test_availability_resolver.py
"""
Unit tests for the availability resolver.

The resolver is a pure function, so every case builds its context by hand.
"""

from datetime import datetime, time, timedelta, timezone

import pytest

from classbook.core.clock import FixedClock
from classbook.services.availability_resolver import (
    BLOCKED,
    IN_PAST,
    OCCUPIED,
    OUTSIDE_WORKING_HOURS,
    AvailabilityContext,
    BlockedInterval,
    Occupier,
    Slot,
    WorkingWindow,
    intervals_overlap,
    resolve_availability,
)

UTC = timezone.utc
NOW = datetime(2025, 3, 3, 9, 0, tzinfo=UTC)
TUESDAY_10 = datetime(2025, 3, 4, 10, 0, tzinfo=UTC)

TUESDAY_HOURS = (WorkingWindow(day_of_week=1, start_time=time(9), end_time=time(12)),)


@pytest.fixture
def clock():
    return FixedClock(NOW)


class TestIntervals:
    def test_touching_intervals_do_not_overlap(self):
        """Half-open intervals: [10, 11) and [11, 12) share no instant."""
        eleven = TUESDAY_10 + timedelta(hours=1)
        assert not intervals_overlap(TUESDAY_10, eleven, eleven, eleven + timedelta(hours=1))

    def test_contained_interval_overlaps(self):
        assert intervals_overlap(
            TUESDAY_10,
            TUESDAY_10 + timedelta(hours=2),
            TUESDAY_10 + timedelta(minutes=30),
            TUESDAY_10 + timedelta(minutes=45),
        )

    def test_slot_rejects_empty_duration(self):
        with pytest.raises(ValueError):
            Slot(TUESDAY_10, TUESDAY_10)


class TestResolveAvailability:
    def test_free_slot_without_context(self, clock):
        result = resolve_availability(Slot.of(TUESDAY_10, 60), AvailabilityContext(), clock)

        assert result.available
        assert result.reason is None

    def test_past_slot_is_rejected_first(self, clock):
        past = NOW - timedelta(hours=1)
        context = AvailabilityContext(blocks=(BlockedInterval(past, NOW),))

        result = resolve_availability(Slot.of(past, 30), context, clock)

        assert result.reason == IN_PAST

    def test_working_hours_accept_slot_inside(self, clock):
        context = AvailabilityContext(working_hours=TUESDAY_HOURS)

        assert resolve_availability(Slot.of(TUESDAY_10, 120), context, clock).available

    def test_working_hours_reject_overrun(self, clock):
        context = AvailabilityContext(working_hours=TUESDAY_HOURS)

        result = resolve_availability(Slot.of(TUESDAY_10 + timedelta(hours=1, minutes=30), 60), context, clock)

        assert result.reason == OUTSIDE_WORKING_HOURS

    def test_working_hours_reject_other_weekday(self, clock):
        context = AvailabilityContext(working_hours=TUESDAY_HOURS)

        result = resolve_availability(Slot.of(TUESDAY_10 + timedelta(days=1), 60), context, clock)

        assert result.reason == OUTSIDE_WORKING_HOURS

    def test_inactive_working_hours_are_ignored(self, clock):
        context = AvailabilityContext(
            working_hours=(WorkingWindow(1, time(9), time(12), is_active=False),)
        )

        result = resolve_availability(Slot.of(TUESDAY_10, 60), context, clock)

        assert result.reason == OUTSIDE_WORKING_HOURS

    def test_working_hours_use_teacher_timezone(self, clock):
        # 09:00-12:00 in Sao Paulo is 12:00-15:00 UTC
        context = AvailabilityContext(timezone="America/Sao_Paulo", working_hours=TUESDAY_HOURS)

        assert not resolve_availability(Slot.of(TUESDAY_10, 60), context, clock).available
        assert resolve_availability(
            Slot.of(TUESDAY_10 + timedelta(hours=3), 60), context, clock
        ).available

    def test_hours_closing_at_midnight_accept_the_last_slot(self, clock):
        evening = (WorkingWindow(day_of_week=1, start_time=time(20), end_time=time(0)),)
        context = AvailabilityContext(working_hours=evening)
        tuesday_23 = TUESDAY_10 + timedelta(hours=13)

        assert resolve_availability(Slot.of(tuesday_23, 60), context, clock).available
        overrun = resolve_availability(Slot.of(tuesday_23 + timedelta(minutes=30), 60), context, clock)
        assert overrun.reason == OUTSIDE_WORKING_HOURS

    def test_block_reports_its_interval(self, clock):
        block = BlockedInterval(TUESDAY_10 + timedelta(minutes=30), TUESDAY_10 + timedelta(hours=2), "Dentist")
        context = AvailabilityContext(blocks=(block,))

        result = resolve_availability(Slot.of(TUESDAY_10, 60), context, clock)

        assert result.reason == BLOCKED
        assert result.detail == "Dentist"
        assert result.conflict_start == block.start

    def test_block_takes_precedence_over_occupier(self, clock):
        context = AvailabilityContext(
            blocks=(BlockedInterval(TUESDAY_10, TUESDAY_10 + timedelta(hours=1)),),
            occupiers=(Occupier(TUESDAY_10, TUESDAY_10 + timedelta(hours=1), "confirmed"),),
        )

        assert resolve_availability(Slot.of(TUESDAY_10, 60), context, clock).reason == BLOCKED

    def test_occupied_by_active_class(self, clock):
        occupier = Occupier(TUESDAY_10, TUESDAY_10 + timedelta(hours=1), "pending", reference="cls-1")

        result = resolve_availability(
            Slot.of(TUESDAY_10 + timedelta(minutes=30), 60), AvailabilityContext(occupiers=(occupier,)), clock
        )

        assert result.reason == OCCUPIED
        assert result.detail == "cls-1"

    def test_adjacent_class_does_not_conflict(self, clock):
        occupier = Occupier(TUESDAY_10, TUESDAY_10 + timedelta(hours=1), "confirmed")

        result = resolve_availability(
            Slot.of(TUESDAY_10 + timedelta(hours=1), 60), AvailabilityContext(occupiers=(occupier,)), clock
        )

        assert result.available

    @pytest.mark.parametrize("status", ["cancelled", "completed"])
    def test_inactive_classes_do_not_occupy(self, clock, status):
        occupier = Occupier(TUESDAY_10, TUESDAY_10 + timedelta(hours=1), status)

        result = resolve_availability(Slot.of(TUESDAY_10, 60), AvailabilityContext(occupiers=(occupier,)), clock)

        assert result.available

    def test_empty_group_class_does_not_occupy(self, clock):
        empty = Occupier(TUESDAY_10, TUESDAY_10 + timedelta(hours=1), "confirmed", True, 0)
        booked = Occupier(TUESDAY_10, TUESDAY_10 + timedelta(hours=1), "confirmed", True, 2)

        assert resolve_availability(Slot.of(TUESDAY_10, 60), AvailabilityContext(occupiers=(empty,)), clock).available
        assert not resolve_availability(
            Slot.of(TUESDAY_10, 60), AvailabilityContext(occupiers=(booked,)), clock
        ).available
