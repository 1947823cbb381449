# backend/tests/unit/test_occurrence_identity.py
"""Unit tests for occurrence identity, windows and recurrence rules."""

from datetime import datetime, timedelta, timezone

import pytest

from classbook.core.enums import RecurrenceFrequency
from classbook.core.exceptions import InvalidRecurrence
from classbook.domain import (
    ClassRef,
    MaterializedOccurrence,
    OccurrenceKey,
    RecurrenceRule,
    VirtualOccurrence,
    Window,
)
from classbook.domain.occurrence import occurrence_sort_key

UTC = timezone.utc
START = datetime(2025, 3, 4, 10, 0, tzinfo=UTC)


class TestOccurrenceKey:
    def test_equal_instants_in_different_offsets_are_the_same_key(self):
        brt = timezone(timedelta(hours=-3))

        assert OccurrenceKey.of("t1", START) == OccurrenceKey.of("t1", START.astimezone(brt))
        assert OccurrenceKey.of("t1", START.astimezone(brt)).start.tzinfo == UTC

    def test_keys_hash_equal(self):
        assert len({OccurrenceKey.of("t1", START), OccurrenceKey.of("t1", START)}) == 1

    def test_naive_start_is_rejected(self):
        with pytest.raises(ValueError):
            OccurrenceKey.of("t1", datetime(2025, 3, 4, 10, 0))

    def test_key_and_class_ref_are_distinct(self):
        assert OccurrenceKey.of("t1", START) != ClassRef("t1")


class TestWindow:
    def test_half_open(self):
        window = Window(START, START + timedelta(hours=1))

        assert window.contains(START)
        assert not window.contains(START + timedelta(hours=1))

    def test_unbounded(self):
        assert Window(START).contains(START + timedelta(days=10_000))

    def test_rejects_inverted_bounds(self):
        with pytest.raises(ValueError):
            Window(START, START)


class TestRecurrenceRule:
    def test_exactly_one_termination_mode(self):
        with pytest.raises(InvalidRecurrence):
            RecurrenceRule("weekly")
        with pytest.raises(InvalidRecurrence):
            RecurrenceRule("weekly", end=START, count=3)
        with pytest.raises(InvalidRecurrence):
            RecurrenceRule("weekly", count=3, is_infinite=True)

    def test_count_must_be_positive(self):
        with pytest.raises(InvalidRecurrence):
            RecurrenceRule("weekly", count=0)

    def test_end_must_be_aware(self):
        with pytest.raises(InvalidRecurrence):
            RecurrenceRule("weekly", end=datetime(2025, 6, 1))

    def test_unknown_frequency(self):
        with pytest.raises(InvalidRecurrence) as exc_info:
            RecurrenceRule("daily", is_infinite=True)
        assert exc_info.value.code == "INVALID_RECURRENCE"

    def test_frequency_is_coerced_and_stepped(self):
        rule = RecurrenceRule("biweekly", is_infinite=True)

        assert rule.frequency is RecurrenceFrequency.BIWEEKLY
        assert rule.step == timedelta(days=14)
        assert RecurrenceRule("monthly", count=2).step is None


class TestOccurrenceVariants:
    def test_virtual_exposes_key_parts(self):
        occurrence = VirtualOccurrence(
            key=OccurrenceKey.of("t1", START),
            end=START + timedelta(hours=1),
            teacher_id="teacher",
            duration_minutes=60,
            status="confirmed",
            participants=(),
        )

        assert occurrence.kind == "virtual"
        assert occurrence.template_id == "t1"
        assert occurrence.start == START

    def test_one_off_class_has_no_key(self):
        occurrence = MaterializedOccurrence(
            class_id="c1",
            template_id=None,
            start=START,
            end=START + timedelta(hours=1),
            teacher_id="teacher",
            duration_minutes=60,
            status="confirmed",
            participants=(),
        )

        assert occurrence.kind == "materialized"
        assert occurrence.key is None
        assert occurrence_sort_key(occurrence) == (START, "c1")
