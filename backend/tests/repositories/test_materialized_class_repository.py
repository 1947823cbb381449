# backend/tests/repositories/test_materialized_class_repository.py
"""Constraints and lookups of the materialized class store."""

from datetime import timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from classbook.core.exceptions import RepositoryException
from classbook.models import ClassTemplate, MaterializedClass
from classbook.repositories import RepositoryFactory
from tests._utils.builders import make_one_off_class, make_template
from tests._utils.constants import ANCHOR


@pytest.fixture
def repository(db):
    return RepositoryFactory.create_materialized_class_repository(db)


@pytest.fixture
def template(db, teacher, student):
    return make_template(db, teacher, anchor_start=ANCHOR, participants=[student])


def class_fields(template, start=ANCHOR):
    return dict(
        template_id=template.id,
        teacher_id=template.teacher_id,
        occurrence_start=start,
        occurrence_end=start + timedelta(hours=1),
        duration_minutes=60,
        status="confirmed",
    )


class TestOccurrenceUniqueness:
    def test_second_row_for_same_occurrence_is_a_unique_violation(self, db, repository, template):
        repository.create(**class_fields(template))
        db.commit()

        with pytest.raises(RepositoryException) as exc_info:
            repository.create(**class_fields(template))

        assert isinstance(exc_info.value.__cause__, IntegrityError)
        assert repository.is_occurrence_unique_violation(exc_info.value.__cause__)
        assert db.query(MaterializedClass).count() == 1

    def test_other_integrity_errors_are_not_occurrence_violations(self, db, repository, template):
        fields = class_fields(template)
        fields["occurrence_end"] = fields["occurrence_start"]

        with pytest.raises(RepositoryException) as exc_info:
            repository.create(**fields)

        assert not repository.is_occurrence_unique_violation(exc_info.value.__cause__)

    def test_non_integrity_errors_are_not_violations(self, repository):
        assert not repository.is_occurrence_unique_violation(ValueError("boom"))

    def test_one_off_classes_may_share_a_start(self, db, teacher, student):
        make_one_off_class(db, teacher, start=ANCHOR, end=ANCHOR + timedelta(hours=1), students=[student])
        make_one_off_class(db, teacher, start=ANCHOR, end=ANCHOR + timedelta(hours=1))

        assert db.query(MaterializedClass).filter(MaterializedClass.template_id.is_(None)).count() == 2


class TestLookups:
    def test_find_by_occurrence_accepts_any_offset(self, db, repository, template):
        row = repository.create(**class_fields(template))
        db.commit()
        brt = timezone(timedelta(hours=-3))

        found = repository.find_by_occurrence(template.id, ANCHOR.astimezone(brt))

        assert found is not None
        assert found.id == row.id

    def test_times_round_trip_as_utc(self, db, session_factory, repository, template):
        row = repository.create(**class_fields(template))
        db.commit()

        fresh = session_factory()
        try:
            loaded = fresh.get(MaterializedClass, row.id)
            assert loaded.occurrence_start == ANCHOR
            assert loaded.occurrence_start.tzinfo is not None
        finally:
            fresh.close()

    def test_range_queries_use_overlap(self, db, repository, template, teacher, student):
        repository.create(**class_fields(template))
        repository.create(**class_fields(template, ANCHOR + timedelta(days=7)))
        db.commit()

        window_start = ANCHOR + timedelta(minutes=30)
        window_end = ANCHOR + timedelta(days=7)

        assert len(repository.list_for_teacher_in_range(teacher.id, window_start, window_end)) == 1
        assert len(repository.list_for_templates_in_range([template.id], window_start, None)) == 2
        assert repository.list_for_templates_in_range([], window_start, None) == []

    def test_student_range_query_follows_participants(self, db, repository, teacher, student, other_student):
        make_one_off_class(db, teacher, start=ANCHOR, end=ANCHOR + timedelta(hours=1), students=[student])

        assert len(repository.list_for_student_in_range(student.id, ANCHOR, None)) == 1
        assert repository.list_for_student_in_range(other_student.id, ANCHOR, None) == []


class TestTemplateConstraints:
    def test_template_needs_exactly_one_termination_mode(self, db, teacher):
        db.add(
            ClassTemplate(
                teacher_id=teacher.id,
                anchor_start=ANCHOR,
                duration_minutes=60,
                frequency="weekly",
                occurrence_count=4,
                is_infinite=True,
            )
        )

        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

    def test_naive_datetimes_are_rejected(self, db, repository, template):
        fields = class_fields(template)
        fields["occurrence_start"] = ANCHOR.replace(tzinfo=None)

        with pytest.raises(RepositoryException):
            repository.create(**fields)
