# backend/tests/unit/test_class_template_schema.py
"""Request schema validation for templates and occurrence references."""

from datetime import datetime, timedelta, timezone

from pydantic import TypeAdapter, ValidationError
import pytest

from classbook.domain import ClassRef, OccurrenceKey
from classbook.schemas.class_template import ClassTemplateCreate
from classbook.schemas.occurrence import MaterializeOccurrenceRequest, OccurrenceRefPayload

ANCHOR = datetime(2025, 3, 4, 10, 0, tzinfo=timezone.utc)


def payload(**overrides):
    data = {
        "anchor_start": ANCHOR.isoformat(),
        "duration_minutes": 60,
        "frequency": "weekly",
        "is_infinite": True,
        "participants": [{"student_id": "01STUDENT", "status": "confirmed"}],
    }
    data.update(overrides)
    return data


class TestClassTemplateCreate:
    def test_valid_infinite_template(self):
        model = ClassTemplateCreate(**payload())

        assert model.is_infinite
        assert model.participants[0].status == "confirmed"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"is_infinite": False},
            {"occurrence_count": 5},
            {"recurrence_end": (ANCHOR + timedelta(days=30)).isoformat(), "occurrence_count": 2, "is_infinite": False},
        ],
    )
    def test_requires_exactly_one_termination_mode(self, overrides):
        with pytest.raises(ValidationError):
            ClassTemplateCreate(**payload(**overrides))

    def test_end_before_anchor_is_rejected(self):
        with pytest.raises(ValidationError):
            ClassTemplateCreate(
                **payload(is_infinite=False, recurrence_end=(ANCHOR - timedelta(days=1)).isoformat())
            )

    def test_naive_anchor_is_rejected(self):
        with pytest.raises(ValidationError):
            ClassTemplateCreate(**payload(anchor_start="2025-03-04T10:00:00"))

    def test_duplicate_students_are_rejected(self):
        students = [{"student_id": "01STUDENT"}, {"student_id": "01STUDENT"}]
        with pytest.raises(ValidationError):
            ClassTemplateCreate(**payload(participants=students))

    def test_unknown_fields_are_forbidden(self):
        with pytest.raises(ValidationError):
            ClassTemplateCreate(**payload(color="blue"))

    def test_unknown_frequency(self):
        with pytest.raises(ValidationError):
            ClassTemplateCreate(**payload(frequency="daily"))


class TestOccurrenceRefPayload:
    adapter = TypeAdapter(OccurrenceRefPayload)

    def test_virtual_ref_normalizes_to_utc_key(self):
        ref = self.adapter.validate_python(
            {"kind": "virtual", "template_id": "01TEMPLATE", "occurrence_start": "2025-03-04T07:00:00-03:00"}
        )

        assert ref.to_domain() == OccurrenceKey.of("01TEMPLATE", ANCHOR)

    def test_materialized_ref(self):
        ref = self.adapter.validate_python({"kind": "materialized", "class_id": "01CLASS"})

        assert ref.to_domain() == ClassRef("01CLASS")

    def test_unknown_kind_is_rejected(self):
        with pytest.raises(ValidationError):
            self.adapter.validate_python({"kind": "ghost", "class_id": "01CLASS"})

    def test_materialize_request_requires_offset(self):
        with pytest.raises(ValidationError):
            MaterializeOccurrenceRequest(template_id="01TEMPLATE", occurrence_start="2025-03-04T10:00:00")

    def test_materialize_request_defaults_trigger(self):
        request = MaterializeOccurrenceRequest(template_id="01TEMPLATE", occurrence_start=ANCHOR)

        assert request.trigger_reason == "status_change"
