# backend/tests/routes/test_occurrence_routes.py
"""HTTP contract of POST /api/v1/materialize-occurrence."""

from datetime import datetime, timedelta

import pytest

from tests._utils.builders import auth_headers, make_template
from tests._utils.constants import ANCHOR

URL = "/api/v1/materialize-occurrence"


@pytest.fixture
def template(db, teacher, student, other_student):
    return make_template(
        db,
        teacher,
        anchor_start=ANCHOR,
        occurrence_count=4,
        participants=[(student, "confirmed"), (other_student, "pending")],
    )


def body(template, start=ANCHOR, **extra):
    return {"template_id": template.id, "occurrence_start": start.isoformat(), **extra}


class TestMaterializeOccurrence:
    def test_creates_then_returns_existing(self, client, template, student, other_student):
        first = client.post(URL, json=body(template), headers=auth_headers(student))
        second = client.post(URL, json=body(template), headers=auth_headers(student))

        assert first.status_code == 200
        data = first.json()
        assert data["outcome"] == "created"
        assert data["template_id"] == template.id
        assert datetime.fromisoformat(data["occurrence_start"].replace("Z", "+00:00")) == ANCHOR
        assert {p["student_id"]: p["status"] for p in data["participants"]} == {
            student.id: "confirmed",
            other_student.id: "pending",
        }
        assert second.json()["outcome"] == "existing"
        assert second.json()["materialized_class_id"] == data["materialized_class_id"]

    def test_offset_start_is_the_same_occurrence(self, client, template, student):
        first = client.post(URL, json=body(template), headers=auth_headers(student))
        shifted = {"template_id": template.id, "occurrence_start": "2025-03-04T07:00:00-03:00"}

        second = client.post(URL, json=shifted, headers=auth_headers(student))

        assert second.json()["materialized_class_id"] == first.json()["materialized_class_id"]

    def test_requires_identity(self, client, template):
        response = client.post(URL, json=body(template))

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "AUTHENTICATION_REQUIRED"

    def test_unknown_identity(self, client, template):
        response = client.post(URL, json=body(template), headers={"X-User-Id": "01HNOBODY"})

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "UNKNOWN_USER"

    def test_non_participant_is_forbidden(self, client, template, outsider):
        response = client.post(URL, json=body(template), headers=auth_headers(outsider))

        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "NOT_A_PARTICIPANT"

    def test_other_teacher_is_forbidden(self, client, template, other_teacher):
        response = client.post(URL, json=body(template), headers=auth_headers(other_teacher))

        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "NOT_OWNER"

    def test_unknown_template(self, client, student):
        payload = {"template_id": "01HZZZZZZZZZZZZZZZZZZZZZZZ", "occurrence_start": ANCHOR.isoformat()}

        response = client.post(URL, json=payload, headers=auth_headers(student))

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "TEMPLATE_NOT_FOUND"

    def test_expired_series_is_gone(self, client, template, student):
        response = client.post(
            URL, json=body(template, ANCHOR + timedelta(days=28)), headers=auth_headers(student)
        )

        assert response.status_code == 410
        detail = response.json()["detail"]
        assert detail["code"] == "TEMPLATE_EXPIRED"
        assert detail["details"]["expired_at"].startswith("2025-03-25")

    def test_misaligned_start(self, client, template, student):
        response = client.post(
            URL, json=body(template, ANCHOR + timedelta(hours=1)), headers=auth_headers(student)
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "OCCURRENCE_NOT_IN_SERIES"

    def test_naive_start_fails_validation(self, client, template, student):
        payload = {"template_id": template.id, "occurrence_start": "2025-03-04T10:00:00"}

        response = client.post(URL, json=payload, headers=auth_headers(student))

        assert response.status_code == 422

    def test_unknown_trigger_reason(self, client, template, student):
        response = client.post(
            URL, json=body(template, trigger_reason="whim"), headers=auth_headers(student)
        )

        assert response.status_code == 422
