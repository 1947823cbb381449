"""Builders for persisted and transient test data."""

from datetime import datetime, time
from decimal import Decimal
from itertools import count
from typing import Iterable, Optional, Sequence, Tuple, Union

from sqlalchemy.orm import Session
import ulid

from classbook.models import (
    AvailabilityBlock,
    CancellationPolicy,
    ClassService,
    ClassTemplate,
    MaterializedClass,
    MaterializedParticipant,
    TemplateParticipant,
    User,
    WorkingHours,
)

_sequence = count(1)

ParticipantSpec = Union[User, Tuple[User, str]]


def auth_headers(user: User) -> dict:
    return {"X-User-Id": user.id}


def make_user(
    db: Session,
    *,
    role: str = "student",
    full_name: Optional[str] = None,
    timezone: str = "UTC",
    has_financial_module: bool = False,
) -> User:
    n = next(_sequence)
    user = User(
        email=f"user{n}@example.com",
        full_name=full_name or f"User {n}",
        role=role,
        timezone=timezone,
        has_financial_module=has_financial_module,
    )
    db.add(user)
    db.commit()
    return user


def make_service(
    db: Session, teacher: User, *, price: Decimal = Decimal("80.00"), duration_minutes: int = 60
) -> ClassService:
    service = ClassService(
        teacher_id=teacher.id,
        name="Conversation class",
        price=price,
        duration_minutes=duration_minutes,
        is_active=True,
    )
    db.add(service)
    db.commit()
    return service


def _participant_rows(participants: Iterable[ParticipantSpec]) -> list:
    rows = []
    for spec in participants:
        user, status = spec if isinstance(spec, tuple) else (spec, "confirmed")
        rows.append(TemplateParticipant(student_id=user.id, status=status))
    return rows


def make_template(
    db: Session,
    teacher: User,
    *,
    anchor_start: datetime,
    participants: Sequence[ParticipantSpec] = (),
    frequency: str = "weekly",
    duration_minutes: int = 60,
    recurrence_end: Optional[datetime] = None,
    occurrence_count: Optional[int] = None,
    timezone: str = "UTC",
    status: str = "confirmed",
    service: Optional[ClassService] = None,
    is_group_class: bool = False,
    is_experimental: bool = False,
) -> ClassTemplate:
    template = build_template(
        teacher_id=teacher.id,
        anchor_start=anchor_start,
        frequency=frequency,
        duration_minutes=duration_minutes,
        recurrence_end=recurrence_end,
        occurrence_count=occurrence_count,
        timezone=timezone,
        status=status,
        service_id=service.id if service else None,
        is_group_class=is_group_class,
        is_experimental=is_experimental,
    )
    template.participants.extend(_participant_rows(participants))
    db.add(template)
    db.commit()
    return template


def build_template(
    *,
    anchor_start: datetime,
    teacher_id: Optional[str] = None,
    frequency: str = "weekly",
    duration_minutes: int = 60,
    recurrence_end: Optional[datetime] = None,
    occurrence_count: Optional[int] = None,
    timezone: str = "UTC",
    status: str = "confirmed",
    service_id: Optional[str] = None,
    is_group_class: bool = False,
    is_experimental: bool = False,
    participants: Sequence[Tuple[str, str]] = (),
) -> ClassTemplate:
    """Transient template; infinite unless an end or a count is given."""
    template = ClassTemplate(
        id=str(ulid.ULID()),
        teacher_id=teacher_id or str(ulid.ULID()),
        anchor_start=anchor_start,
        duration_minutes=duration_minutes,
        timezone=timezone,
        frequency=frequency,
        recurrence_end=recurrence_end,
        occurrence_count=occurrence_count,
        is_infinite=recurrence_end is None and occurrence_count is None,
        is_group_class=is_group_class,
        is_experimental=is_experimental,
        notes=None,
        status=status,
        service_id=service_id,
    )
    for student_id, participant_status in participants:
        template.participants.append(
            TemplateParticipant(student_id=student_id, status=participant_status)
        )
    return template


def make_one_off_class(
    db: Session,
    teacher: User,
    *,
    start: datetime,
    end: datetime,
    students: Sequence[User] = (),
    status: str = "confirmed",
) -> MaterializedClass:
    row = MaterializedClass(
        teacher_id=teacher.id,
        template_id=None,
        occurrence_start=start,
        occurrence_end=end,
        duration_minutes=int((end - start).total_seconds() // 60),
        status=status,
    )
    row.participants.extend(
        MaterializedParticipant(student_id=s.id, status="confirmed") for s in students
    )
    db.add(row)
    db.commit()
    return row


def make_policy(
    db: Session,
    teacher: User,
    *,
    hours_before_class: int = 24,
    charge_percentage: Decimal = Decimal("50"),
    allow_amnesty: bool = True,
) -> CancellationPolicy:
    policy = CancellationPolicy(
        teacher_id=teacher.id,
        hours_before_class=hours_before_class,
        charge_percentage=charge_percentage,
        allow_amnesty=allow_amnesty,
        is_active=True,
    )
    db.add(policy)
    db.commit()
    return policy


def make_working_hours(
    db: Session, teacher: User, *, day_of_week: int, start: time, end: time, is_active: bool = True
) -> WorkingHours:
    row = WorkingHours(
        teacher_id=teacher.id,
        day_of_week=day_of_week,
        start_time=start,
        end_time=end,
        is_active=is_active,
    )
    db.add(row)
    db.commit()
    return row


def make_block(
    db: Session, teacher: User, *, start: datetime, end: datetime, title: str = "Dentist"
) -> AvailabilityBlock:
    block = AvailabilityBlock(teacher_id=teacher.id, start=start, end=end, title=title)
    db.add(block)
    db.commit()
    return block
