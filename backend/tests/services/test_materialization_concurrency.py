# backend/tests/services/test_materialization_concurrency.py
"""
Concurrent materialization of one occurrence.

Uses a file-backed SQLite database so each worker thread gets its own
connection and the unique constraint arbitrates between them.
"""

from concurrent.futures import ThreadPoolExecutor
import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from classbook.core.clock import FixedClock
from classbook.database import Base
from classbook.models import MaterializedClass, User
from classbook.services.materialization_service import (
    OUTCOME_CONCURRENT,
    OUTCOME_CREATED,
    OUTCOME_EXISTING,
    MaterializationService,
)
from tests._utils.builders import make_template, make_user
from tests._utils.constants import ANCHOR, NOW

WORKERS = 6


@pytest.fixture
def file_session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        future=True,
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)
    engine.dispose()


@pytest.mark.slow
def test_parallel_requests_create_exactly_one_class(file_session_factory):
    setup = file_session_factory()
    teacher = make_user(setup, role="teacher")
    students = [make_user(setup) for _ in range(WORKERS)]
    template = make_template(setup, teacher, anchor_start=ANCHOR, participants=students, is_group_class=True)
    template_id = template.id
    setup.close()

    barrier = threading.Barrier(WORKERS)

    def worker(student_id):
        session = file_session_factory()
        try:
            caller = session.get(User, student_id)
            service = MaterializationService(session, FixedClock(NOW))
            barrier.wait()
            result = service.materialize(template_id, ANCHOR, caller)
            return result.class_id, result.outcome
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        results = list(pool.map(worker, [s.id for s in students]))

    class_ids = {class_id for class_id, _ in results}
    outcomes = [outcome for _, outcome in results]
    assert len(class_ids) == 1
    assert outcomes.count(OUTCOME_CREATED) == 1
    assert set(outcomes) <= {OUTCOME_CREATED, OUTCOME_EXISTING, OUTCOME_CONCURRENT}

    check = file_session_factory()
    try:
        rows = check.query(MaterializedClass).all()
        assert len(rows) == 1
        assert len(rows[0].participants) == WORKERS
    finally:
        check.close()
