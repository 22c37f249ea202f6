"""
Test configuration and fixtures for the backend test suite.
"""
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from backend.app.db import store
from backend.app.db.database import init_db, make_engine
from backend.app.db.models import (
    GanttData,
    GanttLink,
    GanttTask,
    PhaseCreate,
    ProjectCreate,
    TaskKind,
    WorkPackageCreate,
)
from backend.main import app, get_db


@pytest.fixture
def engine(tmp_path):
    """A throwaway SQLite database with the hierarchy schema created."""
    db_path = tmp_path / "test.db"
    engine = make_engine(f"sqlite:///{db_path}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    """Test client whose get_db dependency points at the temporary database."""
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seeded_project(db):
    """Project with two phases; phase 1 has two work packages, phase 2 has one.

    Returns a dict of ids keyed by short names.
    """
    project_id = store.create_project(db, ProjectCreate(
        name="Clinic Extension",
        project_number="PRJ-001",
        status="in_progress",
        planned_start_date=date(2025, 1, 1),
        planned_end_date=date(2025, 3, 31),
    ))
    p1 = store.create_phase(db, project_id, PhaseCreate(
        phase_number=1,
        name="Design",
        status="completed",
        planned_start_date=date(2025, 1, 1),
        planned_end_date=date(2025, 1, 31),
    ))
    p2 = store.create_phase(db, project_id, PhaseCreate(
        phase_number=2,
        name="Construction",
        status="in_progress",
        planned_start_date=date(2025, 2, 1),
        planned_end_date=date(2025, 3, 31),
    ))
    wp1 = store.create_work_package(db, project_id, p1, WorkPackageCreate(
        package_number="WP-001",
        name="Site survey",
        status="completed",
        planned_start_date=date(2025, 1, 1),
        planned_end_date=date(2025, 1, 10),
        progress_percent=100,
    ))
    wp2 = store.create_work_package(db, project_id, p1, WorkPackageCreate(
        package_number="WP-002",
        name="Drawings",
        status="in_progress",
        planned_start_date=date(2025, 1, 11),
        planned_end_date=date(2025, 1, 31),
        progress_percent=50,
    ))
    wp3 = store.create_work_package(db, project_id, p2, WorkPackageCreate(
        package_number="WP-003",
        name="Foundations",
        status="unknown_status",
        planned_start_date=date(2025, 2, 1),
        planned_end_date=date(2025, 2, 1),
    ))
    return {"project": project_id, "p1": p1, "p2": p2, "wp1": wp1, "wp2": wp2, "wp3": wp3}


def make_task(task_id: str, duration: int, kind: TaskKind = TaskKind.WORK_PACKAGE, parent_id: str = "0") -> GanttTask:
    return GanttTask(
        id=task_id,
        label=task_id,
        start_date=date(2025, 1, 1),
        end_date=date(2025, 1, 1 + duration),
        duration=duration,
        progress=0.0,
        parent_id=parent_id,
        kind=kind,
    )


def make_graph(durations: dict, edges: list) -> GanttData:
    """Gantt graph from {id: duration} and [(source, target), ...]."""
    return GanttData(
        tasks=[make_task(k, d) for k, d in durations.items()],
        links=[GanttLink(id=f"link_{s}_{t}", source_id=s, target_id=t) for s, t in edges],
    )
