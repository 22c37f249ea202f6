import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from backend.app.db.models import PhaseCreate, ProjectCreate, WorkPackageCreate
from backend.app.exceptions import ProjectNotFoundError, TaskNotFoundError


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _iso(d: Optional[date]) -> Optional[str]:
    return d.isoformat() if d else None


# ------------------------------
# Write-through mutations
# ------------------------------

def _update_dates(db: Session, table: str, kind: str, row_id: str, start: date, end: date) -> None:
    result = db.execute(text(f"""
        UPDATE {table}
        SET planned_start_date = :start, planned_end_date = :end
        WHERE id = :id
    """), {"id": row_id, "start": _iso(start), "end": _iso(end)})
    if result.rowcount == 0:
        db.rollback()
        raise TaskNotFoundError(row_id, kind)
    db.commit()


def _update_progress(db: Session, table: str, kind: str, row_id: str, percent: float) -> None:
    result = db.execute(text(f"""
        UPDATE {table} SET progress_percent = :pct WHERE id = :id
    """), {"id": row_id, "pct": percent})
    if result.rowcount == 0:
        db.rollback()
        raise TaskNotFoundError(row_id, kind)
    db.commit()


def update_phase_dates(db: Session, phase_id: str, start: date, end: date) -> None:
    _update_dates(db, "phases", "phase", phase_id, start, end)


def update_work_package_dates(db: Session, wp_id: str, start: date, end: date) -> None:
    _update_dates(db, "work_packages", "work_package", wp_id, start, end)


def update_project_progress(db: Session, project_id: str, percent: float) -> None:
    _update_progress(db, "projects", "project", project_id, percent)


def update_phase_progress(db: Session, phase_id: str, percent: float) -> None:
    _update_progress(db, "phases", "phase", phase_id, percent)


def update_work_package_progress(db: Session, wp_id: str, percent: float) -> None:
    _update_progress(db, "work_packages", "work_package", wp_id, percent)


# ------------------------------
# Hierarchy creation
# ------------------------------

def create_project(db: Session, data: ProjectCreate) -> str:
    project_id = _new_id()
    db.execute(text("""
        INSERT INTO projects (id, project_number, name, status, planned_start_date,
                              planned_end_date, progress_percent, created_at)
        VALUES (:id, :number, :name, :status, :start, :end, :pct, :created)
    """), {
        "id": project_id,
        "number": data.project_number,
        "name": data.name,
        "status": data.status,
        "start": _iso(data.planned_start_date),
        "end": _iso(data.planned_end_date),
        "pct": data.progress_percent,
        "created": _now(),
    })
    db.commit()
    return project_id


def _ensure_project(db: Session, project_id: str) -> None:
    row = db.execute(text("SELECT id FROM projects WHERE id = :id"), {"id": project_id}).fetchone()
    if not row:
        raise ProjectNotFoundError(project_id)


def create_phase(db: Session, project_id: str, data: PhaseCreate) -> str:
    _ensure_project(db, project_id)
    sequence_order = data.sequence_order
    if sequence_order is None:
        row = db.execute(text("""
            SELECT COALESCE(MAX(sequence_order), 0) AS last_order FROM phases WHERE project_id = :pid
        """), {"pid": project_id}).fetchone()
        sequence_order = int(row.last_order) + 1
    phase_id = _new_id()
    db.execute(text("""
        INSERT INTO phases (id, project_id, phase_number, sequence_order, name, status,
                            planned_start_date, planned_end_date, progress_percent, created_at)
        VALUES (:id, :pid, :number, :seq, :name, :status, :start, :end, :pct, :created)
    """), {
        "id": phase_id,
        "pid": project_id,
        "number": data.phase_number,
        "seq": sequence_order,
        "name": data.name,
        "status": data.status,
        "start": _iso(data.planned_start_date),
        "end": _iso(data.planned_end_date),
        "pct": data.progress_percent,
        "created": _now(),
    })
    db.commit()
    return phase_id


def create_work_package(db: Session, project_id: str, phase_id: str, data: WorkPackageCreate) -> str:
    """Insert a work package under a phase and roll progress up to the phase and project."""
    phase = db.execute(text("SELECT id, project_id FROM phases WHERE id = :id"), {"id": phase_id}).fetchone()
    if not phase or phase.project_id != project_id:
        raise TaskNotFoundError(phase_id, "phase")
    wp_id = _new_id()
    db.execute(text("""
        INSERT INTO work_packages (id, project_id, phase_id, package_number, name, status,
                                   planned_start_date, planned_end_date, progress_percent, created_at)
        VALUES (:id, :pid, :phid, :number, :name, :status, :start, :end, :pct, :created)
    """), {
        "id": wp_id,
        "pid": project_id,
        "phid": phase_id,
        "number": data.package_number,
        "name": data.name,
        "status": data.status,
        "start": _iso(data.planned_start_date),
        "end": _iso(data.planned_end_date),
        "pct": data.progress_percent,
        "created": _now(),
    })
    db.commit()
    recalculate_phase_progress(db, phase_id)
    return wp_id


# ------------------------------
# Progress roll-up
# ------------------------------

def recalculate_phase_progress(db: Session, phase_id: str) -> None:
    """Phase progress := mean of its work packages; then project progress := mean of its phases."""
    row = db.execute(text("""
        SELECT AVG(progress_percent) AS avg_pct, COUNT(*) AS n
        FROM work_packages WHERE phase_id = :id
    """), {"id": phase_id}).fetchone()
    if not row or not row.n:
        return
    db.execute(text("UPDATE phases SET progress_percent = :pct WHERE id = :id"),
               {"id": phase_id, "pct": float(row.avg_pct)})
    db.commit()
    phase = db.execute(text("SELECT project_id FROM phases WHERE id = :id"), {"id": phase_id}).fetchone()
    if phase:
        recalculate_project_progress(db, phase.project_id)


def recalculate_project_progress(db: Session, project_id: str) -> None:
    row = db.execute(text("""
        SELECT AVG(progress_percent) AS avg_pct, COUNT(*) AS n
        FROM phases WHERE project_id = :id
    """), {"id": project_id}).fetchone()
    if not row or not row.n:
        return
    db.execute(text("UPDATE projects SET progress_percent = :pct WHERE id = :id"),
               {"id": project_id, "pct": float(row.avg_pct)})
    db.commit()
