from typing import Dict, List

from sqlalchemy import text

from backend.app.db.models import PhaseModel, ProjectModel, WorkPackageModel
from backend.app.exceptions import ProjectNotFoundError


def load_project_from_db(session, project_id: str) -> ProjectModel:
    """Fetch a project with its phases (by sequence order) and their work packages (by creation time)."""
    project_row = session.execute(text("""
        SELECT id, project_number, name, status, planned_start_date, planned_end_date, progress_percent
        FROM projects WHERE id = :pid
    """), {"pid": project_id}).fetchone()
    if not project_row:
        raise ProjectNotFoundError(project_id)

    phase_rows = session.execute(text("""
        SELECT id, phase_number, sequence_order, name, status,
               planned_start_date, planned_end_date, progress_percent
        FROM phases
        WHERE project_id = :pid
        ORDER BY sequence_order ASC, phase_number ASC
    """), {"pid": project_id}).fetchall()

    wp_rows = session.execute(text("""
        SELECT id, phase_id, package_number, name, status,
               planned_start_date, planned_end_date, progress_percent
        FROM work_packages
        WHERE project_id = :pid
        ORDER BY created_at ASC, package_number ASC
    """), {"pid": project_id}).fetchall()

    wp_map: Dict[str, List[WorkPackageModel]] = {}
    for row in wp_rows:
        wp_map.setdefault(row.phase_id, []).append(WorkPackageModel(
            id=row.id,
            phase_id=row.phase_id,
            package_number=row.package_number,
            name=row.name,
            status=row.status,
            planned_start_date=row.planned_start_date,
            planned_end_date=row.planned_end_date,
            progress_percent=float(row.progress_percent or 0),
        ))

    phases = []
    for row in phase_rows:
        phases.append(PhaseModel(
            id=row.id,
            phase_number=row.phase_number,
            sequence_order=row.sequence_order,
            name=row.name,
            status=row.status,
            planned_start_date=row.planned_start_date,
            planned_end_date=row.planned_end_date,
            progress_percent=float(row.progress_percent or 0),
            work_packages=wp_map.get(row.id, []),
        ))

    return ProjectModel(
        id=project_row.id,
        project_number=project_row.project_number,
        name=project_row.name,
        status=project_row.status,
        planned_start_date=project_row.planned_start_date,
        planned_end_date=project_row.planned_end_date,
        progress_percent=float(project_row.progress_percent or 0),
        phases=phases,
    )
