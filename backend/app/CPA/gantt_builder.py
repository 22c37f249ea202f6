import math
from datetime import date
from typing import List, Optional

from backend.app.db.models import (
    GanttData,
    GanttLink,
    GanttTask,
    LinkType,
    ProjectModel,
    TaskKind,
)
from backend.app.exceptions import MissingPlannedDateError

ROOT_PARENT_ID = "0"

PROJECT_COLOR = "#1976d2"

PHASE_COLORS = {
    "pending": "#ffc107",
    "in_progress": "#17a2b8",
    "completed": "#28a745",
    "on_hold": "#6c757d",
    "cancelled": "#dc3545",
}
DEFAULT_PHASE_COLOR = "#6c757d"

WORK_PACKAGE_COLORS = {
    "pending": "#ffeeba",
    "in_progress": "#bee5eb",
    "completed": "#c3e6cb",
    "on_hold": "#d6d8db",
    "inspection_pending": "#ffeaa7",
    "inspection_passed": "#81ecec",
    "inspection_failed": "#fab1a0",
    "cancelled": "#f5c6cb",
}
DEFAULT_WORK_PACKAGE_COLOR = "#d6d8db"


def phase_color(status: Optional[str]) -> str:
    return PHASE_COLORS.get(status or "", DEFAULT_PHASE_COLOR)


def work_package_color(status: Optional[str]) -> str:
    return WORK_PACKAGE_COLORS.get(status or "", DEFAULT_WORK_PACKAGE_COLOR)


def calculate_duration(start: date, end: date) -> int:
    """Whole days between start and end, never less than 1 (a same-day task still takes a day)."""
    seconds = abs((end - start).total_seconds())
    return math.ceil(seconds / 86400) or 1


def _require_dates(task_id: str, kind: TaskKind, start: Optional[date], end: Optional[date]):
    if start is None:
        raise MissingPlannedDateError(task_id, kind.value, "planned_start_date")
    if end is None:
        raise MissingPlannedDateError(task_id, kind.value, "planned_end_date")
    return start, end


def _link(source_id: str, target_id: str) -> GanttLink:
    return GanttLink(
        id=f"link_{source_id}_{target_id}",
        source_id=source_id,
        target_id=target_id,
        relation_kind=LinkType.FINISH_TO_START,
    )


def build_gantt_data(project: ProjectModel) -> GanttData:
    """Flatten a project -> phase -> work package hierarchy into Gantt tasks and links.

    Containment is expressed through ``parent_id`` only. Scheduling links are
    finish-to-start edges between consecutive phases, and between consecutive
    work packages of the same phase.
    """
    tasks: List[GanttTask] = []
    links: List[GanttLink] = []

    start, end = _require_dates(project.id, TaskKind.PROJECT, project.planned_start_date, project.planned_end_date)
    tasks.append(GanttTask(
        id=project.id,
        label=project.name,
        start_date=start,
        end_date=end,
        duration=calculate_duration(start, end),
        progress=project.progress_percent / 100,
        parent_id=ROOT_PARENT_ID,
        kind=TaskKind.PROJECT,
        is_open=True,
        color=PROJECT_COLOR,
    ))

    previous_phase_id: Optional[str] = None
    for phase in project.phases:
        start, end = _require_dates(phase.id, TaskKind.PHASE, phase.planned_start_date, phase.planned_end_date)
        tasks.append(GanttTask(
            id=phase.id,
            label=f"{phase.phase_number}. {phase.name}",
            start_date=start,
            end_date=end,
            duration=calculate_duration(start, end),
            progress=phase.progress_percent / 100,
            parent_id=project.id,
            kind=TaskKind.PHASE,
            is_open=True,
            color=phase_color(phase.status),
        ))
        if previous_phase_id:
            links.append(_link(previous_phase_id, phase.id))
        previous_phase_id = phase.id

        previous_wp_id: Optional[str] = None
        for wp in phase.work_packages:
            start, end = _require_dates(wp.id, TaskKind.WORK_PACKAGE, wp.planned_start_date, wp.planned_end_date)
            tasks.append(GanttTask(
                id=wp.id,
                label=f"{wp.package_number}: {wp.name}",
                start_date=start,
                end_date=end,
                duration=calculate_duration(start, end),
                progress=wp.progress_percent / 100,
                parent_id=phase.id,
                kind=TaskKind.WORK_PACKAGE,
                color=work_package_color(wp.status),
            ))
            if previous_wp_id:
                links.append(_link(previous_wp_id, wp.id))
            previous_wp_id = wp.id

    return GanttData(tasks=tasks, links=links)
