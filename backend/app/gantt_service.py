import logging
import math
from datetime import date
from typing import Union

from sqlalchemy.orm import Session

from backend.app.CPA import build_gantt_data, run_cpa_calc
from backend.app.db import store
from backend.app.db.db_loader import load_project_from_db
from backend.app.db.models import GanttData, ScheduleResult, TaskKind
from backend.app.exceptions import TaskNotFoundError

logger = logging.getLogger(__name__)

# ------------------------------
# Schedule queries
# ------------------------------

def get_schedule(db: Session, project_id: str) -> GanttData:
    """Build the Gantt tasks and links for a project from its current stored hierarchy."""
    project = load_project_from_db(db, project_id)
    return build_gantt_data(project)


def get_critical_path(db: Session, project_id: str) -> ScheduleResult:
    """Rebuild the graph from storage and run the critical path computation over it."""
    return run_cpa_calc(get_schedule(db, project_id))


def get_task_slack(db: Session, project_id: str, task_id: str) -> dict:
    result = get_critical_path(db, project_id)
    if task_id not in result.slack_by_task:
        raise TaskNotFoundError(task_id, "task")
    return {
        "project_id": project_id,
        "task_id": task_id,
        "slack": result.slack_by_task[task_id],
        "is_critical": task_id in result.critical_task_ids,
    }


def get_project_duration(db: Session, project_id: str) -> dict:
    result = get_critical_path(db, project_id)
    return {
        "project_id": project_id,
        "duration": result.total_duration,
        "project_end_date": result.project_end_date,
    }


# ------------------------------
# Task mutations
# ------------------------------

def _as_kind(kind: Union[TaskKind, str]):
    try:
        return TaskKind(kind)
    except ValueError:
        return None


def update_task_dates(db: Session, task_id: str, kind: Union[TaskKind, str], start: date, end: date) -> bool:
    """Write new planned dates through to a phase or work package.

    Any other kind (including ``project``) is ignored and ``False`` is returned.
    The schedule is not recomputed here; the next query rebuilds it.
    """
    k = _as_kind(kind)
    if k == TaskKind.PHASE:
        store.update_phase_dates(db, task_id, start, end)
    elif k == TaskKind.WORK_PACKAGE:
        store.update_work_package_dates(db, task_id, start, end)
    else:
        logger.warning("Ignoring date update for task %s of unsupported kind %r", task_id, kind)
        return False
    return True


def update_task_progress(db: Session, task_id: str, kind: Union[TaskKind, str], progress: float) -> bool:
    """Store a progress fraction (0..1) as a whole percentage on the matching record.

    Parent progress is not rolled up here.
    """
    percent = math.floor(progress * 100 + 0.5)
    k = _as_kind(kind)
    if k == TaskKind.PROJECT:
        store.update_project_progress(db, task_id, percent)
    elif k == TaskKind.PHASE:
        store.update_phase_progress(db, task_id, percent)
    elif k == TaskKind.WORK_PACKAGE:
        store.update_work_package_progress(db, task_id, percent)
    else:
        logger.warning("Ignoring progress update for task %s of unsupported kind %r", task_id, kind)
        return False
    return True
