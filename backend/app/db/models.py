from datetime import date
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class TaskKind(str, Enum):
    PROJECT = "project"
    PHASE = "phase"
    WORK_PACKAGE = "work_package"


class LinkType(str, Enum):
    """Dependency relation codes as understood by the Gantt widget."""

    FINISH_TO_START = "0"
    START_TO_START = "1"
    FINISH_TO_FINISH = "2"
    START_TO_FINISH = "3"


# ------------------------------
# Stored hierarchy
# ------------------------------

class WorkPackageModel(BaseModel):
    id: str
    phase_id: str
    package_number: str
    name: str
    status: str = "pending"
    planned_start_date: Optional[date] = None
    planned_end_date: Optional[date] = None
    progress_percent: float = 0.0


class PhaseModel(BaseModel):
    id: str
    phase_number: int
    sequence_order: int
    name: str
    status: str = "pending"
    planned_start_date: Optional[date] = None
    planned_end_date: Optional[date] = None
    progress_percent: float = 0.0
    work_packages: List[WorkPackageModel] = []


class ProjectModel(BaseModel):
    id: str
    name: str
    project_number: Optional[str] = None
    status: str = "draft"
    planned_start_date: Optional[date] = None
    planned_end_date: Optional[date] = None
    progress_percent: float = 0.0
    phases: List[PhaseModel] = []


# ------------------------------
# Gantt graph
# ------------------------------

class GanttTask(BaseModel):
    id: str
    label: str
    start_date: date
    end_date: date
    duration: int
    progress: float
    parent_id: str
    kind: TaskKind
    is_open: Optional[bool] = None
    color: Optional[str] = None


class GanttLink(BaseModel):
    id: str
    source_id: str
    target_id: str
    relation_kind: LinkType = LinkType.FINISH_TO_START


class GanttData(BaseModel):
    tasks: List[GanttTask] = []
    links: List[GanttLink] = []


class TaskTiming(BaseModel):
    id: str
    duration: int
    early_start: int
    early_finish: int
    late_start: int
    late_finish: int
    slack: int
    is_critical: bool


class ScheduleResult(BaseModel):
    critical_task_ids: List[str]
    total_duration: int
    project_end_date: str
    slack_by_task: Dict[str, int]
    has_cycle: bool = False
    tasks: List[TaskTiming] = []


# ------------------------------
# Request bodies
# ------------------------------

class UpdateTaskDatesRequest(BaseModel):
    task_type: Literal["phase", "work_package"]
    start_date: date
    end_date: date


class UpdateTaskProgressRequest(BaseModel):
    task_type: Literal["project", "phase", "work_package"]
    progress: float = Field(ge=0, le=1)


class ProjectCreate(BaseModel):
    name: str
    project_number: Optional[str] = None
    status: str = "draft"
    planned_start_date: date
    planned_end_date: date
    progress_percent: float = Field(default=0.0, ge=0, le=100)


class PhaseCreate(BaseModel):
    phase_number: int
    name: str
    sequence_order: Optional[int] = None
    status: str = "pending"
    planned_start_date: date
    planned_end_date: date
    progress_percent: float = Field(default=0.0, ge=0, le=100)


class WorkPackageCreate(BaseModel):
    package_number: str
    name: str
    status: str = "pending"
    planned_start_date: date
    planned_end_date: date
    progress_percent: float = Field(default=0.0, ge=0, le=100)
