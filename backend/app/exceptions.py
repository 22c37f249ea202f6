class SchedulingError(Exception):
    """Base class for errors raised by the Gantt / critical path layer."""


class ProjectNotFoundError(SchedulingError):
    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project {project_id} not found")


class TaskNotFoundError(SchedulingError):
    def __init__(self, task_id: str, kind: str):
        self.task_id = task_id
        self.kind = kind
        super().__init__(f"{kind} {task_id} not found")


class MissingPlannedDateError(SchedulingError):
    """A project, phase or work package has no planned start/end date, so no duration can be derived."""

    def __init__(self, task_id: str, kind: str, field: str):
        self.task_id = task_id
        self.kind = kind
        self.field = field
        super().__init__(f"{kind} {task_id} has no {field}")
