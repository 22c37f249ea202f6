from typing import Dict, List

from backend.app.db.models import GanttData, ScheduleResult, TaskKind, TaskTiming

_INDENT = {TaskKind.PROJECT: 0, TaskKind.PHASE: 1, TaskKind.WORK_PACKAGE: 2}


def format_schedule(data: GanttData, result: ScheduleResult) -> str:
    """Return a human-readable schedule table for a Gantt graph and its critical path result.

    Critical tasks are marked with ``*``. Tasks are listed in the graph's own
    order (project, then each phase followed by its work packages).
    """
    timings: Dict[str, TaskTiming] = {t.id: t for t in result.tasks}
    labels = {t.id: t.label for t in data.tasks}
    lines: List[str] = []
    lines.append(f"Schedule: {result.total_duration} day(s), project ends {result.project_end_date}")
    if result.has_cycle:
        lines.append("WARNING: dependency cycle detected; some links were ignored")
    lines.append("")
    lines.append(f"   {'Task':<40} {'Kind':<12} {'Dur':>4} {'ES':>4} {'EF':>4} {'LS':>4} {'LF':>4} {'Slack':>5}")
    for task in data.tasks:
        t = timings.get(task.id)
        if t is None:
            continue
        mark = "*" if t.is_critical else " "
        indent = "  " * _INDENT[task.kind]
        label = (indent + task.label)[:40]
        lines.append(
            f" {mark} {label:<40} {task.kind.value:<12} {t.duration:>4} "
            f"{t.early_start:>4} {t.early_finish:>4} {t.late_start:>4} {t.late_finish:>4} {t.slack:>5}"
        )
    lines.append("")
    lines.append("Links (predecessor -> successor):")
    if data.links:
        for link in data.links:
            lines.append(f" - {labels.get(link.source_id, link.source_id)} -> {labels.get(link.target_id, link.target_id)}")
    else:
        lines.append(" - (no dependencies)")
    return "\n".join(lines)
