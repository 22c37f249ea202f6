import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Tuple

from backend.app.db.models import GanttData, GanttLink, ScheduleResult, TaskKind, TaskTiming

logger = logging.getLogger(__name__)

_UNVISITED, _IN_PROGRESS, _DONE = 0, 1, 2


def _build_adjacency(
    task_ids: List[str], links: Iterable[GanttLink]
) -> Tuple[Dict[str, List[str]], Dict[str, List[str]]]:
    """Predecessor and successor lists per task. Links touching an unknown task are dropped."""
    preds: Dict[str, List[str]] = {u: [] for u in task_ids}
    succ: Dict[str, List[str]] = {u: [] for u in task_ids}
    for link in links:
        if link.source_id in succ and link.target_id in preds:
            succ[link.source_id].append(link.target_id)
            preds[link.target_id].append(link.source_id)
    return preds, succ


def _topo_sort(nodes: List[str], preds: Dict[str, List[str]]) -> Tuple[List[str], bool]:
    """Order nodes so each one follows its predecessors.

    Depth-first with three-colour marking. A predecessor that is still in
    progress closes a cycle; it is skipped and the node is ordered anyway.
    Every node is returned exactly once. The second element reports whether
    any back-edge was skipped.
    """
    state: Dict[str, int] = {u: _UNVISITED for u in nodes}
    order: List[str] = []
    has_cycle = False

    for root in nodes:
        if state[root] != _UNVISITED:
            continue
        # Explicit stack of (node, index of next predecessor to look at)
        stack: List[Tuple[str, int]] = [(root, 0)]
        state[root] = _IN_PROGRESS
        while stack:
            u, i = stack[-1]
            node_preds = preds.get(u, [])
            if i < len(node_preds):
                stack[-1] = (u, i + 1)
                p = node_preds[i]
                if state[p] == _UNVISITED:
                    state[p] = _IN_PROGRESS
                    stack.append((p, 0))
                elif state[p] == _IN_PROGRESS:
                    has_cycle = True
            else:
                stack.pop()
                state[u] = _DONE
                order.append(u)
    return order, has_cycle


def _forward_pass(
    order: List[str], dur: Dict[str, int], preds: Dict[str, List[str]]
) -> Tuple[Dict[str, int], Dict[str, int]]:
    ES: Dict[str, int] = {}
    EF: Dict[str, int] = {}
    for u in order:
        # A predecessor reached through a skipped back-edge has no EF yet and counts as 0
        ES[u] = max((EF.get(p, 0) for p in preds[u]), default=0)
        EF[u] = ES[u] + dur[u]
    return ES, EF


def _backward_pass(
    order: List[str], dur: Dict[str, int], succ: Dict[str, List[str]], horizon: int
) -> Tuple[Dict[str, int], Dict[str, int]]:
    LS: Dict[str, int] = {}
    LF: Dict[str, int] = {}
    for u in reversed(order):
        LF[u] = min((LS.get(v, horizon) for v in succ[u]), default=horizon)
        LS[u] = LF[u] - dur[u]
    return LS, LF


def run_cpa_calc(data: GanttData) -> ScheduleResult:
    """Critical path over the dependency links of a Gantt graph.

    Durations are whole calendar days; weekends count. Slack is LS - ES and a
    task is critical when its slack is zero.
    """
    nodes = [t.id for t in data.tasks]
    dur: Dict[str, int] = {t.id: t.duration for t in data.tasks}
    preds, succ = _build_adjacency(nodes, data.links)

    order, has_cycle = _topo_sort(nodes, preds)
    if has_cycle:
        logger.warning("Dependency cycle detected among %d tasks; back-edges were ignored", len(nodes))

    ES, EF = _forward_pass(order, dur, preds)
    project_duration = max(EF.values(), default=0)
    LS, LF = _backward_pass(order, dur, succ, project_duration)

    slack: Dict[str, int] = {u: LS[u] - ES[u] for u in nodes}
    critical = [u for u in nodes if slack[u] == 0]

    project_task = next((t for t in data.tasks if t.kind == TaskKind.PROJECT), None)
    if project_task is not None:
        project_end_date = project_task.end_date.isoformat()
    else:
        project_end_date = datetime.now(timezone.utc).isoformat()

    logger.debug("Scheduled %d tasks / %d links: duration=%d critical=%d",
                 len(nodes), len(data.links), project_duration, len(critical))

    return ScheduleResult(
        critical_task_ids=critical,
        total_duration=project_duration,
        project_end_date=project_end_date,
        slack_by_task=slack,
        has_cycle=has_cycle,
        tasks=[
            TaskTiming(
                id=u,
                duration=dur[u],
                early_start=ES[u],
                early_finish=EF[u],
                late_start=LS[u],
                late_finish=LF[u],
                slack=slack[u],
                is_critical=slack[u] == 0,
            )
            for u in order
        ],
    )
