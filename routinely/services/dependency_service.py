"""Smart routine dependency graph and circular dependency detection.

Conditions make a smart routine depend on another routine, either directly or
through one of that routine's tasks. The graph of those edges must stay
acyclic; it is rebuilt from the store on every check and validated before new
conditions are written.
"""

import logging
from typing import NamedTuple

from pydantic import BaseModel

from routinely.core import db_client
from routinely.core.errors import CyclicDependencyError
from routinely.core.logging import span
from routinely.domain.routine import Condition, RoutineStatus, RoutineType


logger = logging.getLogger(__name__)

DependencyGraph = dict[str, set[str]]


class CircularDependencyResult(BaseModel):
    """Outcome of a cycle check."""

    has_cycle: bool
    cycle_path: list[str] | None = None


class Dependents(NamedTuple):
    """Routines and tasks whose conditions reference a routine."""

    routines: list[str]
    tasks: list[str]


async def build_dependency_graph() -> DependencyGraph:
    """Build routine -> depended-on routines from every active smart routine's conditions.

    Routines without conditions are absent; treat a missing key as no dependencies.
    """
    with span("dependency_service.build_dependency_graph"):
        smart_routines = await db_client.list_all_records(
            collection="routines",
            filter_query=f'type = "{RoutineType.SMART}" && status = "{RoutineStatus.ACTIVE}"',
        )
        smart_ids = {r["id"] for r in smart_routines}
        if not smart_ids:
            return {}

        condition_records = await db_client.list_all_records(
            collection="conditions",
            filter_query=db_client.build_id_filter(sorted(smart_ids), field="routine_id"),
        )
        conditions = [Condition.model_validate(r) for r in condition_records]

        task_ids = {c.target_task_id for c in conditions if c.target_task_id}
        task_routines: dict[str, str] = {}
        if task_ids:
            tasks = await db_client.list_all_records(
                collection="tasks",
                filter_query=db_client.build_id_filter(sorted(task_ids)),
            )
            task_routines = {t["id"]: t["routine_id"] for t in tasks}

        graph: DependencyGraph = {}
        for condition in conditions:
            deps = graph.setdefault(condition.routine_id, set())

            if condition.target_task_id:
                target_routine = task_routines.get(condition.target_task_id)
                if target_routine is None:
                    logger.warning(
                        "Condition targets a missing task",
                        extra={"condition_id": condition.id, "task_id": condition.target_task_id},
                    )
                else:
                    deps.add(target_routine)

            if condition.target_routine_id:
                deps.add(condition.target_routine_id)

    logger.debug("Built dependency graph", extra={"nodes": len(graph), "conditions": len(conditions)})
    return graph


def find_cycle(graph: DependencyGraph, start: str) -> list[str] | None:
    """Depth-first search from `start` for a cycle.

    Uses an explicit stack so deep graphs cannot exhaust the interpreter's
    recursion limit. Returns the cycle as a path whose first and last entries
    are the repeated routine, or None when no cycle is reachable.
    """
    visited: set[str] = {start}
    on_stack: set[str] = {start}
    path: list[str] = [start]
    # Each frame holds a node's remaining neighbours, in sorted order for stable paths
    frames = [iter(sorted(graph.get(start, ())))]

    while frames:
        node = path[-1]
        dep = next(frames[-1], None)

        if dep is None:
            frames.pop()
            on_stack.discard(node)
            path.pop()
            continue

        if dep in on_stack:
            return [*path[path.index(dep) :], dep]

        if dep not in visited:
            visited.add(dep)
            on_stack.add(dep)
            path.append(dep)
            frames.append(iter(sorted(graph.get(dep, ()))))

    return None


async def detect_circular_dependency(routine_id: str, new_target_ids: list[str]) -> CircularDependencyResult:
    """Check whether adding edges routine_id -> new_target_ids would create a cycle.

    The proposed edges are added to a freshly built copy of the graph only; the
    store is never written.
    """
    graph = await build_dependency_graph()
    graph.setdefault(routine_id, set()).update(new_target_ids)

    cycle_path = find_cycle(graph, routine_id)
    if cycle_path is None:
        return CircularDependencyResult(has_cycle=False)

    logger.info(
        "Circular dependency detected",
        extra={"routine_id": routine_id, "new_target_ids": new_target_ids, "cycle_path": cycle_path},
    )
    return CircularDependencyResult(has_cycle=True, cycle_path=cycle_path)


async def get_cycle_path_string(cycle_path: list[str] | None) -> str:
    """Render a cycle path with routine names, falling back to ids for unknown routines."""
    if not cycle_path:
        return ""

    routines = await db_client.list_all_records(
        collection="routines",
        filter_query=db_client.build_id_filter(sorted(set(cycle_path))),
    )
    names = {r["id"]: r["name"] for r in routines}
    return " → ".join(names.get(routine_id, routine_id) for routine_id in cycle_path)


async def ensure_no_cycle(routine_id: str, new_target_ids: list[str]) -> None:
    """Raise CyclicDependencyError if the proposed targets would create a cycle."""
    if not new_target_ids:
        return

    result = await detect_circular_dependency(routine_id, new_target_ids)
    if result.has_cycle and result.cycle_path:
        readable = await get_cycle_path_string(result.cycle_path)
        raise CyclicDependencyError(result.cycle_path, readable)


async def get_dependents(routine_id: str) -> Dependents:
    """Find routines whose conditions target this routine or one of its tasks.

    Used to warn before a routine is archived.
    """
    safe_id = db_client.sanitize_param(routine_id)
    tasks = await db_client.list_all_records(collection="tasks", filter_query=f'routine_id = "{safe_id}"')
    task_ids = [t["id"] for t in tasks]

    filter_query = f'target_routine_id = "{safe_id}"'
    if task_ids:
        task_clauses = " || ".join(f'target_task_id = "{db_client.sanitize_param(task_id)}"' for task_id in task_ids)
        filter_query = f"({filter_query} || {task_clauses})"

    records = await db_client.list_all_records(collection="conditions", filter_query=filter_query)
    conditions = [Condition.model_validate(c) for c in records]

    dependent_routines = dict.fromkeys(c.routine_id for c in conditions)
    dependent_tasks = dict.fromkeys(c.target_task_id for c in conditions if c.target_task_id)
    return Dependents(routines=list(dependent_routines), tasks=list(dependent_tasks))
