"""Smart routine conditions, validated against circular dependencies before writing."""

import logging

from routinely.core import db_client
from routinely.core.errors import PermissionDeniedError
from routinely.core.logging import span
from routinely.domain.routine import Condition, ConditionOperator, Routine, RoutineType, Task
from routinely.services import dependency_service


logger = logging.getLogger(__name__)


async def _get_owned_routine(*, user_id: str, routine_id: str) -> Routine:
    """Load a routine the user owns, raising KeyError if missing or PermissionDeniedError if foreign."""
    routine = Routine.model_validate(await db_client.get_record(collection="routines", record_id=routine_id))
    role = await db_client.get_record(collection="roles", record_id=routine.role_id)

    if str(role["user_id"]) != user_id:
        raise PermissionDeniedError("EDIT_ROUTINE")

    return routine


async def _get_owned_smart_routine(*, user_id: str, routine_id: str) -> Routine:
    routine = await _get_owned_routine(user_id=user_id, routine_id=routine_id)
    if routine.type != RoutineType.SMART:
        msg = "Conditions can only be added to SMART routines"
        raise ValueError(msg)

    return routine


async def _target_routine_ids(*, target_task_id: str | None, target_routine_id: str | None) -> list[str]:
    """Routines a condition would depend on: the target routine and the target task's routine."""
    targets = []
    if target_routine_id:
        targets.append(target_routine_id)
    if target_task_id:
        task = Task.model_validate(await db_client.get_record(collection="tasks", record_id=target_task_id))
        targets.append(task.routine_id)
    return targets


async def add_condition(
    *,
    user_id: str,
    routine_id: str,
    operator: ConditionOperator,
    value: str | None = None,
    target_task_id: str | None = None,
    target_routine_id: str | None = None,
) -> Condition:
    """Attach a condition to a smart routine the user owns.

    Raises:
        KeyError: If the routine or target task does not exist
        PermissionDeniedError: If the user does not own the routine
        ValueError: If the routine is not SMART or no target is given
        CyclicDependencyError: If the new edge would create a dependency cycle
    """
    if not target_task_id and not target_routine_id:
        msg = "A condition needs a target task or a target routine"
        raise ValueError(msg)

    with span("condition_service.add_condition"):
        await _get_owned_smart_routine(user_id=user_id, routine_id=routine_id)

        targets = await _target_routine_ids(target_task_id=target_task_id, target_routine_id=target_routine_id)
        await dependency_service.ensure_no_cycle(routine_id, targets)

        record = await db_client.create_record(
            collection="conditions",
            data={
                "routine_id": routine_id,
                "operator": str(operator),
                "value": value,
                "target_task_id": target_task_id,
                "target_routine_id": target_routine_id,
            },
        )

    logger.info("Added condition", extra={"routine_id": routine_id, "condition_id": record["id"], "user_id": user_id})
    return Condition.model_validate(record)


async def update_condition(
    *,
    user_id: str,
    condition_id: str,
    operator: ConditionOperator | None = None,
    value: str | None = None,
    target_task_id: str | None = None,
    target_routine_id: str | None = None,
) -> Condition:
    """Update a condition; the resulting targets are cycle-checked first."""
    condition = Condition.model_validate(await db_client.get_record(collection="conditions", record_id=condition_id))
    await _get_owned_smart_routine(user_id=user_id, routine_id=condition.routine_id)

    targets = await _target_routine_ids(
        target_task_id=target_task_id or condition.target_task_id,
        target_routine_id=target_routine_id or condition.target_routine_id,
    )
    await dependency_service.ensure_no_cycle(condition.routine_id, targets)

    changes: dict[str, str] = {}
    if operator is not None:
        changes["operator"] = str(operator)
    if value is not None:
        changes["value"] = value
    if target_task_id is not None:
        changes["target_task_id"] = target_task_id
    if target_routine_id is not None:
        changes["target_routine_id"] = target_routine_id

    if not changes:
        return condition

    record = await db_client.update_record(collection="conditions", record_id=condition_id, data=changes)
    logger.info("Updated condition", extra={"condition_id": condition_id, "fields": sorted(changes)})
    return Condition.model_validate(record)


async def delete_condition(*, user_id: str, condition_id: str) -> None:
    """Remove a condition from a routine the user owns.

    Raises:
        KeyError: If the condition does not exist
        PermissionDeniedError: If the user does not own the routine
    """
    condition = Condition.model_validate(await db_client.get_record(collection="conditions", record_id=condition_id))
    await _get_owned_routine(user_id=user_id, routine_id=condition.routine_id)

    await db_client.delete_record(collection="conditions", record_id=condition_id)
    logger.info("Deleted condition", extra={"condition_id": condition_id, "routine_id": condition.routine_id})


async def list_conditions(*, routine_id: str) -> list[Condition]:
    """Return the conditions attached to a routine."""
    records = await db_client.list_all_records(
        collection="conditions",
        filter_query=f'routine_id = "{db_client.sanitize_param(routine_id)}"',
    )
    return [Condition.model_validate(r) for r in records]
