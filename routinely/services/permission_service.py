"""Permission checks for owners, co-parents and co-teachers."""

import logging
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from routinely.core import db_client
from routinely.core.errors import PermissionDeniedError
from routinely.core.logging import log_with_user_context, span
from routinely.domain.delegation import CoParent, CoTeacher, DelegationStatus
from routinely.domain.permission import CoParentPermission, CoTeacherPermission
from routinely.domain.role import Role, RoleType
from routinely.domain.routine import Routine


logger = logging.getLogger(__name__)


class Action(StrEnum):
    """Actions a user can attempt on a role's persons, tasks and routines."""

    VIEW = "VIEW"
    COMPLETE_TASK = "COMPLETE_TASK"
    EDIT_TASK = "EDIT_TASK"
    CREATE_TASK = "CREATE_TASK"
    DELETE_TASK = "DELETE_TASK"
    EDIT_ROUTINE = "EDIT_ROUTINE"
    CREATE_ROUTINE = "CREATE_ROUTINE"
    DELETE_ROUTINE = "DELETE_ROUTINE"


class PermissionContext(BaseModel):
    """Who is acting, through which role, and on what."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role_id: str
    person_id: str | None = None
    task_id: str | None = None
    routine_id: str | None = None


ALL_ACTIONS = frozenset(Action)

CO_PARENT_ACTIONS: dict[CoParentPermission, frozenset[Action]] = {
    CoParentPermission.READ_ONLY: frozenset({Action.VIEW}),
    CoParentPermission.TASK_COMPLETION: frozenset({Action.VIEW, Action.COMPLETE_TASK}),
    CoParentPermission.FULL_EDIT: ALL_ACTIONS,
}

CO_TEACHER_ACTIONS: dict[CoTeacherPermission, frozenset[Action]] = {
    CoTeacherPermission.VIEW: frozenset({Action.VIEW}),
    CoTeacherPermission.EDIT_TASKS: frozenset(
        {Action.VIEW, Action.COMPLETE_TASK, Action.EDIT_TASK, Action.CREATE_TASK}
    ),
    CoTeacherPermission.FULL_EDIT: ALL_ACTIONS,
}


def check_co_parent_permission(
    permission: CoParentPermission | None,
    action: Action,
    person_id: str | None,
    allowed_person_ids: frozenset[str],
) -> bool:
    """Apply a co-parent's level and person allow-list to an action."""
    if person_id is not None and person_id not in allowed_person_ids:
        return False
    if permission is None:
        return False
    return action in CO_PARENT_ACTIONS[permission]


def check_co_teacher_permission(permission: CoTeacherPermission | None, action: Action) -> bool:
    """Apply a co-teacher's level to an action."""
    if permission is None:
        return False
    return action in CO_TEACHER_ACTIONS[permission]


async def get_role(role_id: str) -> Role | None:
    """Load a role, or None if it does not exist."""
    try:
        record = await db_client.get_record(collection="roles", record_id=role_id)
    except KeyError:
        return None
    return Role.model_validate(record)


async def _role_ids_for_user(user_id: str) -> set[str]:
    roles = await db_client.list_all_records(
        collection="roles",
        filter_query=f'user_id = "{db_client.sanitize_param(user_id)}"',
    )
    return {r["id"] for r in roles}


async def find_active_co_parent(*, primary_role_id: str, user_id: str) -> CoParent | None:
    """Find the ACTIVE co-parent grant on `primary_role_id` held by one of the user's roles."""
    user_role_ids = await _role_ids_for_user(user_id)
    if not user_role_ids:
        return None

    record = await db_client.get_first_record(
        collection="co_parents",
        filter_query=(
            f'primary_role_id = "{db_client.sanitize_param(primary_role_id)}" && '
            f'status = "{DelegationStatus.ACTIVE}" && '
            f"{db_client.build_id_filter(sorted(user_role_ids), field='co_parent_role_id')}"
        ),
    )
    return CoParent.model_validate(record) if record else None


async def find_active_co_teacher(*, routine_id: str, user_id: str) -> CoTeacher | None:
    """Find the ACTIVE co-teacher grant for the routine's classroom held by the user."""
    try:
        routine = Routine.model_validate(await db_client.get_record(collection="routines", record_id=routine_id))
    except KeyError:
        return None
    if routine.group_id is None:
        return None

    user_role_ids = await _role_ids_for_user(user_id)
    if not user_role_ids:
        return None

    record = await db_client.get_first_record(
        collection="co_teachers",
        filter_query=(
            f'group_id = "{db_client.sanitize_param(routine.group_id)}" && status = "{DelegationStatus.ACTIVE}" && '
            f"{db_client.build_id_filter(sorted(user_role_ids), field='co_teacher_role_id')}"
        ),
    )
    return CoTeacher.model_validate(record) if record else None


async def has_permission(context: PermissionContext, action: Action) -> bool:
    """Check whether the user in `context` may perform `action`.

    Owners of the role may do anything. Otherwise an ACTIVE co-parent grant
    (parent roles) or co-teacher grant on the routine's classroom (teacher
    roles) decides. Anything else, including an unknown role, is denied.
    """
    with span("permission_service.has_permission"):
        role = await get_role(context.role_id)
        if role is None:
            logger.info("Permission check on unknown role", extra={"role_id": context.role_id})
            return False

        if role.user_id == context.user_id:
            return True

        if role.type == RoleType.PARENT:
            co_parent = await find_active_co_parent(primary_role_id=role.id, user_id=context.user_id)
            if co_parent is not None:
                return check_co_parent_permission(
                    co_parent.permissions,
                    action,
                    context.person_id,
                    co_parent.person_ids,
                )

        if role.type == RoleType.TEACHER and context.routine_id:
            co_teacher = await find_active_co_teacher(routine_id=context.routine_id, user_id=context.user_id)
            if co_teacher is not None:
                return check_co_teacher_permission(co_teacher.permissions, action)

        return False


async def enforce_permission(context: PermissionContext, action: Action) -> None:
    """Raise PermissionDeniedError unless `has_permission` allows the action."""
    if not await has_permission(context, action):
        log_with_user_context(
            logger,
            "warning",
            "Permission denied",
            user_id=context.user_id,
            role_id=context.role_id,
            action=str(action),
        )
        raise PermissionDeniedError(str(action))


async def can_access_teacher_only_routine(*, routine_id: str, user_id: str) -> bool:
    """Check access to a routine hidden from students, parents and kiosks.

    Routines not flagged teacher-only are open. Teacher-only routines are
    limited to the owning teacher and that teacher's ACTIVE co-teachers. A
    missing routine grants nothing.
    """
    try:
        routine = Routine.model_validate(await db_client.get_record(collection="routines", record_id=routine_id))
    except KeyError:
        return False

    if not routine.is_teacher_only:
        return True

    role = await get_role(routine.role_id)
    if role is not None and role.user_id == user_id:
        return True

    user_role_ids = await _role_ids_for_user(user_id)
    if not user_role_ids:
        return False

    record = await db_client.get_first_record(
        collection="co_teachers",
        filter_query=(
            f'teacher_role_id = "{db_client.sanitize_param(routine.role_id)}" && '
            f'status = "{DelegationStatus.ACTIVE}" && '
            f"{db_client.build_id_filter(sorted(user_role_ids), field='co_teacher_role_id')}"
        ),
    )
    if record is None:
        logger.info("Teacher-only routine access denied", extra={"routine_id": routine_id, "user_id": user_id})
    return record is not None
