"""HTTP endpoints for permission, sharing, visibility and dependency checks."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from routinely.core import db_client
from routinely.core.config import constants
from routinely.core.errors import (
    AccessDeniedError,
    CyclicDependencyError,
    classify_error_with_response,
)
from routinely.domain.completion import TaskCompletion
from routinely.domain.override import VisibilityOverride
from routinely.domain.person import AccessiblePersons
from routinely.domain.routine import Condition, ConditionOperator, Routine
from routinely.services import (
    condition_service,
    dependency_service,
    permission_service,
    sharing_access_service,
    visibility_service,
)
from routinely.services.permission_service import Action


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/access", tags=["access"])


async def require_user(
    x_user_id: Annotated[str | None, Header(alias=constants.USER_ID_HEADER)] = None,
) -> str:
    """Read the authenticated user's id set by the upstream auth proxy."""
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-User-Id header")
    return x_user_id


UserId = Annotated[str, Depends(require_user)]


class PermissionCheckRequest(BaseModel):
    """Body for a permission check."""

    role_id: str
    action: Action
    person_id: str | None = None
    task_id: str | None = None
    routine_id: str | None = None


class PermissionCheckResponse(BaseModel):
    """Result of a permission check."""

    allowed: bool


class VisibilityResponse(BaseModel):
    """Visibility state of a routine right now."""

    routine_id: str
    visible: bool
    description: str
    override: VisibilityOverride | None = None
    override_remaining_minutes: int = 0


class ConditionCreateRequest(BaseModel):
    """Body for attaching a condition to a smart routine."""

    operator: ConditionOperator
    value: str | None = None
    target_task_id: str | None = None
    target_routine_id: str | None = None


class DependentsResponse(BaseModel):
    """Routines and tasks that reference a routine through conditions."""

    routines: list[str]
    tasks: list[str]


@router.post("/permissions/check")
async def check_permission(body: PermissionCheckRequest, user_id: UserId) -> PermissionCheckResponse:
    """Report whether the caller may perform an action through a role."""
    context = permission_service.PermissionContext(
        user_id=user_id,
        role_id=body.role_id,
        person_id=body.person_id,
        task_id=body.task_id,
        routine_id=body.routine_id,
    )
    allowed = await permission_service.has_permission(context, body.action)
    return PermissionCheckResponse(allowed=allowed)


@router.get("/roles/{role_id}/persons")
async def list_accessible_persons(role_id: str, user_id: UserId) -> AccessiblePersons:
    """List owned and shared persons for a role the caller acts through.

    A co-parent only sees the persons on its allow-list.
    """
    await permission_service.enforce_permission(
        permission_service.PermissionContext(user_id=user_id, role_id=role_id),
        Action.VIEW,
    )
    persons = await sharing_access_service.get_accessible_persons(role_id=role_id, user_id=user_id)

    role = await permission_service.get_role(role_id)
    if role is not None and role.user_id == user_id:
        return persons

    co_parent = await permission_service.find_active_co_parent(primary_role_id=role_id, user_id=user_id)
    return persons.restricted_to(co_parent.person_ids if co_parent else frozenset())


@router.get("/persons/{person_id}/completions")
async def list_person_completions(person_id: str, role_id: str, user_id: UserId) -> list[TaskCompletion]:
    """Return a person's recent completions if the caller can view the person."""
    return await sharing_access_service.get_task_completions_for_person(
        person_id=person_id,
        requesting_user_id=user_id,
        requesting_role_id=role_id,
    )


@router.get("/routines/{routine_id}/visibility")
async def get_routine_visibility(routine_id: str, user_id: UserId) -> VisibilityResponse:
    """Describe whether a routine is visible now, including any override."""
    routine = Routine.model_validate(await db_client.get_record(collection="routines", record_id=routine_id))
    await permission_service.enforce_permission(
        permission_service.PermissionContext(user_id=user_id, role_id=routine.role_id, routine_id=routine.id),
        Action.VIEW,
    )

    override = await visibility_service.get_visibility_override(routine_id=routine.id)
    return VisibilityResponse(
        routine_id=routine.id,
        visible=await visibility_service.is_routine_visible_now(routine),
        description=visibility_service.format_visibility_description(routine),
        override=override,
        override_remaining_minutes=(
            visibility_service.get_remaining_override_minutes(override) if override is not None else 0
        ),
    )


@router.post("/routines/{routine_id}/conditions", status_code=status.HTTP_201_CREATED)
async def create_condition(routine_id: str, body: ConditionCreateRequest, user_id: UserId) -> Condition:
    """Attach a condition to a smart routine, rejecting circular dependencies."""
    return await condition_service.add_condition(
        user_id=user_id,
        routine_id=routine_id,
        operator=body.operator,
        value=body.value,
        target_task_id=body.target_task_id,
        target_routine_id=body.target_routine_id,
    )


@router.delete("/conditions/{condition_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_condition(condition_id: str, user_id: UserId) -> None:
    """Delete a condition from a routine the caller owns."""
    await condition_service.delete_condition(user_id=user_id, condition_id=condition_id)


@router.get("/routines/{routine_id}/dependents")
async def list_routine_dependents(routine_id: str, user_id: UserId) -> DependentsResponse:
    """List what depends on a routine, to warn before archiving it."""
    routine = Routine.model_validate(await db_client.get_record(collection="routines", record_id=routine_id))
    await permission_service.enforce_permission(
        permission_service.PermissionContext(user_id=user_id, role_id=routine.role_id, routine_id=routine.id),
        Action.VIEW,
    )
    dependents = await dependency_service.get_dependents(routine_id)
    return DependentsResponse(routines=dependents.routines, tasks=dependents.tasks)


def _error_response(exc: Exception, status_code: int) -> JSONResponse:
    error = classify_error_with_response(exc)
    return JSONResponse(
        status_code=status_code,
        content={"code": error.code, "message": error.message, "suggestion": error.suggestion},
    )


async def handle_access_denied(request: Request, exc: Exception) -> JSONResponse:
    """Map access-denied errors to 403."""
    logger.warning("access_denied", extra={"path": request.url.path, "error": str(exc)})
    return _error_response(exc, status.HTTP_403_FORBIDDEN)


async def handle_cyclic_dependency(request: Request, exc: Exception) -> JSONResponse:
    """Map rejected dependency cycles to 400."""
    cycle_path = exc.cycle_path if isinstance(exc, CyclicDependencyError) else []
    logger.info("cyclic_dependency_rejected", extra={"path": request.url.path, "cycle_path": cycle_path})
    return _error_response(exc, status.HTTP_400_BAD_REQUEST)


async def handle_invalid_request(request: Request, exc: Exception) -> JSONResponse:
    """Map validation failures raised by services to 400."""
    logger.info("invalid_request", extra={"path": request.url.path, "error": str(exc)})
    return _error_response(exc, status.HTTP_400_BAD_REQUEST)


async def handle_not_found(request: Request, exc: Exception) -> JSONResponse:
    """Map missing records to 404."""
    logger.info("record_not_found", extra={"path": request.url.path, "error": str(exc)})
    return _error_response(exc, status.HTTP_404_NOT_FOUND)


def register_error_handlers(app: FastAPI) -> None:
    """Install the exception handlers that translate service errors to HTTP responses."""
    app.add_exception_handler(AccessDeniedError, handle_access_denied)
    app.add_exception_handler(CyclicDependencyError, handle_cyclic_dependency)
    app.add_exception_handler(ValueError, handle_invalid_request)
    app.add_exception_handler(KeyError, handle_not_found)
