"""Access to persons through ownership and person sharing connections."""

import logging

from routinely.core import db_client
from routinely.core.config import constants
from routinely.core.errors import ForbiddenError
from routinely.core.logging import span
from routinely.domain.completion import TaskCompletion
from routinely.domain.permission import SharePermission
from routinely.domain.person import AccessiblePerson, AccessiblePersons, Person, PersonStatus
from routinely.domain.role import User
from routinely.domain.sharing import PersonSharingConnection, SharingStatus, ShareType


logger = logging.getLogger(__name__)


async def _owns_person(*, user_id: str, role_id: str, person_id: str) -> bool:
    """True if the person belongs to `role_id` and that role belongs to `user_id`."""
    try:
        person = Person.model_validate(await db_client.get_record(collection="persons", record_id=person_id))
        role = await db_client.get_record(collection="roles", record_id=role_id)
    except KeyError:
        return False
    return person.role_id == role_id and str(role["user_id"]) == user_id


async def has_access_to_person(
    *,
    user_id: str,
    role_id: str,
    person_id: str,
    required_permission: SharePermission = SharePermission.VIEW,
) -> bool:
    """Check whether a user may access a person at `required_permission` or above.

    Owners always have access. Otherwise an ACTIVE sharing connection for the
    person, granted to a role owned by the user, must rank at or above the
    required level.
    """
    with span("sharing_access_service.has_access_to_person"):
        if await _owns_person(user_id=user_id, role_id=role_id, person_id=person_id):
            return True

        user_roles = await db_client.list_all_records(
            collection="roles",
            filter_query=f'user_id = "{db_client.sanitize_param(user_id)}"',
        )
        if not user_roles:
            return False

        record = await db_client.get_first_record(
            collection="person_sharing_connections",
            filter_query=(
                f'owner_person_id = "{db_client.sanitize_param(person_id)}" && status = "{SharingStatus.ACTIVE}" && '
                f"{db_client.build_id_filter(sorted(r['id'] for r in user_roles), field='shared_with_role_id')}"
            ),
        )
        if record is None:
            return False

        connection = PersonSharingConnection.model_validate(record)
        if connection.permissions is None:
            return False
        return connection.permissions.satisfies(required_permission)


async def _get_sharer(owner_role_id: str) -> User | None:
    try:
        role = await db_client.get_record(collection="roles", record_id=owner_role_id)
        return User.model_validate(await db_client.get_record(collection="users", record_id=str(role["user_id"])))
    except KeyError:
        return None


async def get_accessible_persons(*, role_id: str, user_id: str) -> AccessiblePersons:
    """Return the persons a role can see: its own ACTIVE persons and those shared with it.

    `user_id` identifies the caller for logging; ownership is scoped by role.
    Connections whose owner person has been deleted are skipped.
    """
    safe_role_id = db_client.sanitize_param(role_id)

    owned_records = await db_client.list_all_records(
        collection="persons",
        filter_query=f'role_id = "{safe_role_id}" && status = "{PersonStatus.ACTIVE}"',
    )
    owned_persons = [AccessiblePerson.model_validate({**r, "is_shared": False}) for r in owned_records]

    connection_records = await db_client.list_all_records(
        collection="person_sharing_connections",
        filter_query=(
            f'shared_with_role_id = "{safe_role_id}" && status = "{SharingStatus.ACTIVE}" && '
            f'share_type = "{ShareType.PERSON}"'
        ),
    )

    shared_persons = []
    for connection in (PersonSharingConnection.model_validate(r) for r in connection_records):
        owner_person = None
        if connection.owner_person_id is not None:
            try:
                owner_person = await db_client.get_record(collection="persons", record_id=connection.owner_person_id)
            except KeyError:
                owner_person = None

        if owner_person is None:
            logger.info(
                "Skipping sharing connection with missing owner person",
                extra={"connection_id": connection.id, "role_id": role_id},
            )
            continue

        sharer = await _get_sharer(connection.owner_role_id)
        shared_persons.append(
            AccessiblePerson.model_validate(
                {
                    **owner_person,
                    "is_shared": True,
                    "shared_by": sharer.name if sharer else None,
                    "shared_by_image": sharer.image if sharer else None,
                    "permissions": connection.permissions,
                    "share_type": str(connection.share_type),
                }
            )
        )

    logger.debug(
        "Resolved accessible persons",
        extra={"role_id": role_id, "user_id": user_id, "owned": len(owned_persons), "shared": len(shared_persons)},
    )
    return AccessiblePersons(owned_persons=owned_persons, shared_persons=shared_persons)


async def get_task_completions_for_person(
    *,
    person_id: str,
    requesting_user_id: str,
    requesting_role_id: str,
) -> list[TaskCompletion]:
    """Return the person's most recent completions, newest first.

    Raises:
        ForbiddenError: If the requester has no VIEW access to the person
    """
    has_access = await has_access_to_person(
        user_id=requesting_user_id,
        role_id=requesting_role_id,
        person_id=person_id,
        required_permission=SharePermission.VIEW,
    )
    if not has_access:
        logger.warning(
            "Completion history access denied",
            extra={"person_id": person_id, "user_id": requesting_user_id, "role_id": requesting_role_id},
        )
        raise ForbiddenError

    records = await db_client.list_records(
        collection="task_completions",
        filter_query=f'person_id = "{db_client.sanitize_param(person_id)}"',
        sort="-completed_at",
        per_page=constants.COMPLETION_HISTORY_LIMIT,
    )
    return [TaskCompletion.model_validate(r) for r in records]
