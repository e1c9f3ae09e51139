"""Pytest configuration and fixtures for unit tests."""

from datetime import date
from typing import Any

import pytest

from tests.unit.mocks import InMemoryDBClient


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches routinely.core.db_client functions to use InMemoryDBClient."""
    monkeypatch.setattr("routinely.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("routinely.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("routinely.core.db_client.update_record", in_memory_db.update_record)
    monkeypatch.setattr("routinely.core.db_client.delete_record", in_memory_db.delete_record)
    monkeypatch.setattr("routinely.core.db_client.list_records", in_memory_db.list_records)
    monkeypatch.setattr("routinely.core.db_client.get_first_record", in_memory_db.get_first_record)
    return in_memory_db


class Seeder:
    """Creates related records in the in-memory store with sensible defaults."""

    def __init__(self, db: InMemoryDBClient):
        self.db = db

    async def user(self, name: str = "Alex") -> dict[str, Any]:
        return await self.db.create_record(collection="users", data={"name": name, "image": None})

    async def role(self, user_id: str, role_type: str = "PARENT") -> dict[str, Any]:
        return await self.db.create_record(
            collection="roles",
            data={"user_id": user_id, "type": role_type, "status": "ACTIVE"},
        )

    async def person(self, role_id: str, name: str = "Sam", status: str = "ACTIVE") -> dict[str, Any]:
        return await self.db.create_record(
            collection="persons",
            data={"role_id": role_id, "name": name, "status": status},
        )

    async def group(self, role_id: str, name: str = "Room 4") -> dict[str, Any]:
        return await self.db.create_record(collection="groups", data={"role_id": role_id, "name": name})

    async def routine(
        self,
        role_id: str,
        name: str = "Morning",
        routine_type: str = "REGULAR",
        status: str = "ACTIVE",
        group_id: str | None = None,
        visibility: str = "ALWAYS",
        visible_days: list[int] | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        is_teacher_only: bool = False,
    ) -> dict[str, Any]:
        return await self.db.create_record(
            collection="routines",
            data={
                "role_id": role_id,
                "group_id": group_id,
                "name": name,
                "type": routine_type,
                "status": status,
                "visibility": visibility,
                "visible_days": visible_days or [],
                "start_date": start_date,
                "end_date": end_date,
                "is_teacher_only": is_teacher_only,
                "is_protected": False,
            },
        )

    async def task(self, routine_id: str, name: str = "Brush teeth") -> dict[str, Any]:
        return await self.db.create_record(
            collection="tasks",
            data={"routine_id": routine_id, "name": name, "status": "ACTIVE"},
        )

    async def condition(
        self,
        routine_id: str,
        *,
        target_task_id: str | None = None,
        target_routine_id: str | None = None,
        operator: str = "TASK_COMPLETED",
    ) -> dict[str, Any]:
        return await self.db.create_record(
            collection="conditions",
            data={
                "routine_id": routine_id,
                "operator": operator,
                "value": None,
                "target_task_id": target_task_id,
                "target_routine_id": target_routine_id,
            },
        )

    async def co_parent(
        self,
        primary_role_id: str,
        co_parent_role_id: str,
        permissions: str,
        person_ids: list[str],
        status: str = "ACTIVE",
    ) -> dict[str, Any]:
        return await self.db.create_record(
            collection="co_parents",
            data={
                "primary_role_id": primary_role_id,
                "co_parent_role_id": co_parent_role_id,
                "permissions": permissions,
                "person_ids": person_ids,
                "status": status,
            },
        )

    async def co_teacher(
        self,
        group_id: str,
        teacher_role_id: str,
        co_teacher_role_id: str,
        permissions: str,
        status: str = "ACTIVE",
    ) -> dict[str, Any]:
        return await self.db.create_record(
            collection="co_teachers",
            data={
                "group_id": group_id,
                "teacher_role_id": teacher_role_id,
                "co_teacher_role_id": co_teacher_role_id,
                "permissions": permissions,
                "status": status,
            },
        )

    async def sharing(
        self,
        owner_role_id: str,
        owner_person_id: str | None,
        shared_with_role_id: str,
        permissions: str = "VIEW",
        status: str = "ACTIVE",
        share_type: str = "PERSON",
    ) -> dict[str, Any]:
        return await self.db.create_record(
            collection="person_sharing_connections",
            data={
                "owner_role_id": owner_role_id,
                "owner_person_id": owner_person_id,
                "shared_with_role_id": shared_with_role_id,
                "share_type": share_type,
                "permissions": permissions,
                "status": status,
            },
        )

    async def completion(self, task_id: str, person_id: str, completed_at: str) -> dict[str, Any]:
        return await self.db.create_record(
            collection="task_completions",
            data={"task_id": task_id, "person_id": person_id, "completed_at": completed_at, "value": None},
        )


@pytest.fixture
def seed(patched_db) -> Seeder:
    """Record factory bound to the patched in-memory store."""
    return Seeder(patched_db)
