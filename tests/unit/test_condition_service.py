"""Unit tests for condition_service module."""

import pytest

from routinely.core.config import constants
from routinely.core.errors import CyclicDependencyError, PermissionDeniedError
from routinely.domain.routine import ConditionOperator
from routinely.services import condition_service


@pytest.fixture
async def parent(seed):
    user = await seed.user("Robin")
    role = await seed.role(user["id"])
    return {"user": user, "role": role}


@pytest.mark.unit
class TestAddCondition:
    """Tests for add_condition function."""

    async def test_adds_condition_on_task(self, seed, parent):
        smart = await seed.routine(parent["role"]["id"], name="Screen time", routine_type="SMART")
        chores = await seed.routine(parent["role"]["id"], name="Chores")
        dishes = await seed.task(chores["id"], name="Dishes")

        condition = await condition_service.add_condition(
            user_id=parent["user"]["id"],
            routine_id=smart["id"],
            operator=ConditionOperator.TASK_COMPLETED,
            target_task_id=dishes["id"],
        )

        assert condition.routine_id == smart["id"]
        assert condition.target_task_id == dishes["id"]
        assert condition.operator == ConditionOperator.TASK_COMPLETED
        assert await condition_service.list_conditions(routine_id=smart["id"]) == [condition]

    async def test_requires_a_target(self, seed, parent):
        smart = await seed.routine(parent["role"]["id"], routine_type="SMART")

        with pytest.raises(ValueError, match="target"):
            await condition_service.add_condition(
                user_id=parent["user"]["id"],
                routine_id=smart["id"],
                operator=ConditionOperator.TASK_COMPLETED,
            )

    async def test_regular_routine_is_rejected(self, seed, parent):
        regular = await seed.routine(parent["role"]["id"], name="Plain")
        other = await seed.routine(parent["role"]["id"], name="Other")

        with pytest.raises(ValueError, match="SMART"):
            await condition_service.add_condition(
                user_id=parent["user"]["id"],
                routine_id=regular["id"],
                operator=ConditionOperator.TASK_COMPLETED,
                target_routine_id=other["id"],
            )

    async def test_foreign_routine_is_rejected(self, seed, parent):
        smart = await seed.routine(parent["role"]["id"], routine_type="SMART")
        other = await seed.routine(parent["role"]["id"], name="Other")

        with pytest.raises(PermissionDeniedError):
            await condition_service.add_condition(
                user_id="someone-else",
                routine_id=smart["id"],
                operator=ConditionOperator.TASK_COMPLETED,
                target_routine_id=other["id"],
            )

    async def test_missing_target_task(self, seed, parent):
        smart = await seed.routine(parent["role"]["id"], routine_type="SMART")

        with pytest.raises(KeyError):
            await condition_service.add_condition(
                user_id=parent["user"]["id"],
                routine_id=smart["id"],
                operator=ConditionOperator.TASK_COMPLETED,
                target_task_id="404",
            )

    async def test_cycle_is_rejected_and_nothing_written(self, seed, patched_db, parent):
        first = await seed.routine(parent["role"]["id"], name="Reading", routine_type="SMART")
        second = await seed.routine(parent["role"]["id"], name="Games", routine_type="SMART")
        await seed.condition(second["id"], target_routine_id=first["id"])

        with pytest.raises(CyclicDependencyError) as exc_info:
            await condition_service.add_condition(
                user_id=parent["user"]["id"],
                routine_id=first["id"],
                operator=ConditionOperator.ROUTINE_PERCENT_GT,
                target_routine_id=second["id"],
            )

        assert exc_info.value.readable_path == "Reading → Games → Reading"
        assert await condition_service.list_conditions(routine_id=first["id"]) == []

    async def test_self_reference_through_own_task_is_a_cycle(self, seed, parent):
        smart = await seed.routine(parent["role"]["id"], name="Loop", routine_type="SMART")
        own_task = await seed.task(smart["id"])

        with pytest.raises(CyclicDependencyError):
            await condition_service.add_condition(
                user_id=parent["user"]["id"],
                routine_id=smart["id"],
                operator=ConditionOperator.TASK_COMPLETED,
                target_task_id=own_task["id"],
            )


@pytest.mark.unit
class TestUpdateCondition:
    """Tests for update_condition function."""

    async def test_retarget_is_cycle_checked(self, seed, parent):
        first = await seed.routine(parent["role"]["id"], name="A", routine_type="SMART")
        second = await seed.routine(parent["role"]["id"], name="B", routine_type="SMART")
        unrelated = await seed.routine(parent["role"]["id"], name="C")
        await seed.condition(second["id"], target_routine_id=first["id"])
        condition = await seed.condition(first["id"], target_routine_id=unrelated["id"])

        with pytest.raises(CyclicDependencyError):
            await condition_service.update_condition(
                user_id=parent["user"]["id"],
                condition_id=condition["id"],
                target_routine_id=second["id"],
            )

    async def test_updates_value(self, seed, parent):
        smart = await seed.routine(parent["role"]["id"], routine_type="SMART")
        target = await seed.routine(parent["role"]["id"], name="Target")
        condition = await seed.condition(smart["id"], target_routine_id=target["id"])

        updated = await condition_service.update_condition(
            user_id=parent["user"]["id"],
            condition_id=condition["id"],
            operator=ConditionOperator.ROUTINE_PERCENT_GT,
            value="3",
        )

        assert updated.operator == ConditionOperator.ROUTINE_PERCENT_GT
        assert updated.value == "3"
        assert updated.target_routine_id == target["id"]

    async def test_no_changes_returns_current(self, seed, parent):
        smart = await seed.routine(parent["role"]["id"], routine_type="SMART")
        target = await seed.routine(parent["role"]["id"], name="Target")
        condition = await seed.condition(smart["id"], target_routine_id=target["id"])

        unchanged = await condition_service.update_condition(
            user_id=parent["user"]["id"],
            condition_id=condition["id"],
        )

        assert unchanged.id == condition["id"]


@pytest.mark.unit
class TestDeleteCondition:
    """Tests for delete_condition function."""

    async def test_owner_deletes_condition(self, seed, parent):
        smart = await seed.routine(parent["role"]["id"], routine_type="SMART")
        target = await seed.routine(parent["role"]["id"], name="Target")
        condition = await seed.condition(smart["id"], target_routine_id=target["id"])

        await condition_service.delete_condition(user_id=parent["user"]["id"], condition_id=condition["id"])

        assert await condition_service.list_conditions(routine_id=smart["id"]) == []

    async def test_foreign_user_cannot_delete(self, seed, parent):
        smart = await seed.routine(parent["role"]["id"], routine_type="SMART")
        target = await seed.routine(parent["role"]["id"], name="Target")
        condition = await seed.condition(smart["id"], target_routine_id=target["id"])

        with pytest.raises(PermissionDeniedError):
            await condition_service.delete_condition(user_id="someone-else", condition_id=condition["id"])

        assert len(await condition_service.list_conditions(routine_id=smart["id"])) == 1

    async def test_missing_condition(self, patched_db):
        with pytest.raises(KeyError):
            await condition_service.delete_condition(user_id="u1", condition_id="404")

    async def test_deleting_breaks_the_dependency(self, seed, parent):
        first = await seed.routine(parent["role"]["id"], name="A", routine_type="SMART")
        second = await seed.routine(parent["role"]["id"], name="B", routine_type="SMART")
        back_edge = await seed.condition(second["id"], target_routine_id=first["id"])

        await condition_service.delete_condition(user_id=parent["user"]["id"], condition_id=back_edge["id"])
        condition = await condition_service.add_condition(
            user_id=parent["user"]["id"],
            routine_id=first["id"],
            operator=ConditionOperator.ROUTINE_PERCENT_GT,
            target_routine_id=second["id"],
        )

        assert condition.target_routine_id == second["id"]


@pytest.mark.unit
class TestListConditions:
    """Tests for list_conditions function."""

    async def test_lists_every_condition_across_pages(self, seed, parent, monkeypatch):
        monkeypatch.setattr(constants, "FULL_SCAN_PER_PAGE", 1)
        smart = await seed.routine(parent["role"]["id"], routine_type="SMART")
        targets = [await seed.routine(parent["role"]["id"], name=f"Target {n}") for n in range(3)]
        for target in targets:
            await seed.condition(smart["id"], target_routine_id=target["id"])

        conditions = await condition_service.list_conditions(routine_id=smart["id"])

        assert [c.target_routine_id for c in conditions] == [t["id"] for t in targets]
