"""Routine visibility rules and temporary visibility overrides.

The rule functions are pure: they take the routine (and optionally `now`) and
never touch the store. The override helpers at the bottom read and write the
`visibility_overrides` collection.
"""

import logging
from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta

from routinely.core import db_client
from routinely.core.config import constants
from routinely.core.logging import span
from routinely.domain.override import VisibilityOverride
from routinely.domain.routine import DAYS_IN_WEEK, Routine, Visibility


logger = logging.getLogger(__name__)

DAY_ABBREVIATIONS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
WEEKDAYS = frozenset({1, 2, 3, 4, 5})
WEEKENDS = frozenset({0, 6})


def sunday_based_weekday(moment: date) -> int:
    """Return the weekday number with 0=Sunday..6=Saturday."""
    return (moment.weekday() + 1) % DAYS_IN_WEEK


def _in_date_range(today: date, start: date, end: date) -> bool:
    """Check month/day membership in a start-end range, ignoring years."""
    month, day = today.month, today.day

    if start.month <= end.month:
        if month < start.month or month > end.month:
            return False
        if month == start.month and day < start.day:
            return False
        return not (month == end.month and day > end.day)

    # Range crosses the new year (e.g. November to February)
    if month >= start.month or month <= end.month:
        if month == start.month and day < start.day:
            return False
        return not (month == end.month and day > end.day)

    return False


def is_routine_visible(routine: Routine, now: datetime | None = None) -> bool:
    """Decide whether a routine is visible at `now` (defaults to local time).

    CONDITIONAL routines always report visible here; their gating belongs to
    the condition system.
    """
    now = now or datetime.now()

    match routine.visibility:
        case Visibility.ALWAYS:
            return True
        case Visibility.DAYS_OF_WEEK:
            return sunday_based_weekday(now) in routine.visible_days
        case Visibility.DATE_RANGE:
            if routine.start_date is None or routine.end_date is None:
                return False
            return _in_date_range(now.date(), routine.start_date, routine.end_date)
        case Visibility.CONDITIONAL:
            return True
        case _:
            return True


def format_visibility_description(routine: Routine) -> str:
    """Return a human-readable label for the routine's visibility rule."""
    match routine.visibility:
        case Visibility.ALWAYS:
            return "Always visible"
        case Visibility.DAYS_OF_WEEK:
            days = routine.visible_days
            if not days:
                return "Never visible"
            if len(days) == DAYS_IN_WEEK:
                return "Every day"
            if days == WEEKDAYS:
                return "Weekdays only"
            if days == WEEKENDS:
                return "Weekends only"
            return ", ".join(DAY_ABBREVIATIONS[day] for day in sorted(days))
        case Visibility.DATE_RANGE:
            if routine.start_date is None or routine.end_date is None:
                return "Date range not set"
            start, end = routine.start_date, routine.end_date
            return f"{start.month}/{start.day} - {end.month}/{end.day}"
        case Visibility.CONDITIONAL:
            return "Condition-based"
        case _:
            return "Unknown"


def _utc_now(now: datetime | None) -> datetime:
    """Default to the current time; naive timestamps are taken as UTC."""
    if now is None:
        return datetime.now(UTC)
    return now if now.tzinfo is not None else now.replace(tzinfo=UTC)


def find_active_override(
    routine_id: str,
    overrides: Iterable[VisibilityOverride],
    now: datetime | None = None,
) -> VisibilityOverride | None:
    """Return the first unexpired override for the routine, if any."""
    now = _utc_now(now)
    return next(
        (o for o in overrides if o.routine_id == routine_id and o.expires_at > now),
        None,
    )


def get_remaining_override_minutes(override: VisibilityOverride, now: datetime | None = None) -> int:
    """Whole minutes left on an override; 0 once it has expired."""
    now = _utc_now(now)
    remaining = override.expires_at - now
    return max(0, remaining // timedelta(minutes=1))


async def list_overrides(*, routine_id: str) -> list[VisibilityOverride]:
    """Load every stored override for a routine, expired or not."""
    records = await db_client.list_all_records(
        collection="visibility_overrides",
        filter_query=f'routine_id = "{db_client.sanitize_param(routine_id)}"',
    )
    return [VisibilityOverride.model_validate(r) for r in records]


async def cancel_visibility_override(*, routine_id: str) -> int:
    """Delete all overrides for a routine and return how many were removed."""
    overrides = await list_overrides(routine_id=routine_id)
    for override in overrides:
        await db_client.delete_record(collection="visibility_overrides", record_id=override.id)

    if overrides:
        logger.info("Cancelled visibility overrides", extra={"routine_id": routine_id, "count": len(overrides)})
    return len(overrides)


async def create_visibility_override(
    *,
    routine_id: str,
    duration_minutes: int,
    now: datetime | None = None,
) -> VisibilityOverride:
    """Force a routine visible for `duration_minutes`, replacing any existing override.

    Raises:
        ValueError: If the duration is outside the allowed window
        KeyError: If the routine does not exist
    """
    if not constants.OVERRIDE_MIN_MINUTES <= duration_minutes <= constants.OVERRIDE_MAX_MINUTES:
        msg = (
            f"Override duration must be between {constants.OVERRIDE_MIN_MINUTES} "
            f"and {constants.OVERRIDE_MAX_MINUTES} minutes"
        )
        raise ValueError(msg)

    with span("visibility_service.create_visibility_override"):
        await db_client.get_record(collection="routines", record_id=routine_id)
        await cancel_visibility_override(routine_id=routine_id)

        now = _utc_now(now)
        record = await db_client.create_record(
            collection="visibility_overrides",
            data={
                "routine_id": routine_id,
                "duration": duration_minutes,
                "expires_at": now + timedelta(minutes=duration_minutes),
            },
        )

    logger.info(
        "Created visibility override",
        extra={"routine_id": routine_id, "duration_minutes": duration_minutes},
    )
    return VisibilityOverride.model_validate(record)


async def get_visibility_override(*, routine_id: str, now: datetime | None = None) -> VisibilityOverride | None:
    """Return the routine's active override. Expiry is re-checked on every read."""
    overrides = await list_overrides(routine_id=routine_id)
    return find_active_override(routine_id, overrides, now)


async def is_routine_visible_now(routine: Routine, now: datetime | None = None) -> bool:
    """An active override forces visibility; otherwise the routine's rule decides."""
    override = await get_visibility_override(routine_id=routine.id, now=now)
    if override is not None:
        return True
    return is_routine_visible(routine, now)
