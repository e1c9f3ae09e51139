"""Pure Python in-memory database for unit testing."""

import copy
import re
from typing import Any

from routinely.core.db_client import (
    DatabaseError,
    RecordNotFoundError,
    serialize_value,
    split_outside_quotes,
    unescape_param,
)


_COMPARISON = re.compile(r"""^(\w+)\s*(!=|>=|<=|=|>|<|~)\s*(['"])(.*)\3$""")


class InMemoryDBClient:
    """Pure Python in-memory database for unit testing.

    Mirrors the keyword interface of routinely.core.db_client, including the
    filter syntax (`&&`, parenthesized `||` groups) and `-field` sorting.
    Ids are strings, as the real client returns them.
    """

    def __init__(self):
        """Initialize empty in-memory database."""
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._id_counter = 1000

    async def create_record(self, *, collection: str, data: dict[str, Any]) -> dict[str, Any]:
        """Create a new record and return it with its assigned id."""
        if not isinstance(data, dict):
            raise DatabaseError(f"Data must be a dictionary, got {type(data)}")

        record_id = str(self._id_counter)
        self._id_counter += 1

        record = {key: serialize_value(value) for key, value in data.items()}
        record["id"] = record_id
        self._collections.setdefault(collection, {})[record_id] = record
        return copy.deepcopy(record)

    async def get_record(self, *, collection: str, record_id: str) -> dict[str, Any]:
        """Get a record by id, raising RecordNotFoundError if missing."""
        record = self._collections.get(collection, {}).get(str(record_id))
        if record is None:
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")
        return copy.deepcopy(record)

    async def update_record(self, *, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Update an existing record."""
        if not data:
            raise ValueError("Empty update payload")

        record = self._collections.get(collection, {}).get(str(record_id))
        if record is None:
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")

        record.update({key: serialize_value(value) for key, value in data.items()})
        return copy.deepcopy(record)

    async def delete_record(self, *, collection: str, record_id: str) -> None:
        """Delete a record, raising RecordNotFoundError if missing."""
        records = self._collections.get(collection, {})
        if str(record_id) not in records:
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")
        del records[str(record_id)]

    async def list_records(
        self,
        *,
        collection: str,
        page: int = 1,
        per_page: int = 50,
        filter_query: str = "",
        sort: str = "",
    ) -> list[dict[str, Any]]:
        """List records with optional filtering, sorting, and pagination."""
        records = list(self._collections.get(collection, {}).values())

        if filter_query:
            records = [r for r in records if self._matches(filter_query, r)]

        records = self._apply_sort(records, sort)

        start_idx = (page - 1) * per_page
        return [copy.deepcopy(r) for r in records[start_idx : start_idx + per_page]]

    async def get_first_record(self, *, collection: str, filter_query: str) -> dict[str, Any] | None:
        """Get the first matching record or None."""
        records = await self.list_records(collection=collection, filter_query=filter_query, per_page=1)
        return records[0] if records else None

    def _matches(self, filter_query: str, record: dict[str, Any]) -> bool:
        """Evaluate a filter expression against a record."""
        for part in split_outside_quotes(filter_query, "&&"):
            if part.startswith("(") and part.endswith(")"):
                if not any(self._compare(p, record) for p in split_outside_quotes(part[1:-1], "||")):
                    return False
            elif not self._compare(part, record):
                return False
        return True

    @staticmethod
    def _compare(comparison: str, record: dict[str, Any]) -> bool:
        match = _COMPARISON.match(comparison.strip())
        if not match:
            raise DatabaseError(f"Invalid filter syntax: {comparison}")

        field, op, _, raw_expected = match.groups()
        expected = unescape_param(raw_expected)
        actual = record.get(field)
        actual_str = "" if actual is None else str(actual)

        if op == "=":
            return actual_str == expected
        if op == "!=":
            return actual_str != expected
        if op == "~":
            return expected.lower() in actual_str.lower()
        if actual is None:
            return False
        return {
            ">": actual_str > expected,
            "<": actual_str < expected,
            ">=": actual_str >= expected,
            "<=": actual_str <= expected,
        }[op]

    @staticmethod
    def _apply_sort(records: list[dict], sort: str) -> list[dict]:
        if not sort:
            return sorted(records, key=lambda r: int(r["id"]))

        reverse = sort.startswith("-")
        field = sort[1:] if reverse else sort
        return sorted(records, key=lambda r: str(r.get(field) or ""), reverse=reverse)
