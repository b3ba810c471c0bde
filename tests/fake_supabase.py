"""
In-memory stand-in for the Supabase table API used by the services.

Covers the query-builder surface the app calls (select / insert / update /
delete with eq, neq, in_, order, limit) and reproduces the two Postgres
errors the services translate: unique violations (23505) and malformed
uuids (22P02), both raised as postgrest APIError.
"""
import copy
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError

UNIQUE_CONSTRAINTS = {
    "users": [("email",)],
    "roles": [("name",)],
    "permissions": [("action", "module")],
    "role_permissions": [("role_id", "permission_id")],
    "role_users": [("user_id", "role_id")],
    "auth_tokens": [("access_token_hash",), ("refresh_token_hash",)],
}

COLUMN_DEFAULTS = {
    "users": {"status": "unverified", "first_name": None, "last_name": None, "updated_at": None},
    "roles": {"updated_at": None},
    "permissions": {"updated_at": None},
    "role_permissions": {"can_do_the_action": False, "updated_at": None},
}


def _is_uuid_column(column: str) -> bool:
    return column == "id" or column.endswith("_id")


def _check_uuid(column: str, value: Any) -> None:
    if not _is_uuid_column(column) or value is None:
        return
    try:
        uuid.UUID(str(value))
    except ValueError:
        raise APIError({
            "code": "22P02",
            "message": f'invalid input syntax for type uuid: "{value}"',
            "details": None,
            "hint": None,
        })


class FakeResponse:
    def __init__(self, data: List[Dict[str, Any]]):
        self.data = data
        self.count = len(data)


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.operation = "select"
        self.columns: Optional[List[str]] = None
        self.payload: Any = None
        self.filters: List[tuple] = []
        self.order_by: Optional[tuple] = None
        self.row_limit: Optional[int] = None

    # operations
    def select(self, columns: str = "*"):
        self.operation = "select"
        if columns.strip() != "*":
            self.columns = [column.strip() for column in columns.split(",")]
        return self

    def insert(self, payload):
        self.operation = "insert"
        self.payload = payload
        return self

    def update(self, payload: Dict[str, Any]):
        self.operation = "update"
        self.payload = payload
        return self

    def delete(self):
        self.operation = "delete"
        return self

    # filters
    def eq(self, column: str, value: Any):
        self.filters.append(("eq", column, value))
        return self

    def neq(self, column: str, value: Any):
        self.filters.append(("neq", column, value))
        return self

    def in_(self, column: str, values):
        self.filters.append(("in", column, list(values)))
        return self

    def order(self, column: str, desc: bool = False):
        self.order_by = (column, desc)
        return self

    def limit(self, size: int):
        self.row_limit = size
        return self

    def _matches(self, row: Dict[str, Any]) -> bool:
        for kind, column, value in self.filters:
            if kind == "eq" and row.get(column) != value:
                return False
            if kind == "neq" and row.get(column) == value:
                return False
            if kind == "in" and row.get(column) not in value:
                return False
        return True

    def _validate_filters(self) -> None:
        for kind, column, value in self.filters:
            values = value if kind == "in" else [value]
            for item in values:
                _check_uuid(column, item)

    def execute(self) -> FakeResponse:
        self._validate_filters()
        rows = self.db.tables.setdefault(self.table, [])

        if self.operation == "insert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = [self.db.insert_row(self.table, item) for item in payload]
            return FakeResponse(copy.deepcopy(inserted))

        matched = [row for row in rows if self._matches(row)]

        if self.operation == "update":
            for column, value in self.payload.items():
                _check_uuid(column, value)
            for row in matched:
                self.db.check_unique(self.table, {**row, **self.payload}, exclude_id=row["id"])
            for row in matched:
                row.update(copy.deepcopy(self.payload))
            return FakeResponse(copy.deepcopy(matched))

        if self.operation == "delete":
            self.db.tables[self.table] = [row for row in rows if not self._matches(row)]
            return FakeResponse(copy.deepcopy(matched))

        if self.order_by is not None:
            column, desc = self.order_by
            matched = sorted(matched, key=lambda row: row.get(column) or "", reverse=desc)
        if self.row_limit is not None:
            matched = matched[:self.row_limit]
        if self.columns is not None:
            matched = [{column: row.get(column) for column in self.columns} for row in matched]
        return FakeResponse(copy.deepcopy(matched))


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rows(self, name: str) -> List[Dict[str, Any]]:
        return self.tables.get(name, [])

    def check_unique(self, table: str, candidate: Dict[str, Any], exclude_id: Optional[str] = None) -> None:
        for constraint in UNIQUE_CONSTRAINTS.get(table, []):
            key = tuple(candidate.get(column) for column in constraint)
            for row in self.tables.get(table, []):
                if row["id"] == exclude_id:
                    continue
                if tuple(row.get(column) for column in constraint) == key:
                    raise APIError({
                        "code": "23505",
                        "message": f'duplicate key value violates unique constraint "{table}_{"_".join(constraint)}_key"',
                        "details": None,
                        "hint": None,
                    })

    def insert_row(self, table: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        for column, value in payload.items():
            _check_uuid(column, value)
        row = {
            **COLUMN_DEFAULTS.get(table, {}),
            "id": str(uuid.uuid4()),
            "created_at": datetime.now(timezone.utc).isoformat(),
            **copy.deepcopy(payload),
        }
        self.check_unique(table, row)
        self.tables.setdefault(table, []).append(row)
        return row
