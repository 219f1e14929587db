"""In-memory stand-in for the subset of the Supabase table API the repositories use"""
import copy
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional


class FakeResponse:
    def __init__(self, data: List[Dict[str, Any]], count: Optional[int] = None):
        self.data = data
        self.count = count


class FakeQuery:
    def __init__(self, client: "FakeSupabaseClient", table: str, op: str, payload: Any = None,
                 columns: str = "*", on_conflict: Optional[str] = None, ignore_duplicates: bool = False):
        self._client = client
        self._table = table
        self._op = op
        self._payload = payload
        self._columns = columns
        self._on_conflict = on_conflict
        self._ignore_duplicates = ignore_duplicates
        self._filters: List[Callable[[Dict[str, Any]], bool]] = []
        self._order: Optional[tuple] = None
        self._limit: Optional[int] = None

    # Filters
    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append(lambda row: column in row and row[column] == value and type(row[column]) is type(value))
        return self

    def in_(self, column: str, values: List[Any]) -> "FakeQuery":
        values = list(values)
        self._filters.append(lambda row: row.get(column) in values)
        return self

    def ilike(self, column: str, pattern: str) -> "FakeQuery":
        regex = re.compile("^" + ".*".join(re.escape(part) for part in pattern.split("%")) + "$", re.IGNORECASE)
        self._filters.append(lambda row: isinstance(row.get(column), str) and bool(regex.match(row[column])))
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._order = (column, desc)
        return self

    def limit(self, n: int) -> "FakeQuery":
        self._limit = n
        return self

    # Execution
    def _matches(self) -> List[Dict[str, Any]]:
        rows = self._client.tables.setdefault(self._table, [])
        return [row for row in rows if all(f(row) for f in self._filters)]

    def _project(self, row: Dict[str, Any]) -> Dict[str, Any]:
        if self._columns.strip() == "*":
            return copy.deepcopy(row)
        wanted = [c.strip() for c in self._columns.split(",")]
        return {c: copy.deepcopy(row.get(c)) for c in wanted}

    def execute(self) -> FakeResponse:
        self._client.calls.append((self._table, self._op, copy.deepcopy(self._payload)))
        matched = self._matches()
        self._client._maybe_fail(self._table, self._op, self._payload, matched)

        if self._op == "select":
            rows = matched
            if self._order:
                column, desc = self._order
                rows = sorted(rows, key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
            if self._limit:
                rows = rows[: self._limit]
            return FakeResponse([self._project(r) for r in rows], count=len(matched))

        if self._op == "insert":
            return FakeResponse([self._client._insert(self._table, self._payload)])

        if self._op == "upsert":
            existing = [
                r for r in self._client.tables.setdefault(self._table, [])
                if self._on_conflict and r.get(self._on_conflict) == self._payload.get(self._on_conflict)
            ]
            if existing:
                if self._ignore_duplicates:
                    return FakeResponse([])
                existing[0].update(copy.deepcopy(self._payload))
                return FakeResponse([copy.deepcopy(existing[0])])
            return FakeResponse([self._client._insert(self._table, self._payload)])

        if self._op == "update":
            for row in matched:
                row.update(copy.deepcopy(self._payload))
            return FakeResponse([copy.deepcopy(r) for r in matched])

        if self._op == "delete":
            rows = self._client.tables[self._table]
            self._client.tables[self._table] = [r for r in rows if r not in matched]
            return FakeResponse([copy.deepcopy(r) for r in matched])

        raise ValueError(f"Unsupported operation {self._op}")


class FakeTable:
    def __init__(self, client: "FakeSupabaseClient", name: str):
        self._client = client
        self._name = name

    def select(self, columns: str = "*", count: Optional[str] = None) -> FakeQuery:
        return FakeQuery(self._client, self._name, "select", columns=columns)

    def insert(self, data: Dict[str, Any]) -> FakeQuery:
        return FakeQuery(self._client, self._name, "insert", payload=data)

    def upsert(self, data: Dict[str, Any], on_conflict: Optional[str] = None,
               ignore_duplicates: bool = False) -> FakeQuery:
        return FakeQuery(self._client, self._name, "upsert", payload=data,
                         on_conflict=on_conflict, ignore_duplicates=ignore_duplicates)

    def update(self, data: Dict[str, Any]) -> FakeQuery:
        return FakeQuery(self._client, self._name, "update", payload=data)

    def delete(self) -> FakeQuery:
        return FakeQuery(self._client, self._name, "delete")


class FakeSupabaseClient:
    """
    Tables are lists of dict rows. Every executed query is recorded in
    `calls` as (table, op, payload); `fail()` makes matching queries raise.
    """

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.calls: List[tuple] = []
        self._failures: List[tuple] = []
        self._next_id = 1

    def table(self, name: str) -> FakeTable:
        return FakeTable(self, name)

    def seed(self, table: str, *rows: Dict[str, Any]) -> None:
        self.tables.setdefault(table, []).extend(copy.deepcopy(list(rows)))

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.get(table, [])

    def get(self, table: str, id: Any) -> Optional[Dict[str, Any]]:
        return next((r for r in self.rows(table) if r.get("id") == id), None)

    def fail(self, table: str, op: str, exc: Exception,
             when: Optional[Callable[[Any, List[Dict[str, Any]]], bool]] = None) -> None:
        """Make the next matching query raise exc. `when(payload, matched_rows)` narrows the match."""
        self._failures.append((table, op, exc, when))

    def writes(self, table: Optional[str] = None) -> List[tuple]:
        return [
            c for c in self.calls
            if c[1] in ("insert", "upsert", "update", "delete") and (table is None or c[0] == table)
        ]

    def _maybe_fail(self, table: str, op: str, payload: Any, matched: List[Dict[str, Any]]) -> None:
        for failure in list(self._failures):
            f_table, f_op, exc, when = failure
            if f_table == table and f_op == op and (when is None or when(payload, matched)):
                self._failures.remove(failure)
                raise exc

    def _insert(self, table: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        row = copy.deepcopy(payload)
        row.setdefault("id", self._next_id)
        self._next_id += 1
        now = datetime.now(timezone.utc).isoformat()
        if table == "webhook_deliveries":
            row.setdefault("received_at", now)
        else:
            row.setdefault("created_at", now)
        self.tables.setdefault(table, []).append(row)
        return copy.deepcopy(row)
