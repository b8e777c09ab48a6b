"""
In-memory stand-in for the Supabase async client.

Implements the slice of the SDK the repos and the session context use:
``table()`` with a chained PostgREST-style builder (select with embeds,
eq, order, limit, insert, update, delete, upsert), ``storage.from_()``,
and ``auth``. Failures are injected per table/operation and raised as the
real SDK exception types.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from typing import Any

from supabase import AuthApiError, PostgrestAPIError, StorageException

EPOCH = datetime(2025, 1, 1, tzinfo=UTC)

ANA_EMAIL = "ana@example.com"
LEO_EMAIL = "leo@example.com"
PASSWORD = "secret-password"


@dataclass
class FakeResponse:
    data: list[dict[str, Any]]
    count: int | None = None


def split_columns(columns: str) -> list[str]:
    """Split a select string on top-level commas."""
    parts: list[str] = []
    depth = 0
    current = ""
    for ch in columns:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append(current.strip())
            current = ""
        else:
            current += ch
    if current.strip():
        parts.append(current.strip())
    return parts


def api_error(message: str, code: str = "P0001") -> PostgrestAPIError:
    return PostgrestAPIError({"message": message, "code": code, "hint": None, "details": None})


class FakeQuery:
    """Chained request builder. Nothing happens until execute()."""

    def __init__(self, db: FakeSupabase, table: str) -> None:
        self.db = db
        self.table = table
        self.op = "select"
        self.columns = "*"
        self.values: Any = None
        self.filters: list[tuple[str, Any]] = []
        self.ordering: tuple[str, bool] | None = None
        self.row_limit: int | None = None
        self.on_conflict: str | None = None

    def select(self, columns: str = "*") -> FakeQuery:
        self.op = "select"
        self.columns = columns
        return self

    def insert(self, values: dict[str, Any] | list[dict[str, Any]]) -> FakeQuery:
        self.op = "insert"
        self.values = values
        return self

    def update(self, values: dict[str, Any]) -> FakeQuery:
        self.op = "update"
        self.values = values
        return self

    def upsert(self, values: dict[str, Any], on_conflict: str = "id") -> FakeQuery:
        self.op = "upsert"
        self.values = values
        self.on_conflict = on_conflict
        return self

    def delete(self) -> FakeQuery:
        self.op = "delete"
        return self

    def eq(self, column: str, value: Any) -> FakeQuery:
        self.filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False) -> FakeQuery:
        self.ordering = (column, desc)
        return self

    def limit(self, size: int) -> FakeQuery:
        self.row_limit = size
        return self

    async def execute(self) -> FakeResponse:
        await asyncio.sleep(0)
        return self.db.run(self)


class FakeSupabase:
    """
    Tables are plain lists of dicts.

    Args:
        embed_shape: How to-one embeds come back, "object" or "list"
        rls: table -> owner column; update/delete only touch rows owned
            by the signed-in user, as the row-level security policies do
    """

    # (relation) -> foreign key column pointing at the parent row
    COUNT_KEYS = {"circle_members": "circle_id", "replies": "post_id"}
    UNIQUE = {"circle_members": ("circle_id", "user_id")}

    def __init__(self, embed_shape: str = "object", rls: dict[str, str] | None = None) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.embed_shape = embed_shape
        self.rls = rls or {}
        self.calls: list[tuple[str, str]] = []
        self._failures: list[tuple[str, str | None, PostgrestAPIError]] = []
        self._clock = 0
        self.auth = FakeAuth(self)
        self.storage = FakeStorage()

    # -- setup helpers -------------------------------------------------

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def seed(self, table: str, *rows: dict[str, Any]) -> list[dict[str, Any]]:
        """Insert rows directly, bypassing calls and failures."""
        return [self._store(table, row) for row in rows]

    def rows(self, table: str) -> list[dict[str, Any]]:
        return self.tables.setdefault(table, [])

    def fail_next(self, table: str, message: str, op: str | None = None, code: str = "P0001") -> None:
        """Make the next matching request raise PostgrestAPIError."""
        self._failures.append((table, op, api_error(message, code)))

    def calls_to(self, table: str, op: str | None = None) -> int:
        return sum(1 for t, o in self.calls if t == table and (op is None or o == op))

    def now(self) -> str:
        self._clock += 1
        return (EPOCH + timedelta(minutes=self._clock)).isoformat()

    # -- execution -----------------------------------------------------

    def run(self, q: FakeQuery) -> FakeResponse:
        self.calls.append((q.table, q.op))
        for i, (table, op, error) in enumerate(self._failures):
            if table == q.table and (op is None or op == q.op):
                del self._failures[i]
                raise error

        if q.op == "select":
            rows = self._select(q)
        elif q.op == "insert":
            values = q.values if isinstance(q.values, list) else [q.values]
            rows = [self._insert(q.table, v) for v in values]
        elif q.op == "upsert":
            rows = [self._upsert(q.table, q.values, q.on_conflict or "id")]
        elif q.op == "update":
            rows = []
            for row in self._writable(q):
                row.update(q.values)
                rows.append(dict(row))
        elif q.op == "delete":
            rows = self._writable(q)
            table = self.rows(q.table)
            for row in rows:
                table.remove(row)
            rows = [dict(row) for row in rows]
        else:
            raise ValueError(f"unsupported op {q.op}")
        return FakeResponse(data=rows)

    def _matching(self, q: FakeQuery) -> list[dict[str, Any]]:
        return [row for row in self.rows(q.table) if all(row.get(c) == v for c, v in q.filters)]

    def _writable(self, q: FakeQuery) -> list[dict[str, Any]]:
        rows = self._matching(q)
        owner = self.rls.get(q.table)
        if owner is None:
            return rows
        uid = self.auth.uid
        return [row for row in rows if uid is not None and row.get(owner) == uid]

    def _select(self, q: FakeQuery) -> list[dict[str, Any]]:
        rows = self._matching(q)
        if q.ordering is not None:
            column, desc = q.ordering
            rows = sorted(rows, key=lambda r: r.get(column) or "", reverse=desc)
        if q.row_limit is not None:
            rows = rows[: q.row_limit]
        return [self._project(q.table, row, q.columns) for row in rows]

    def _project(self, table: str, row: dict[str, Any], columns: str) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for part in split_columns(columns):
            if part == "*":
                out.update(row)
            elif "(" in part:
                head, inner = part.split("(", 1)
                head, inner = head.strip(), inner.rstrip(")").strip()
                if ":" in head:
                    alias, fk = (s.strip() for s in head.split(":", 1))
                    out[alias] = self._embed_one(alias, row.get(fk), inner)
                elif inner == "count":
                    key = self.COUNT_KEYS[head]
                    count = sum(1 for r in self.rows(head) if r.get(key) == row.get("id"))
                    out[head] = [{"count": count}]
                else:
                    raise ValueError(f"unsupported embed {part!r}")
            else:
                out[part] = row.get(part)
        return out

    def _embed_one(self, table: str, key: Any, inner: str) -> Any:
        target = next((r for r in self.rows(table) if key is not None and r.get("id") == key), None)
        if target is not None and inner != "*":
            target = {c: target.get(c) for c in split_columns(inner)}
        elif target is not None:
            target = dict(target)
        if self.embed_shape == "list":
            return [target] if target is not None else []
        return target

    def _store(self, table: str, values: dict[str, Any]) -> dict[str, Any]:
        row = dict(values)
        row.setdefault("id", str(uuid.uuid4()))
        if table != "profiles":
            row.setdefault("created_at", self.now())
        self.rows(table).append(row)
        return row

    def _insert(self, table: str, values: dict[str, Any]) -> dict[str, Any]:
        unique = self.UNIQUE.get(table)
        if unique and any(all(r.get(c) == values.get(c) for c in unique) for r in self.rows(table)):
            raise api_error(f'duplicate key value violates unique constraint "{table}_pkey"', "23505")
        return dict(self._store(table, values))

    def _upsert(self, table: str, values: dict[str, Any], on_conflict: str) -> dict[str, Any]:
        for row in self.rows(table):
            if row.get(on_conflict) == values.get(on_conflict):
                row.update(values)
                return dict(row)
        return dict(self._store(table, values))


class FakeStorage:
    """Buckets keyed by name; objects keyed by (bucket, path)."""

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], tuple[bytes, dict[str, str] | None]] = {}
        self.failure: str | None = None
        self.gate: asyncio.Event | None = None

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self, bucket)


class FakeBucket:
    def __init__(self, storage: FakeStorage, name: str) -> None:
        self.storage = storage
        self.name = name

    async def upload(self, path: str, file: bytes, file_options: dict[str, str] | None = None) -> Any:
        if self.storage.gate is not None:
            await self.storage.gate.wait()
        if self.storage.failure is not None:
            message, self.storage.failure = self.storage.failure, None
            raise StorageException({"statusCode": 400, "error": "Bad Request", "message": message})
        self.storage.objects[(self.name, path)] = (file, file_options)
        return SimpleNamespace(path=path, full_path=f"{self.name}/{path}")

    async def get_public_url(self, path: str) -> str:
        return f"https://fake.supabase.co/storage/v1/object/public/{self.name}/{path}"


class FakeAuth:
    """Email/password accounts with confirmation and change listeners."""

    def __init__(self, db: FakeSupabase) -> None:
        self.db = db
        self.accounts: dict[str, dict[str, Any]] = {}
        self.session: Any = None
        self.listeners: list[Any] = []

    @property
    def uid(self) -> str | None:
        return self.session.user.id if self.session is not None else None

    def add_user(self, email: str, password: str, full_name: str | None = None, confirmed: bool = True) -> str:
        user = SimpleNamespace(
            id=str(uuid.uuid4()),
            email=email,
            user_metadata={"full_name": full_name} if full_name else {},
        )
        self.accounts[email] = {"password": password, "user": user, "confirmed": confirmed}
        return user.id

    def start_session(self, email: str) -> Any:
        """Pretend a stored session exists (as if restored from disk)."""
        self.session = SimpleNamespace(user=self.accounts[email]["user"], access_token="token")
        return self.session

    def emit(self, event: str) -> None:
        for callback in list(self.listeners):
            callback(event, self.session)

    async def get_session(self) -> Any:
        return self.session

    def on_auth_state_change(self, callback: Any) -> Any:
        self.listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self.listeners:
                self.listeners.remove(callback)

        return SimpleNamespace(id=str(uuid.uuid4()), callback=callback, unsubscribe=unsubscribe)

    async def sign_up(self, credentials: dict[str, Any]) -> Any:
        email = credentials["email"]
        password = credentials["password"]
        if email in self.accounts:
            raise AuthApiError("User already registered", 422, "user_already_exists")
        if len(password) < 6:
            raise AuthApiError("Password should be at least 6 characters.", 422, "weak_password")
        full_name = credentials.get("options", {}).get("data", {}).get("full_name")
        user_id = self.add_user(email, password, full_name, confirmed=False)
        return SimpleNamespace(user=self.accounts[email]["user"], session=None, user_id=user_id)

    async def sign_in_with_password(self, credentials: dict[str, Any]) -> Any:
        account = self.accounts.get(credentials["email"])
        if account is None or account["password"] != credentials["password"]:
            raise AuthApiError("Invalid login credentials", 400, "invalid_credentials")
        if not account["confirmed"]:
            raise AuthApiError("Email not confirmed", 400, "email_not_confirmed")
        self.start_session(credentials["email"])
        self.emit("SIGNED_IN")
        return SimpleNamespace(user=account["user"], session=self.session)

    async def sign_out(self) -> None:
        self.session = None
        self.emit("SIGNED_OUT")


def post_row(**overrides: Any) -> dict[str, Any]:
    """A complete posts row; override what the test cares about."""
    row: dict[str, Any] = {
        "title": "Essai",
        "book_title": "Madame Bovary",
        "book_author": "Flaubert",
        "content": "Une lecture.",
        "user_name": "Ana",
        "category": "Fiction",
        "cover_url": None,
        "user_id": None,
    }
    row.update(overrides)
    return row


def reply_row(post_id: str, user_id: str, **overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "post_id": post_id,
        "user_id": user_id,
        "user_name": "Ana",
        "content": "Je ne suis pas d'accord.",
        "quoted_text": None,
        "parent_reply_id": None,
    }
    row.update(overrides)
    return row
