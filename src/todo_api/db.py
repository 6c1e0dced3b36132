from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Generator, Iterable, List, Mapping, Optional

from .models import NewTask, TaskEntity
from .repositories import Repository, UnitOfWork, check_updatable_fields, new_task_id


@dataclass(frozen=True)
class _Cols:
    table: str = "tasks"
    id: str = "id"
    title: str = "title"
    description: str = "description"
    completed: str = "completed"
    owner_id: str = "owner_id"
    version: str = "version"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


_COLS = _Cols()

_INSERT_SQL = f"""
    INSERT INTO {_COLS.table} ({_COLS.id}, {_COLS.title}, {_COLS.description}, {_COLS.completed},
        {_COLS.owner_id}, {_COLS.version}, {_COLS.created_at}, {_COLS.updated_at})
    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
"""


def _placeholders(n: int) -> str:
    return ", ".join("?" for _ in range(n))


class _SQLiteUnitOfWork(UnitOfWork):
    """Stages inserts on one connection; commit/rollback map to the sqlite transaction."""

    def __init__(self, repo: "SQLiteRepository") -> None:
        self._repo = repo
        self._conn = repo._connect()
        self._closed = False

    def create_task(self, data: NewTask) -> TaskEntity:
        return self._repo._insert(self._conn, data)

    def commit(self) -> None:
        if self._closed:
            return
        try:
            self._conn.commit()
        finally:
            self._close()

    def rollback(self) -> None:
        if self._closed:
            return
        try:
            self._conn.rollback()
        finally:
            self._close()

    def _close(self) -> None:
        self._conn.close()
        self._closed = True


class SQLiteRepository(Repository):
    """
    Lightweight SQLite repository implementing the Repository interface.

    Conditional updates run as a single UPDATE keyed on id and version, so
    concurrent writers against the same version are ordered by sqlite itself.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, timeout=30)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = self._connect()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} TEXT PRIMARY KEY,
                    {_COLS.title} TEXT NOT NULL,
                    {_COLS.description} TEXT NULL,
                    {_COLS.completed} INTEGER NOT NULL DEFAULT 0,
                    {_COLS.owner_id} TEXT NOT NULL,
                    {_COLS.version} INTEGER NOT NULL DEFAULT 1,
                    {_COLS.created_at} TEXT NOT NULL,
                    {_COLS.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_owner ON {_COLS.table}({_COLS.owner_id}, {_COLS.completed})"
            )

    def _row_to_entity(self, row: sqlite3.Row) -> TaskEntity:
        return {
            "id": str(row[_COLS.id]),
            "title": str(row[_COLS.title]),
            "description": row[_COLS.description],
            "completed": bool(row[_COLS.completed]),
            "owner_id": str(row[_COLS.owner_id]),
            "version": int(row[_COLS.version]),
            "created_at": datetime.fromisoformat(row[_COLS.created_at]),
            "updated_at": datetime.fromisoformat(row[_COLS.updated_at]),
        }

    def _select_one(self, conn: sqlite3.Connection, task_id: str) -> Optional[TaskEntity]:
        row = conn.execute(f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (task_id,)).fetchone()
        return self._row_to_entity(row) if row else None

    def _insert(self, conn: sqlite3.Connection, data: NewTask) -> TaskEntity:
        task_id = new_task_id()
        now = datetime.now().isoformat()
        conn.execute(
            _INSERT_SQL,
            (
                task_id,
                data["title"],
                data["description"],
                1 if data["completed"] else 0,
                data["owner_id"],
                data["version"],
                now,
                now,
            ),
        )
        entity = self._select_one(conn, task_id)
        assert entity is not None
        return entity

    def create_task(self, data: NewTask) -> TaskEntity:
        with self._conn() as conn:
            return self._insert(conn, data)

    def find_many_tasks(self, owner_id: str, completed: Optional[bool] = None) -> List[TaskEntity]:
        clauses = [f"{_COLS.owner_id} = ?"]
        params: list = [owner_id]
        if completed is not None:
            clauses.append(f"{_COLS.completed} = ?")
            params.append(1 if completed else 0)

        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_COLS.table} WHERE {' AND '.join(clauses)} ORDER BY rowid",
                params,
            ).fetchall()
            return [self._row_to_entity(r) for r in rows]

    def find_tasks_by_ids(self, ids: Iterable[str]) -> Dict[str, TaskEntity]:
        wanted = list(dict.fromkeys(ids))
        if not wanted:
            return {}
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} IN ({_placeholders(len(wanted))})",
                wanted,
            ).fetchall()
            return {str(r[_COLS.id]): self._row_to_entity(r) for r in rows}

    def find_task_by_id(self, task_id: str) -> Optional[TaskEntity]:
        with self._conn() as conn:
            return self._select_one(conn, task_id)

    def update_task(
        self, task_id: str, data: Mapping[str, Any], expected_version: int
    ) -> Optional[TaskEntity]:
        check_updatable_fields(data)
        values: Dict[str, Any] = dict(data)
        if "completed" in values:
            values["completed"] = 1 if values["completed"] else 0
        values[_COLS.updated_at] = datetime.now().isoformat()

        assignments = ", ".join(f"{col} = ?" for col in values)
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                UPDATE {_COLS.table}
                SET {assignments}
                WHERE {_COLS.id} = ? AND {_COLS.version} = ?
                """,
                [*values.values(), task_id, expected_version],
            )
            if cur.rowcount == 0:
                return None
            return self._select_one(conn, task_id)

    def delete_task(self, task_id: str) -> bool:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (task_id,))
            return cur.rowcount > 0

    def delete_many_tasks(self, ids: Iterable[str]) -> int:
        wanted = list(dict.fromkeys(ids))
        if not wanted:
            return 0
        with self._conn() as conn:
            cur = conn.execute(
                f"DELETE FROM {_COLS.table} WHERE {_COLS.id} IN ({_placeholders(len(wanted))})",
                wanted,
            )
            return cur.rowcount

    def transaction(self) -> UnitOfWork:
        return _SQLiteUnitOfWork(self)
