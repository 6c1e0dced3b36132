from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from threading import RLock
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, TypeVar

from .models import NewTask, TaskEntity
from .settings import Settings, get_settings

T = TypeVar("T")

# Fields a conditional update is allowed to write.
UPDATABLE_FIELDS = frozenset({"title", "description", "completed", "version"})


# PUBLIC_INTERFACE
class UnitOfWork(ABC):
    """
    All-or-nothing batch of task creations.

    Used as a context manager: leaving the block normally commits, leaving it
    with an exception rolls every staged write back and re-raises.
    """

    @abstractmethod
    def create_task(self, data: NewTask) -> TaskEntity:
        """Stage a new task and return it as it will be stored."""

    @abstractmethod
    def commit(self) -> None:
        """Make every staged write durable."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard every staged write."""

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.commit()
        else:
            self.rollback()


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for task storage backends."""

    @abstractmethod
    def create_task(self, data: NewTask) -> TaskEntity:
        """Create and return a new TaskEntity with a generated id."""

    @abstractmethod
    def find_many_tasks(self, owner_id: str, completed: Optional[bool] = None) -> List[TaskEntity]:
        """Return the owner's tasks in insertion order, optionally filtered by completion."""

    @abstractmethod
    def find_tasks_by_ids(self, ids: Iterable[str]) -> Dict[str, TaskEntity]:
        """Return the existing tasks among ids, keyed by id. Ownership is not checked."""

    @abstractmethod
    def find_task_by_id(self, task_id: str) -> Optional[TaskEntity]:
        """Return a TaskEntity by id, or None if not found."""

    @abstractmethod
    def update_task(
        self, task_id: str, data: Mapping[str, Any], expected_version: int
    ) -> Optional[TaskEntity]:
        """
        Atomically apply data to the task if its stored version equals expected_version.
        Return the updated entity, or None when no row matches id and version.
        """

    @abstractmethod
    def delete_task(self, task_id: str) -> bool:
        """Delete a TaskEntity by id. Return True if deleted, False if not found."""

    @abstractmethod
    def delete_many_tasks(self, ids: Iterable[str]) -> int:
        """Delete every task in ids and return how many rows were removed."""

    @abstractmethod
    def transaction(self) -> UnitOfWork:
        """Begin a unit of work for batch creation."""

    def run_transaction(self, work: Callable[[UnitOfWork], T]) -> T:
        """Run work inside a unit of work; commit on success, roll back on error."""
        with self.transaction() as uow:
            return work(uow)


def new_task_id() -> str:
    return str(uuid.uuid4())


def check_updatable_fields(data: Mapping[str, Any]) -> None:
    unknown = set(data) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"fields not updatable: {sorted(unknown)}")


class _InMemoryUnitOfWork(UnitOfWork):
    def __init__(self, repo: "InMemoryRepository") -> None:
        self._repo = repo
        self._staged: List[TaskEntity] = []

    def create_task(self, data: NewTask) -> TaskEntity:
        entity = self._repo._build(data)
        self._staged.append(entity)
        return entity.copy()  # type: ignore[return-value]

    def commit(self) -> None:
        with self._repo._lock:
            for entity in self._staged:
                self._repo._items[entity["id"]] = entity
        self._staged = []

    def rollback(self) -> None:
        self._staged = []


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[str, TaskEntity] = {}

    def _now(self) -> datetime:
        return datetime.now()

    def _build(self, data: NewTask) -> TaskEntity:
        now = self._now()
        return {
            "id": new_task_id(),
            "title": data["title"],
            "description": data["description"],
            "completed": data["completed"],
            "owner_id": data["owner_id"],
            "version": data["version"],
            "created_at": now,
            "updated_at": now,
        }

    def create_task(self, data: NewTask) -> TaskEntity:
        entity = self._build(data)
        with self._lock:
            self._items[entity["id"]] = entity
        return entity.copy()  # type: ignore[return-value]

    def find_many_tasks(self, owner_id: str, completed: Optional[bool] = None) -> List[TaskEntity]:
        with self._lock:
            return [
                t.copy()  # type: ignore[misc]
                for t in self._items.values()
                if t["owner_id"] == owner_id and (completed is None or t["completed"] == completed)
            ]

    def find_tasks_by_ids(self, ids: Iterable[str]) -> Dict[str, TaskEntity]:
        with self._lock:
            return {
                i: self._items[i].copy()  # type: ignore[misc]
                for i in ids
                if i in self._items
            }

    def find_task_by_id(self, task_id: str) -> Optional[TaskEntity]:
        with self._lock:
            item = self._items.get(task_id)
            return None if item is None else item.copy()  # type: ignore[return-value]

    def update_task(
        self, task_id: str, data: Mapping[str, Any], expected_version: int
    ) -> Optional[TaskEntity]:
        check_updatable_fields(data)
        with self._lock:
            existing = self._items.get(task_id)
            if existing is None or existing["version"] != expected_version:
                return None

            updated = existing.copy()
            updated.update(data)  # type: ignore[typeddict-item]
            updated["updated_at"] = self._now()

            self._items[task_id] = updated  # type: ignore[assignment]
            return updated.copy()  # type: ignore[return-value]

    def delete_task(self, task_id: str) -> bool:
        with self._lock:
            return self._items.pop(task_id, None) is not None

    def delete_many_tasks(self, ids: Iterable[str]) -> int:
        with self._lock:
            return sum(1 for i in set(ids) if self._items.pop(i, None) is not None)

    def transaction(self) -> UnitOfWork:
        return _InMemoryUnitOfWork(self)


# PUBLIC_INTERFACE
def get_repository(settings: Optional[Settings] = None) -> Repository:
    """
    Factory to return the configured repository based on settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository (stdlib sqlite3)
    """
    settings = settings or get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        return SQLiteRepository(settings.sqlite_db_path)
    return InMemoryRepository()
