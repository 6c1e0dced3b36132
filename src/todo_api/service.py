"""
Task service: the business core behind every todo endpoint.

Invariants:
    - Every id-targeted read or mutation goes through guard.authorize/check.
    - owner_id is taken from the caller, never from input, and never rewritten.
    - version grows by exactly one per successful mutation; the version check
      runs before any write and the write itself is conditional on it.
    - description (and title) are sanitized immediately before persistence.
    - No task state is cached between calls.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from . import bulk, guard
from .errors import BadRequestError, ConflictError, NotFoundError
from .models import INITIAL_VERSION, NewTask, TaskEntity
from .repositories import Repository, UnitOfWork
from .sanitizer import sanitize, strip_markup
from .schemas import (
    TITLE_MAX_LENGTH,
    BulkDeleteResult,
    BulkToggleResult,
    TaskCreate,
    TaskFilter,
    TaskOut,
    TaskUpdate,
)

logger = logging.getLogger(__name__)

_FILTER_TO_COMPLETED: Dict[TaskFilter, Optional[bool]] = {
    TaskFilter.ALL: None,
    TaskFilter.COMPLETED: True,
    TaskFilter.ACTIVE: False,
}


def _clean_title(raw: str) -> str:
    title = (strip_markup(raw) or "").strip()
    if not title:
        raise BadRequestError("title must not be empty")
    if len(title) > TITLE_MAX_LENGTH:
        raise BadRequestError(f"title must be at most {TITLE_MAX_LENGTH} characters")
    return title


class TaskService:
    """Orchestrates validation, sanitization, ownership and version control."""

    def __init__(self, repository: Repository) -> None:
        self._repo = repository

    def _new_task(self, data: TaskCreate, caller_id: str) -> NewTask:
        return {
            "title": _clean_title(data.title),
            "description": sanitize(data.description),
            "completed": False,
            "owner_id": caller_id,
            "version": INITIAL_VERSION,
        }

    # PUBLIC_INTERFACE
    def create(self, data: TaskCreate, caller_id: str) -> TaskEntity:
        """Create a todo owned by caller_id. Raises BadRequestError on a blank title."""
        created = self._repo.create_task(self._new_task(data, caller_id))
        logger.info("Created task", extra={"task_id": created["id"], "owner_id": caller_id})
        return created

    # PUBLIC_INTERFACE
    def find_all(self, caller_id: str, task_filter: TaskFilter = TaskFilter.ALL) -> List[TaskEntity]:
        """Return the caller's todos in storage order."""
        return self._repo.find_many_tasks(caller_id, completed=_FILTER_TO_COMPLETED[TaskFilter(task_filter)])

    # PUBLIC_INTERFACE
    def find_one(self, task_id: str, caller_id: str, access: guard.Access = guard.Access.READ) -> TaskEntity:
        """Return a todo the caller owns. Raises NotFoundError or ForbiddenError."""
        return guard.authorize(self._repo.find_task_by_id(task_id), caller_id, access)

    # PUBLIC_INTERFACE
    def update(self, task_id: str, patch: TaskUpdate, caller_id: str) -> TaskEntity:
        """
        Apply patch if patch.version matches the stored version.

        An absent version never matches. The stored version becomes
        current + 1 on success; on ConflictError nothing is written.
        """
        current = self.find_one(task_id, caller_id, guard.Access.WRITE)
        if patch.version is None or patch.version != current["version"]:
            logger.warning(
                f"Version mismatch: expected {current['version']}, got {patch.version}",
                extra={"task_id": task_id, "owner_id": caller_id},
            )
            raise ConflictError("Todo was modified by another request; reload and retry")

        changes: Dict[str, Any] = {}
        fields = patch.model_fields_set
        if "title" in fields and patch.title is not None:
            changes["title"] = _clean_title(patch.title)
        if "description" in fields:
            changes["description"] = sanitize(patch.description)
        if "completed" in fields and patch.completed is not None:
            changes["completed"] = patch.completed
        changes["version"] = current["version"] + 1

        return self._conditional_write(task_id, changes, current["version"], caller_id)

    def _conditional_write(
        self, task_id: str, changes: Dict[str, Any], expected_version: int, caller_id: str
    ) -> TaskEntity:
        updated = self._repo.update_task(task_id, changes, expected_version)
        if updated is None:
            if self._repo.find_task_by_id(task_id) is None:
                raise NotFoundError("Todo not found")
            logger.warning(
                "Lost concurrent update race",
                extra={"task_id": task_id, "owner_id": caller_id},
            )
            raise ConflictError("Todo was modified by another request; reload and retry")
        logger.info(
            f"Updated task to version {updated['version']}",
            extra={"task_id": task_id, "owner_id": caller_id},
        )
        return updated

    # PUBLIC_INTERFACE
    def remove(self, task_id: str, caller_id: str) -> None:
        """Permanently delete a todo the caller owns."""
        self.find_one(task_id, caller_id, guard.Access.WRITE)
        if not self._repo.delete_task(task_id):
            raise NotFoundError("Todo not found")
        logger.info("Deleted task", extra={"task_id": task_id, "owner_id": caller_id})

    # PUBLIC_INTERFACE
    def bulk_create(self, items: Sequence[TaskCreate], caller_id: str) -> List[TaskEntity]:
        """
        Create every item or none of them.

        All titles are validated before the unit of work starts, so a blank
        title anywhere in the batch raises BadRequestError with nothing written.
        """
        prepared = [self._new_task(item, caller_id) for item in items]

        def _work(uow: UnitOfWork) -> List[TaskEntity]:
            return [uow.create_task(data) for data in prepared]

        created = self._repo.run_transaction(_work)
        logger.info(f"Bulk created {len(created)} tasks", extra={"owner_id": caller_id})
        return created

    # PUBLIC_INTERFACE
    def bulk_delete(self, ids: Sequence[str], caller_id: str) -> BulkDeleteResult:
        """Delete the caller-owned subset of ids and report the rest as not found."""
        split = bulk.partition(ids, self._repo.find_tasks_by_ids(ids), caller_id, guard.Access.WRITE)
        owned_ids = split.owned_ids
        if owned_ids:
            count = self._repo.delete_many_tasks(owned_ids)
            if count != len(owned_ids):
                logger.warning(
                    f"Bulk delete removed {count} of {len(owned_ids)} owned tasks",
                    extra={"owner_id": caller_id},
                )
        logger.info(
            f"Bulk deleted {len(owned_ids)} tasks, {len(split.not_found)} not found",
            extra={"owner_id": caller_id},
        )
        return BulkDeleteResult(deleted=owned_ids, not_found=split.not_found)

    # PUBLIC_INTERFACE
    def bulk_toggle(self, ids: Sequence[str], caller_id: str) -> BulkToggleResult:
        """
        Flip completed on every caller-owned todo in ids, one version-checked write each.

        A write that matches no row is re-read: a task deleted in the meantime
        is reported in not_found, one modified in the meantime in conflicts.
        """
        split = bulk.partition(ids, self._repo.find_tasks_by_ids(ids), caller_id, guard.Access.WRITE)
        updated: List[TaskEntity] = []
        not_found: List[str] = list(split.not_found)
        conflicts: List[str] = []
        for task in split.owned:
            changes = {"completed": not task["completed"], "version": task["version"] + 1}
            result = self._repo.update_task(task["id"], changes, task["version"])
            if result is not None:
                updated.append(result)
            elif self._repo.find_task_by_id(task["id"]) is None:
                not_found.append(task["id"])
            else:
                conflicts.append(task["id"])
        if conflicts:
            logger.warning(f"Bulk toggle lost {len(conflicts)} update races", extra={"owner_id": caller_id})
        return BulkToggleResult(
            updated=[TaskOut(**t) for t in updated],
            not_found=not_found,
            conflicts=conflicts,
        )
