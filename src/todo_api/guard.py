"""
Ownership guard: the single authorization checkpoint for id-targeted access.

check() returns a tagged result so bulk operations can partition ids without
raising; authorize() turns the same decision into a NotFoundError or
ForbiddenError for single-record operations. Existence is checked before
ownership.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import ForbiddenError, NotFoundError
from .models import TaskEntity

logger = logging.getLogger(__name__)


class Access(str, Enum):
    READ = "read"
    WRITE = "write"


class Outcome(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class GuardResult:
    outcome: Outcome
    record: Optional[TaskEntity] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK


# PUBLIC_INTERFACE
def check(record: Optional[TaskEntity], caller_id: str, access: Access = Access.READ) -> GuardResult:
    """
    Decide whether caller_id may access record.

    READ and WRITE share the same rule (strict owner equality); access is
    carried so call sites state their intent and denials are logged with it.
    """
    if record is None:
        return GuardResult(Outcome.NOT_FOUND)
    if record["owner_id"] != caller_id:
        return GuardResult(Outcome.FORBIDDEN)
    return GuardResult(Outcome.OK, record)


# PUBLIC_INTERFACE
def authorize(record: Optional[TaskEntity], caller_id: str, access: Access = Access.READ) -> TaskEntity:
    """
    Return record when caller_id owns it.

    Raises:
        NotFoundError: record is None.
        ForbiddenError: record belongs to another user.
    """
    result = check(record, caller_id, access)
    if result.outcome is Outcome.NOT_FOUND:
        raise NotFoundError("Todo not found")
    if result.outcome is Outcome.FORBIDDEN:
        logger.warning(
            f"Denied {access.value} access to task owned by another user",
            extra={"task_id": record["id"] if record else None, "owner_id": caller_id},
        )
        raise ForbiddenError("You do not have access to this todo")
    assert result.record is not None
    return result.record
