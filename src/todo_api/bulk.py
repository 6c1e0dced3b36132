from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from . import guard
from .models import TaskEntity


def unique_ids(ids: Iterable[str]) -> List[str]:
    """Drop repeated ids, keeping the first occurrence's position."""
    return list(dict.fromkeys(ids))


@dataclass
class Partition:
    """
    Split of a bulk request's ids.

    owned keeps request order; not_found holds every id the caller cannot
    act on, whether it is missing or belongs to someone else.
    """

    owned: List[TaskEntity] = field(default_factory=list)
    not_found: List[str] = field(default_factory=list)

    @property
    def owned_ids(self) -> List[str]:
        return [t["id"] for t in self.owned]


# PUBLIC_INTERFACE
def partition(
    ids: Iterable[str],
    records: Dict[str, TaskEntity],
    caller_id: str,
    access: guard.Access = guard.Access.WRITE,
) -> Partition:
    """Run every requested id through the ownership guard and partition the results."""
    result = Partition()
    for task_id in unique_ids(ids):
        checked = guard.check(records.get(task_id), caller_id, access)
        if checked.ok:
            assert checked.record is not None
            result.owned.append(checked.record)
        else:
            result.not_found.append(task_id)
    return result
