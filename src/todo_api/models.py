from __future__ import annotations

from datetime import datetime
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    Storage-level representation of a Task shared by every repository backend.

    Fields:
    - id: Opaque unique identifier (uuid4 string), immutable
    - title: Sanitized, trimmed, never empty
    - description: Optional sanitized free text
    - completed: Boolean completion flag
    - owner_id: Identifier of the creating user, immutable
    - version: Optimistic-concurrency counter, starts at 1
    - created_at: Creation timestamp
    - updated_at: Last mutation timestamp
    """

    id: str
    title: str
    description: Optional[str]
    completed: bool
    owner_id: str
    version: int
    created_at: datetime
    updated_at: datetime


# PUBLIC_INTERFACE
class NewTask(TypedDict):
    """Fields the service hands to a repository when creating a Task."""

    title: str
    description: Optional[str]
    completed: bool
    owner_id: str
    version: int


INITIAL_VERSION = 1
