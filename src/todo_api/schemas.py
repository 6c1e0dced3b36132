from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Blank or over-long titles are accepted here and rejected by the service with a
# BadRequest, since both checks have to run after sanitization.
TITLE_MAX_LENGTH = 200


class TaskFilter(str, Enum):
    ALL = "all"
    COMPLETED = "completed"
    ACTIVE = "active"


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for creating a new Todo item. The owner is always the caller.
    """

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
            }
        },
    )

    title: str = Field(..., description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Schema for updating an existing Todo item.

    version must echo the version the client last read; only provided fields
    are changed.
    """

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "title": "Buy groceries and supplies",
                "completed": True,
                "version": 1,
            }
        },
    )

    version: Optional[int] = Field(default=None, description="Version the update is based on", ge=0)
    title: Optional[str] = Field(default=None, description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    completed: Optional[bool] = Field(default=None, description="Completion status flag")


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "0b4f1c8e-3a51-4c83-9d38-6f0a6b7d2c11",
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "completed": False,
                "owner_id": "user-1",
                "version": 1,
                "created_at": "2025-01-25T10:15:30.123456",
                "updated_at": "2025-01-26T09:00:00.000001",
            }
        }
    )

    id: str = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    completed: bool = Field(..., description="Completion status flag")
    owner_id: str = Field(..., description="Identifier of the owning user")
    version: int = Field(..., description="Current optimistic-concurrency version")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


# PUBLIC_INTERFACE
class BulkCreate(BaseModel):
    """Batch of todos created all-or-nothing."""

    todos: List[TaskCreate] = Field(..., min_length=1, description="Todos to create, in order")


# PUBLIC_INTERFACE
class BulkIds(BaseModel):
    """Ids targeted by a bulk delete or bulk toggle."""

    ids: List[str] = Field(..., description="Todo ids; missing or foreign ids are reported, not rejected")


# PUBLIC_INTERFACE
class BulkDeleteResult(BaseModel):
    deleted: List[str] = Field(..., description="Ids removed")
    not_found: List[str] = Field(..., description="Ids that do not resolve to a todo owned by the caller")


# PUBLIC_INTERFACE
class BulkToggleResult(BaseModel):
    updated: List[TaskOut] = Field(..., description="Todos whose completion flag was flipped")
    not_found: List[str] = Field(..., description="Ids that do not resolve to a todo owned by the caller")
    conflicts: List[str] = Field(..., description="Ids modified concurrently; retry with fresh state")
