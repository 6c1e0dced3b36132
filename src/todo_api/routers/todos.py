from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, Request, status

from ..auth import get_caller_id
from ..schemas import (
    BulkCreate,
    BulkDeleteResult,
    BulkIds,
    BulkToggleResult,
    TaskCreate,
    TaskFilter,
    TaskOut,
    TaskUpdate,
)
from ..service import TaskService

router = APIRouter(
    prefix="/api/v1/todos",
    tags=["todos"],
)

_ERRORS = {
    403: {"description": "Todo belongs to another user"},
    404: {"description": "Todo not found"},
}


def _get_service(request: Request) -> TaskService:
    """
    Dependency building a TaskService over the app's repository.
    """
    return TaskService(request.app.state.repository)


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item owned by the caller and return it with its id and version.",
    responses={
        201: {"description": "Todo created successfully"},
        400: {"description": "Validation error or blank title"},
    },
)
def create_todo(
    payload: TaskCreate,
    caller_id: str = Depends(get_caller_id),
    service: TaskService = Depends(_get_service),
) -> TaskOut:
    return TaskOut(**service.create(payload, caller_id))


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[TaskOut],
    summary="List Todos",
    description="List the caller's todos in creation order. filter: all, completed or active.",
)
def list_todos(
    filter: TaskFilter = Query(TaskFilter.ALL, description="all, completed or active"),
    caller_id: str = Depends(get_caller_id),
    service: TaskService = Depends(_get_service),
) -> List[TaskOut]:
    return [TaskOut(**t) for t in service.find_all(caller_id, filter)]


# PUBLIC_INTERFACE
@router.post(
    "/bulk",
    response_model=List[TaskOut],
    status_code=status.HTTP_201_CREATED,
    summary="Bulk Create Todos",
    description="Create several todos atomically. A blank title anywhere rejects the whole batch.",
    responses={400: {"description": "A title is blank; nothing was created"}},
)
def bulk_create_todos(
    payload: BulkCreate,
    caller_id: str = Depends(get_caller_id),
    service: TaskService = Depends(_get_service),
) -> List[TaskOut]:
    return [TaskOut(**t) for t in service.bulk_create(payload.todos, caller_id)]


# PUBLIC_INTERFACE
@router.post(
    "/bulk-delete",
    response_model=BulkDeleteResult,
    summary="Bulk Delete Todos",
    description="Delete the caller's todos among ids; other ids are reported in not_found.",
)
def bulk_delete_todos(
    payload: BulkIds,
    caller_id: str = Depends(get_caller_id),
    service: TaskService = Depends(_get_service),
) -> BulkDeleteResult:
    return service.bulk_delete(payload.ids, caller_id)


# PUBLIC_INTERFACE
@router.post(
    "/bulk-toggle",
    response_model=BulkToggleResult,
    summary="Bulk Toggle Todos",
    description="Flip the completion flag of the caller's todos among ids.",
)
def bulk_toggle_todos(
    payload: BulkIds,
    caller_id: str = Depends(get_caller_id),
    service: TaskService = Depends(_get_service),
) -> BulkToggleResult:
    return service.bulk_toggle(payload.ids, caller_id)


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TaskOut,
    summary="Get Todo",
    description="Get a single Todo item by ID.",
    responses=_ERRORS,
)
def get_todo(
    todo_id: str,
    caller_id: str = Depends(get_caller_id),
    service: TaskService = Depends(_get_service),
) -> TaskOut:
    return TaskOut(**service.find_one(todo_id, caller_id))


# PUBLIC_INTERFACE
@router.patch(
    "/{todo_id}",
    response_model=TaskOut,
    summary="Update Todo",
    description=(
        "Partially update a Todo item. The body must carry the version the client last read; "
        "a stale or missing version is rejected with 409."
    ),
    responses={**_ERRORS, 409: {"description": "Version conflict"}},
)
def patch_todo(
    todo_id: str,
    payload: TaskUpdate,
    caller_id: str = Depends(get_caller_id),
    service: TaskService = Depends(_get_service),
) -> TaskOut:
    return TaskOut(**service.update(todo_id, payload, caller_id))


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Todo",
    description="Permanently delete a Todo item by ID.",
    responses=_ERRORS,
)
def delete_todo(
    todo_id: str,
    caller_id: str = Depends(get_caller_id),
    service: TaskService = Depends(_get_service),
) -> None:
    service.remove(todo_id, caller_id)
    return None
