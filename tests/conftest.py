import pytest
from fastapi.testclient import TestClient

from todo_api.main import create_app
from todo_api.repositories import InMemoryRepository
from todo_api.service import TaskService
from todo_api.settings import Settings


@pytest.fixture
def repo():
    # Fresh store per test; nothing is shared between tests.
    return InMemoryRepository()


@pytest.fixture
def service(repo):
    return TaskService(repo)


@pytest.fixture
def client(repo):
    app = create_app(Settings(), repository=repo)
    return TestClient(app)
