import pytest

from todo_api.db import SQLiteRepository
from todo_api.errors import ConflictError
from todo_api.repositories import get_repository
from todo_api.schemas import TaskCreate, TaskUpdate
from todo_api.service import TaskService
from todo_api.settings import Settings


def new_task(title="Task", owner_id="alice", completed=False):
    return {
        "title": title,
        "description": None,
        "completed": completed,
        "owner_id": owner_id,
        "version": 1,
    }


@pytest.fixture
def sqlite_repo(tmp_path):
    return SQLiteRepository(str(tmp_path / "nested" / "todos.db"))


class TestSQLiteRepository:
    def test_create_and_find_by_id(self, sqlite_repo):
        created = sqlite_repo.create_task(new_task("Read book"))
        fetched = sqlite_repo.find_task_by_id(created["id"])
        assert fetched == created
        assert fetched["completed"] is False
        assert fetched["version"] == 1
        assert sqlite_repo.find_task_by_id("missing") is None

    def test_find_many_is_owner_scoped_in_insertion_order(self, sqlite_repo):
        first = sqlite_repo.create_task(new_task("z-first"))
        sqlite_repo.create_task(new_task("other", owner_id="bob"))
        second = sqlite_repo.create_task(new_task("a-second", completed=True))

        assert [t["id"] for t in sqlite_repo.find_many_tasks("alice")] == [first["id"], second["id"]]
        assert [t["id"] for t in sqlite_repo.find_many_tasks("alice", completed=True)] == [second["id"]]
        assert [t["id"] for t in sqlite_repo.find_many_tasks("alice", completed=False)] == [first["id"]]

    def test_conditional_update_matches_only_expected_version(self, sqlite_repo):
        task = sqlite_repo.create_task(new_task())
        updated = sqlite_repo.update_task(task["id"], {"title": "new", "version": 2}, expected_version=1)
        assert updated["title"] == "new"
        assert updated["version"] == 2

        assert sqlite_repo.update_task(task["id"], {"title": "stale", "version": 2}, expected_version=1) is None
        assert sqlite_repo.find_task_by_id(task["id"])["title"] == "new"
        assert sqlite_repo.update_task("missing", {"version": 2}, expected_version=1) is None

    def test_update_rejects_unknown_fields(self, sqlite_repo):
        task = sqlite_repo.create_task(new_task())
        with pytest.raises(ValueError):
            sqlite_repo.update_task(task["id"], {"owner_id": "bob"}, expected_version=1)

    def test_find_by_ids_and_delete_many(self, sqlite_repo):
        a = sqlite_repo.create_task(new_task("a"))
        b = sqlite_repo.create_task(new_task("b", owner_id="bob"))

        found = sqlite_repo.find_tasks_by_ids([a["id"], b["id"], "missing"])
        assert set(found) == {a["id"], b["id"]}

        assert sqlite_repo.delete_many_tasks([a["id"], "missing"]) == 1
        assert sqlite_repo.find_task_by_id(a["id"]) is None
        assert sqlite_repo.delete_many_tasks([]) == 0

    def test_delete_task(self, sqlite_repo):
        task = sqlite_repo.create_task(new_task())
        assert sqlite_repo.delete_task(task["id"]) is True
        assert sqlite_repo.delete_task(task["id"]) is False

    def test_transaction_commits_all(self, sqlite_repo):
        def work(uow):
            return [uow.create_task(new_task(t)) for t in ("A", "B")]

        created = sqlite_repo.run_transaction(work)
        assert [t["title"] for t in sqlite_repo.find_many_tasks("alice")] == ["A", "B"]
        assert [t["id"] for t in created] == [t["id"] for t in sqlite_repo.find_many_tasks("alice")]

    def test_transaction_rolls_back_on_error(self, sqlite_repo):
        with pytest.raises(RuntimeError):
            with sqlite_repo.transaction() as uow:
                uow.create_task(new_task("A"))
                raise RuntimeError("boom")
        assert sqlite_repo.find_many_tasks("alice") == []


class TestServiceOverSQLite:
    def test_version_flow_and_bulk_delete(self, sqlite_repo):
        service = TaskService(sqlite_repo)
        mine = service.create(TaskCreate(title="mine"), "alice")
        theirs = service.create(TaskCreate(title="theirs"), "bob")

        service.update(mine["id"], TaskUpdate(version=1, completed=True), "alice")
        with pytest.raises(ConflictError):
            service.update(mine["id"], TaskUpdate(version=1, completed=False), "alice")
        assert sqlite_repo.find_task_by_id(mine["id"])["version"] == 2

        result = service.bulk_delete([mine["id"], theirs["id"]], "alice")
        assert result.deleted == [mine["id"]]
        assert result.not_found == [theirs["id"]]
        assert sqlite_repo.find_task_by_id(theirs["id"]) is not None


def test_get_repository_selects_backend(tmp_path):
    sqlite_settings = Settings(persistence_backend="sqlite", sqlite_db_path=str(tmp_path / "t.db"))
    assert isinstance(get_repository(sqlite_settings), SQLiteRepository)
    assert not isinstance(get_repository(Settings()), SQLiteRepository)
