from datetime import datetime

import pytest

from todo_api import guard
from todo_api.errors import ForbiddenError, NotFoundError


def make_task(owner_id="alice"):
    now = datetime.now()
    return {
        "id": "t1",
        "title": "Task",
        "description": None,
        "completed": False,
        "owner_id": owner_id,
        "version": 1,
        "created_at": now,
        "updated_at": now,
    }


class TestCheck:
    def test_missing_record_is_not_found(self):
        result = guard.check(None, "alice")
        assert result.outcome is guard.Outcome.NOT_FOUND
        assert result.record is None
        assert not result.ok

    def test_foreign_record_is_forbidden(self):
        result = guard.check(make_task(owner_id="bob"), "alice")
        assert result.outcome is guard.Outcome.FORBIDDEN
        assert result.record is None

    def test_owned_record_is_ok_for_both_access_modes(self):
        task = make_task()
        for access in (guard.Access.READ, guard.Access.WRITE):
            result = guard.check(task, "alice", access)
            assert result.ok
            assert result.record is task

    def test_owner_comparison_is_exact(self):
        assert guard.check(make_task(owner_id="Alice"), "alice").outcome is guard.Outcome.FORBIDDEN


class TestAuthorize:
    def test_raises_not_found_before_ownership(self):
        with pytest.raises(NotFoundError):
            guard.authorize(None, "alice", guard.Access.WRITE)

    def test_raises_forbidden_for_other_owner(self):
        with pytest.raises(ForbiddenError):
            guard.authorize(make_task(owner_id="bob"), "alice")

    def test_returns_owned_record(self):
        task = make_task()
        assert guard.authorize(task, "alice") is task


class TestAccessModes:
    @pytest.mark.parametrize("access", [guard.Access.READ, guard.Access.WRITE])
    def test_both_modes_apply_the_same_ownership_rule(self, access):
        assert guard.check(make_task(), "alice", access).ok
        assert guard.check(make_task(owner_id="bob"), "alice", access).outcome is guard.Outcome.FORBIDDEN
        assert guard.check(None, "alice", access).outcome is guard.Outcome.NOT_FOUND
