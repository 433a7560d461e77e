import pytest
from fastapi.testclient import TestClient

from taskboard.board import (
    BoardState,
    MutationKind,
    MutationStatus,
    TodoBoard,
    apply_delete,
    apply_update,
    commit,
    rollback,
)
from taskboard.client import TodoClient, TodoClientError
from taskboard.main import app


class FlakyClient(TodoClient):
    """Delegates to the API until told to fail; records board state at call time."""

    def __init__(self):
        super().__init__(http=TestClient(app))
        self.fail = False
        self.board = None
        self.seen = []

    def _check(self):
        self.seen.append(self.board.state if self.board else None)
        if self.fail:
            raise TodoClientError("Failed")

    def create_todo(self, data):
        self._check()
        return super().create_todo(data)

    def update_todo(self, todo_id, data):
        self._check()
        return super().update_todo(todo_id, data)

    def delete_todo(self, todo_id):
        self._check()
        return super().delete_todo(todo_id)


@pytest.fixture
def client():
    return FlakyClient()


@pytest.fixture
def board(client):
    b = TodoBoard(client)
    client.board = b
    return b


def make_todo(todo_id, **extra):
    return {
        "id": todo_id,
        "title": todo_id,
        "description": None,
        "completed": False,
        "task_date": "2030-01-01",
        "task_time": None,
        "created_at": "2030-01-01T00:00:00+00:00",
        **extra,
    }


class TestOptimisticCommit:
    def test_add_shows_temp_record_then_server_record(self, board, client):
        created = board.add("Buy milk")
        # while the call was in flight the board held a temporary record
        in_flight = client.seen[-1]
        assert in_flight.todos[0]["id"].startswith("temp-")
        assert in_flight.pending[0].kind is MutationKind.CREATE

        assert board.state.todos == (created,)
        assert board.state.mutations[-1].status is MutationStatus.COMMITTED
        assert board.state.pending == ()

    def test_toggle_and_tabs(self, board):
        a = board.add("a")
        board.add("b")
        board.toggle(a["id"])
        assert [t["title"] for t in board.completed()] == ["a"]
        assert [t["title"] for t in board.pending()] == ["b"]
        assert board.counts() == {"pending": 1, "completed": 1}

    def test_remove(self, board, client):
        todo = board.add("bye")
        board.remove(todo["id"])
        assert client.seen[-1].todos == ()
        assert board.state.todos == ()
        assert board.refresh().todos == ()

    def test_refresh_replaces_with_server_list(self, board, client):
        client.create_todo({"title": "from elsewhere"})
        state = board.refresh()
        assert [t["title"] for t in state.todos] == ["from elsewhere"]

    def test_settled_mutations_do_not_accumulate(self, board, client):
        todo = board.add("a")
        for _ in range(50):
            board.toggle(todo["id"])
        board.refresh()
        assert len(board.state.mutations) == 1
        assert board.state.mutations[0].status is MutationStatus.COMMITTED

        client.fail = True
        with pytest.raises(TodoClientError):
            board.toggle(todo["id"])
        assert len(board.state.mutations) == 1
        assert board.state.mutations[0].status is MutationStatus.ROLLED_BACK

    def test_on_change_receives_every_state(self, client):
        states = []
        board = TodoBoard(client, on_change=states.append)
        board.add("x")
        assert len(states) == 2
        assert states[0].pending and not states[1].pending


class TestOptimisticRollback:
    def test_failed_add_removes_temp_record(self, board, client):
        client.fail = True
        with pytest.raises(TodoClientError):
            board.add("lost")
        assert board.state.todos == ()
        assert board.state.mutations[-1].status is MutationStatus.ROLLED_BACK

    def test_failed_toggle_restores_completed(self, board, client):
        todo = board.add("x")
        client.fail = True
        with pytest.raises(TodoClientError):
            board.toggle(todo["id"])
        assert client.seen[-1].find(todo["id"])["completed"] is True
        assert board.state.find(todo["id"]) == todo

    def test_failed_remove_restores_position(self, board, client):
        for title in ("a", "b", "c"):
            board.add(title)
        middle = board.state.todos[1]
        client.fail = True
        with pytest.raises(TodoClientError):
            board.remove(middle["id"])
        assert board.state.todos[1] == middle

    def test_blank_title_rejected_before_any_call(self, board, client):
        with pytest.raises(ValueError):
            board.add("   ")
        todo = board.add("ok")
        with pytest.raises(ValueError):
            board.edit(todo["id"], title="")
        assert len(client.seen) == 1

    def test_unknown_field_rejected(self, board):
        todo = board.add("ok")
        with pytest.raises(TypeError):
            board.edit(todo["id"], id="other")


class TestTransitions:
    def test_rollback_only_reverts_its_own_fields(self):
        state = BoardState(todos=(make_todo("1"),))
        state, first = apply_update(state, "1", {"title": "renamed"})
        state, second = apply_update(state, "1", {"completed": True})
        state = rollback(state, first.id)
        todo = state.find("1")
        assert todo["title"] == "1"
        assert todo["completed"] is True
        assert state.mutation(second.id).status is MutationStatus.PENDING

    def test_settling_keeps_in_flight_and_latest_settled(self):
        state = BoardState(todos=(make_todo("1"), make_todo("2")))
        state, first = apply_update(state, "1", {"completed": True})
        state, second = apply_update(state, "2", {"completed": True})
        state, third = apply_delete(state, "2")
        state = commit(state, first.id, {**make_todo("1"), "completed": True})
        state = rollback(state, third.id)
        assert [m.id for m in state.mutations] == [second.id, third.id]
        assert [m.status for m in state.mutations] == [MutationStatus.PENDING, MutationStatus.ROLLED_BACK]

    def test_rollback_delete_does_not_duplicate(self):
        state = BoardState(todos=(make_todo("1"), make_todo("2")))
        state, m = apply_delete(state, "1")
        state = rollback(state, m.id)
        assert [t["id"] for t in state.todos] == ["1", "2"]
        state = rollback(state, m.id)
        assert [t["id"] for t in state.todos] == ["1", "2"]

    def test_transitions_do_not_mutate_previous_state(self):
        before = BoardState(todos=(make_todo("1"),))
        after, _ = apply_update(before, "1", {"completed": True})
        assert before.find("1")["completed"] is False
        assert after.find("1")["completed"] is True

    def test_unknown_todo(self):
        with pytest.raises(KeyError):
            apply_delete(BoardState(), "missing")
