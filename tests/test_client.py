import httpx
import pytest
from fastapi.testclient import TestClient

from taskboard.client import TodoClient, TodoClientError, TodoClientNotFoundError
from taskboard.main import app


@pytest.fixture
def todo_client():
    return TodoClient(http=TestClient(app))


def failing_client(status_code=500):
    transport = httpx.MockTransport(lambda request: httpx.Response(status_code, json={"error": "x"}))
    return TodoClient(http=httpx.Client(base_url="http://todo.test", transport=transport))


class TestTodoClientAgainstApi:
    def test_crud_cycle(self, todo_client):
        created = todo_client.create_todo({"title": "Buy milk"})
        assert created["completed"] is False

        assert todo_client.list_todos() == [created]
        assert todo_client.get_todo(created["id"]) == created

        updated = todo_client.update_todo(created["id"], {"completed": True})
        assert updated == {**created, "completed": True}

        assert todo_client.delete_todo(created["id"]) is None
        with pytest.raises(TodoClientNotFoundError, match="Todo not found"):
            todo_client.get_todo(created["id"])

    def test_delete_unknown_id_succeeds(self, todo_client):
        todo_client.delete_todo("nope")

    def test_invalid_create_raises(self, todo_client):
        with pytest.raises(TodoClientError, match="Failed to create todo"):
            todo_client.create_todo({"title": ""})


class TestTodoClientErrors:
    @pytest.mark.parametrize(
        "call, message",
        [
            (lambda c: c.list_todos(), "Failed to fetch todos"),
            (lambda c: c.get_todo("1"), "Failed to fetch todo"),
            (lambda c: c.create_todo({"title": "x"}), "Failed to create todo"),
            (lambda c: c.update_todo("1", {"completed": True}), "Failed to update todo"),
            (lambda c: c.delete_todo("1"), "Failed to delete todo"),
        ],
    )
    def test_server_error_raises_operation_failed(self, call, message):
        with pytest.raises(TodoClientError) as info:
            call(failing_client())
        assert str(info.value) == message
        assert not isinstance(info.value, TodoClientNotFoundError)

    def test_only_get_maps_404_to_not_found(self):
        client = failing_client(404)
        with pytest.raises(TodoClientNotFoundError):
            client.get_todo("1")
        with pytest.raises(TodoClientError) as info:
            client.update_todo("1", {"completed": True})
        assert not isinstance(info.value, TodoClientNotFoundError)

    def test_transport_error_is_wrapped(self):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        client = TodoClient(http=httpx.Client(base_url="http://todo.test", transport=httpx.MockTransport(handler)))
        with pytest.raises(TodoClientError, match="Failed to fetch todos"):
            client.list_todos()

    def test_ids_are_escaped_into_one_path_segment(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.url.raw_path))
            return httpx.Response(200, json={"success": True})

        client = TodoClient(http=httpx.Client(base_url="http://todo.test", transport=httpx.MockTransport(handler)))
        client.get_todo("a/b?c#d")
        client.update_todo("a/b?c#d", {"completed": True})
        client.delete_todo("a/b?c#d")
        assert seen == [
            ("GET", b"/api/todos/a%2Fb%3Fc%23d"),
            ("PUT", b"/api/todos/a%2Fb%3Fc%23d"),
            ("DELETE", b"/api/todos/a%2Fb%3Fc%23d"),
        ]

    def test_requires_base_url_or_client(self):
        with pytest.raises(ValueError):
            TodoClient()

    def test_context_manager_closes_own_client(self):
        with TodoClient(base_url="http://todo.test/") as client:
            pass
        assert client._http.is_closed
