import httpx

from tasklist.identity import UserDirectory
from tasklist.main import app, get_user_directory

from .fakes import as_user


def _create(client, user_id, **fields):
    payload = {"title": "task", "priority": "medium", **fields}
    resp = client.post("/tasks", headers=as_user(user_id), json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def test_missing_identity_is_rejected(client):
    resp = client.get("/tasks")
    assert resp.status_code == 401
    assert resp.json()["success"] is False


def test_identity_verified_against_user_service(client):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        if request.url.path == "/users/alice":
            return httpx.Response(200, json={"id": "alice"})
        return httpx.Response(404, json={"detail": "User not found"})

    directory = UserDirectory("http://users.local/", transport=httpx.MockTransport(handler))
    app.dependency_overrides[get_user_directory] = lambda: directory

    assert client.get("/tasks", headers=as_user("alice")).status_code == 200
    assert client.get("/tasks", headers=as_user("mallory")).status_code == 401
    assert seen == ["/users/alice", "/users/mallory"]


def test_user_service_down_is_unauthorized(client):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    directory = UserDirectory("http://users.local", transport=httpx.MockTransport(handler))
    app.dependency_overrides[get_user_directory] = lambda: directory
    resp = client.get("/tasks", headers=as_user("alice"))
    assert resp.status_code == 401


def test_create_validation_is_400(client):
    resp = client.post("/tasks", headers=as_user("u1"), json={"title": "", "priority": "high"})
    assert resp.status_code == 400
    assert resp.json()["success"] is False
    assert resp.json()["message"].startswith("Invalid data")

    resp = client.post("/tasks", headers=as_user("u1"), json={"title": "X", "priority": "whenever"})
    assert resp.status_code == 400


def test_list_meta_and_lenient_filters(client):
    for i in range(3):
        _create(client, "u1", title=f"t{i}", priority="high")
    _create(client, "u1", title="done", priority="low", completed=True)

    resp = client.get(
        "/tasks",
        headers=as_user("u1"),
        params={"page": "0", "limit": "-3", "priority": "bogus", "completed": "perhaps"},
    )
    assert resp.status_code == 200
    assert resp.json()["meta"] == {
        "totalItems": 4,
        "totalPages": 1,
        "currentPage": 1,
        "itemsPerPage": 10,
    }

    resp = client.get("/tasks", headers=as_user("u1"), params={"limit": "2", "page": "2"})
    assert resp.json()["meta"]["totalPages"] == 2
    assert len(resp.json()["data"]) == 2

    resp = client.get("/tasks", headers=as_user("u1"), params={"completed": "true"})
    assert [t["title"] for t in resp.json()["data"]] == ["done"]


def test_update_title_then_immediate_read(client):
    task = _create(client, "u1", title="A")
    assert client.get(f"/tasks/{task['id']}", headers=as_user("u1")).json()["data"]["title"] == "A"

    resp = client.put(f"/tasks/{task['id']}", headers=as_user("u1"), json={"title": "B"})
    assert resp.status_code == 200
    assert client.get(f"/tasks/{task['id']}", headers=as_user("u1")).json()["data"]["title"] == "B"


def test_other_user_gets_404_not_403(client):
    task = _create(client, "u1")
    other = as_user("u2")
    assert client.get(f"/tasks/{task['id']}", headers=other).status_code == 404
    assert client.put(f"/tasks/{task['id']}", headers=other, json={"title": "x"}).status_code == 404
    assert client.delete(f"/tasks/{task['id']}", headers=other).status_code == 404
    assert client.get(f"/tasks/{task['id']}", headers=as_user("u1")).status_code == 200


def test_delete_nonexistent(client):
    resp = client.delete("/tasks/does-not-exist", headers=as_user("u1"))
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Task not found"}


def test_unknown_endpoint_uses_envelope(client):
    resp = client.get("/nope")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Endpoint not found"}


def test_empty_summary(client):
    resp = client.get("/tasks/stats/summary", headers=as_user("fresh"))
    assert resp.json() == {
        "success": True,
        "data": {"total": 0, "completed": 0, "pending": 0, "completionRate": 0},
    }


def test_huge_page_returns_empty_page(client):
    _create(client, "u1")
    resp = client.get("/tasks", headers=as_user("u1"), params={"page": "100000000000000000000"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["data"] == []
    assert body["meta"]["totalItems"] == 1
    assert body["meta"]["totalPages"] == 1


def test_priority_is_case_insensitive(client):
    task = _create(client, "u1", priority="HIGH")
    assert task["priority"] == "high"
    resp = client.get("/tasks", headers=as_user("u1"), params={"priority": "High"})
    assert [t["id"] for t in resp.json()["data"]] == [task["id"]]
