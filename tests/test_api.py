import uuid

from sqlmodel import Session, select

from taskapi.models import User
from taskapi.security import create_access_token

from conftest import PASSWORD, signup


# ----------------- auth -----------------


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["ok"] is True


def test_signup_returns_token_and_hides_hash(client):
    resp = signup(client, email="New.User@Example.com")
    assert resp.status_code == 201

    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["access_token"]
    assert body["user"]["email"] == "new.user@example.com"
    assert "password_hash" not in body["user"]
    assert "password" not in body["user"]


def test_signup_duplicate_email_conflict(client):
    assert signup(client, email="dup@example.com").status_code == 201
    resp = signup(client, email="DUP@example.com")
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Email already exists"


def test_signup_validation_is_400(client):
    resp = signup(client, password="short")
    assert resp.status_code == 400

    resp = client.post("/auth/signup", json={"email": "not-an-email", "password": PASSWORD})
    assert resp.status_code == 400


def test_login(client):
    signup(client, email="erin@example.com")

    resp = client.post("/auth/login", json={"email": "ERIN@example.com", "password": PASSWORD})
    assert resp.status_code == 200
    assert resp.json()["user"]["email"] == "erin@example.com"


def test_login_failures_are_indistinguishable(client):
    signup(client, email="erin@example.com")

    wrong = client.post("/auth/login", json={"email": "erin@example.com", "password": "wrong-pass"})
    unknown = client.post("/auth/login", json={"email": "ghost@example.com", "password": PASSWORD})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json() == {"detail": "Invalid credentials"}


def test_me(client, auth_headers):
    resp = client.get("/users/me", headers=auth_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["email"] == "carol@example.com"
    assert body["is_active"] is True
    assert "password_hash" not in body


def test_me_requires_valid_token(client):
    assert client.get("/users/me").status_code == 401
    assert client.get("/users/me", headers={"Authorization": "Bearer garbage"}).status_code == 401

    ghost = create_access_token({"sub": str(uuid.uuid4()), "email": "ghost@example.com"})
    assert client.get("/users/me", headers={"Authorization": f"Bearer {ghost}"}).status_code == 401


def test_deactivated_account_token_rejected(client, engine, auth_headers):
    with Session(engine) as session:
        user = session.exec(select(User).where(User.email == "carol@example.com")).one()
        user.is_active = False
        session.add(user)
        session.commit()

    assert client.get("/users/me", headers=auth_headers).status_code == 401
    resp = client.post("/auth/login", json={"email": "carol@example.com", "password": PASSWORD})
    assert resp.status_code == 401


def test_change_password_flow(client, auth_headers):
    resp = client.post(
        "/auth/change-password",
        headers=auth_headers,
        json={"current_password": PASSWORD, "new_password": "another-pass1"},
    )
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}

    old = client.post("/auth/login", json={"email": "carol@example.com", "password": PASSWORD})
    new = client.post("/auth/login", json={"email": "carol@example.com", "password": "another-pass1"})
    assert old.status_code == 401
    assert new.status_code == 200


def test_change_password_errors(client, auth_headers):
    same = client.post(
        "/auth/change-password",
        headers=auth_headers,
        json={"current_password": PASSWORD, "new_password": PASSWORD},
    )
    wrong = client.post(
        "/auth/change-password",
        headers=auth_headers,
        json={"current_password": "nope-nope", "new_password": "another-pass1"},
    )
    assert same.status_code == 400
    assert wrong.status_code == 401


# ----------------- tasks -----------------


def _create(client, headers, **body):
    body.setdefault("title", "Task")
    resp = client.post("/tasks", headers=headers, json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_tasks_require_auth(client):
    assert client.get("/tasks").status_code == 401
    assert client.post("/tasks", json={"title": "x"}).status_code == 401


def test_create_and_get_task(client, auth_headers):
    created = _create(client, auth_headers, title="Write docs", priority="high", due_date="2024-12-31T23:59:59.000Z")
    assert created["status"] == "pending"
    assert created["priority"] == "high"
    assert created["completed_at"] is None
    assert created["due_date"].startswith("2024-12-31T23:59:59")

    resp = client.get(f"/tasks/{created['id']}", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == created


def test_create_task_validation(client, auth_headers):
    assert client.post("/tasks", headers=auth_headers, json={"title": ""}).status_code == 400
    assert client.post("/tasks", headers=auth_headers, json={"title": "x" * 256}).status_code == 400
    assert client.post("/tasks", headers=auth_headers, json={"title": "x", "priority": "meh"}).status_code == 400
    assert client.post("/tasks", headers=auth_headers, json={"title": "x", "due_date": "soon"}).status_code == 400


def test_list_tasks_pagination(client, auth_headers):
    for i in range(12):
        _create(client, auth_headers, title=f"Task {i}")

    resp = client.get("/tasks", headers=auth_headers, params={"page": 2, "limit": 5})
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 12
    assert body["total_pages"] == 3
    assert body["page"] == 2
    assert body["limit"] == 5
    assert len(body["items"]) == 5


def test_list_tasks_filters(client, auth_headers):
    _create(client, auth_headers, title="Pay rent", due_date="2024-12-31T10:00:00Z")
    _create(client, auth_headers, title="Pay taxes", due_date="2025-01-01T00:00:00Z")
    _create(client, auth_headers, title="Walk dog", description="rent a leash")

    by_date = client.get("/tasks", headers=auth_headers, params={"due_date": "2024-12-31"}).json()
    assert [t["title"] for t in by_date["items"]] == ["Pay rent"]

    by_search = client.get("/tasks", headers=auth_headers, params={"search": "RENT"}).json()
    assert {t["title"] for t in by_search["items"]} == {"Pay rent", "Walk dog"}

    by_status = client.get("/tasks", headers=auth_headers, params={"status": "completed"}).json()
    assert by_status["total"] == 0


def test_list_tasks_bad_parameters(client, auth_headers):
    for params in ({"page": 0}, {"limit": 101}, {"limit": 0}, {"status": "done"}, {"due_date": "tomorrow"}, {"page": "x"}):
        resp = client.get("/tasks", headers=auth_headers, params=params)
        assert resp.status_code == 400, params


def test_update_task_roundtrip(client, auth_headers):
    created = _create(client, auth_headers, title="Old", description="keep")

    resp = client.put(f"/tasks/{created['id']}", headers=auth_headers, json={"title": "X"})
    assert resp.status_code == 200

    fetched = client.get(f"/tasks/{created['id']}", headers=auth_headers).json()
    assert fetched["title"] == "X"
    assert fetched["updated_at"] > created["updated_at"]
    for key in ("description", "status", "priority", "due_date", "completed_at", "created_at"):
        assert fetched[key] == created[key]


def test_update_task_invalid_status(client, auth_headers):
    created = _create(client, auth_headers)
    resp = client.put(f"/tasks/{created['id']}", headers=auth_headers, json={"status": "archived"})
    assert resp.status_code == 400
    assert resp.json()["detail"][0]["loc"][-1] == "status"

    resp = client.put(f"/tasks/{created['id']}", headers=auth_headers, json={"priority": "meh"})
    assert resp.status_code == 400
    assert resp.json()["detail"][0]["loc"][-1] == "priority"

    fetched = client.get(f"/tasks/{created['id']}", headers=auth_headers).json()
    assert fetched["status"] == "pending"
    assert fetched["priority"] == "medium"


def test_login_with_overlong_password_is_401(client):
    signup(client, email="erin@example.com")

    resp = client.post("/auth/login", json={"email": "erin@example.com", "password": "x" * 100})
    assert resp.status_code == 401
    assert resp.json() == {"detail": "Invalid credentials"}


def test_list_tasks_edge_values_are_400(client, auth_headers):
    for params in ({"due_date": "9999-12-31"}, {"page": 10**18}):
        resp = client.get("/tasks", headers=auth_headers, params=params)
        assert resp.status_code == 400, params
        assert resp.json()["detail"] in ("Invalid due date format", "Invalid pagination parameters")


def test_complete_task(client, auth_headers):
    created = _create(client, auth_headers)

    first = client.patch(f"/tasks/{created['id']}/complete", headers=auth_headers)
    assert first.status_code == 200
    assert first.json()["status"] == "completed"
    assert first.json()["completed_at"] is not None

    second = client.patch(f"/tasks/{created['id']}/complete", headers=auth_headers)
    assert second.status_code == 400
    assert second.json()["detail"] == "Task is already completed"

    fetched = client.get(f"/tasks/{created['id']}", headers=auth_headers).json()
    assert fetched["completed_at"] == first.json()["completed_at"]


def test_delete_task(client, auth_headers):
    created = _create(client, auth_headers)

    resp = client.delete(f"/tasks/{created['id']}", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == {"message": "Task deleted successfully", "id": created["id"]}

    assert client.get(f"/tasks/{created['id']}", headers=auth_headers).status_code == 404


def test_tasks_are_isolated_between_users(client, auth_headers):
    created = _create(client, auth_headers, title="private")

    other = signup(client, email="mallory@example.com").json()
    other_headers = {"Authorization": f"Bearer {other['access_token']}"}
    url = f"/tasks/{created['id']}"

    assert client.get(url, headers=other_headers).status_code == 404
    assert client.put(url, headers=other_headers, json={"title": "mine now"}).status_code == 404
    assert client.patch(f"{url}/complete", headers=other_headers).status_code == 404
    assert client.delete(url, headers=other_headers).status_code == 404
    assert client.get("/tasks", headers=other_headers).json()["total"] == 0

    assert client.get(url, headers=auth_headers).json()["title"] == "private"


def test_task_id_must_be_uuid(client, auth_headers):
    assert client.get("/tasks/not-a-uuid", headers=auth_headers).status_code == 400


def test_stats_endpoint(client, auth_headers):
    _create(client, auth_headers, title="late", due_date="2000-01-01T00:00:00Z")
    _create(client, auth_headers, title="future", due_date="2999-01-01T00:00:00Z")
    done = _create(client, auth_headers, title="done", due_date="2000-01-01T00:00:00Z")
    client.patch(f"/tasks/{done['id']}/complete", headers=auth_headers)
    client.put(f"/tasks/{_create(client, auth_headers)['id']}", headers=auth_headers, json={"status": "in_progress"})

    resp = client.get("/tasks/stats", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == {"total": 4, "pending": 2, "in_progress": 1, "completed": 1, "overdue": 1}
