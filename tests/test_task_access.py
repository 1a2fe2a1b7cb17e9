# test_task_access.py
def test_owner_or_admin_scenario(client, admin_and_user, api_create):
    a, b = admin_and_user
    assert a["user"]["role"] == "admin"
    assert b["user"]["role"] == "user"

    t1 = api_create(a["headers"], "T1")
    r = client.get(f"/tasks/{t1['id']}", headers=b["headers"])
    assert r.status_code == 403
    assert r.json() == {"status": "error", "message": "You are not authorized to view this task"}
    assert client.get(f"/tasks/{t1['id']}", headers=a["headers"]).status_code == 200

    t2 = api_create(b["headers"], "T2")

    a_list = client.get("/tasks", headers=a["headers"]).json()["data"]
    assert {t["id"] for t in a_list} == {t1["id"], t2["id"]}

    b_list = client.get("/tasks", headers=b["headers"]).json()["data"]
    assert [t["id"] for t in b_list] == [t2["id"]]


def test_admin_listing_embeds_owner(client, admin_and_user, api_create):
    a, b = admin_and_user
    api_create(b["headers"], "from bob")

    admin_items = client.get("/tasks", headers=a["headers"]).json()["data"]
    assert admin_items[0]["owner"]["email"] == "bob@example.com"

    user_items = client.get("/tasks", headers=b["headers"]).json()["data"]
    assert "owner" not in user_items[0]


def test_non_owner_is_forbidden(client, register, api_create):
    register()  # burns the admin slot
    owner = register()
    other = register()
    t = api_create(owner["headers"], "private")

    r = client.put(f"/tasks/{t['id']}", json={"title": "hijack"}, headers=other["headers"])
    assert r.status_code == 403
    assert r.json()["message"] == "You are not authorized to update this task"

    r = client.delete(f"/tasks/{t['id']}", headers=other["headers"])
    assert r.status_code == 403
    assert r.json()["message"] == "You are not authorized to delete this task"

    # still intact for the owner
    r = client.get(f"/tasks/{t['id']}", headers=owner["headers"])
    assert r.status_code == 200
    assert r.json()["data"]["title"] == "private"


def test_forbidden_comes_before_validation(client, register, api_create):
    register()
    owner = register()
    other = register()
    t = api_create(owner["headers"], "private")
    r = client.put(f"/tasks/{t['id']}", json={"title": ""}, headers=other["headers"])
    assert r.status_code == 403


def test_admin_can_manage_any_task(client, admin_and_user, api_create):
    a, b = admin_and_user
    t = api_create(b["headers"], "bob's")

    r = client.put(f"/tasks/{t['id']}", json={"completed": True}, headers=a["headers"])
    assert r.status_code == 200
    assert r.json()["data"]["completed"] is True
    assert r.json()["data"]["owner_id"] == b["user"]["id"]

    assert client.delete(f"/tasks/{t['id']}", headers=a["headers"]).status_code == 200
    assert client.get(f"/tasks/{t['id']}", headers=b["headers"]).status_code == 404


def test_missing_task_is_404_even_for_non_owner(client, admin_and_user):
    _, b = admin_and_user
    r = client.get("/tasks/424242", headers=b["headers"])
    assert r.status_code == 404
    assert r.json() == {"status": "error", "message": "Task not found"}


def test_unexpected_errors_are_500_without_details(register, monkeypatch):
    from fastapi.testclient import TestClient
    from taskmanager_app import tasks
    from taskmanager_app.main import app

    u = register()

    def boom(db, actor):
        raise RuntimeError("secret internals")

    monkeypatch.setattr(tasks, "list_tasks", boom)
    with TestClient(app, raise_server_exceptions=False) as c:
        r = c.get("/tasks", headers=u["headers"])
    assert r.status_code == 500
    assert r.json() == {"status": "error", "message": "An unexpected error occurred"}
    assert "secret internals" not in r.text


def test_task_id_beyond_integer_range_is_404(client, register):
    u = register()
    huge = "99999999999999999999999"
    for method in ("get", "delete"):
        r = getattr(client, method)(f"/tasks/{huge}", headers=u["headers"])
        assert r.status_code == 404, r.text
        assert r.json() == {"status": "error", "message": "Task not found"}
    r = client.put(f"/tasks/{huge}", json={"title": "x"}, headers=u["headers"])
    assert r.status_code == 404
