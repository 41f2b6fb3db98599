from conftest import API_KEY, bearer

from pinmap.database import SessionLocal
from pinmap.models.location_update import LocationUpdate


def test_list_users_newest_first_without_passwords(client, register):
    first, token = register(name="First", email="first@example.com")
    second, _ = register(name="Second", email="second@example.com")

    response = client.get("/users", headers=bearer(token))
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["count"] == 2
    assert [user["id"] for user in data["users"]] == [second["id"], first["id"]]
    assert all("password" not in user for user in data["users"])
    assert all(user["pinned"] is False for user in data["users"])


def test_get_user_and_missing_user(client, register):
    user, token = register()

    response = client.get(f"/users/{user['id']}", headers=bearer(token))
    assert response.status_code == 200
    assert response.json()["data"]["user"]["email"] == user["email"]

    response = client.get("/users/does-not-exist", headers=bearer(token))
    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


def test_update_applies_only_present_fields(client, register):
    user, token = register(name="Alice", email="alice@example.com")

    response = client.put(f"/users/{user['id']}", headers=bearer(token), json={"city": "Paris"})
    assert response.status_code == 200
    updated = response.json()["data"]["user"]
    assert updated["city"] == "Paris"
    assert updated["name"] == "Alice"
    assert updated["email"] == "alice@example.com"


def test_update_with_no_fields_is_invalid(client, register):
    user, token = register()

    response = client.put(f"/users/{user['id']}", headers=bearer(token), json={})
    assert response.status_code == 400
    assert response.json()["message"] == "No valid fields to update"


def test_update_email_collision_conflicts(client, register):
    user, token = register(name="Alice", email="alice@example.com")
    register(name="Bob", email="bob@example.com")

    response = client.put(f"/users/{user['id']}", headers=bearer(token), json={"email": "bob@example.com"})
    assert response.status_code == 409

    response = client.put(f"/users/{user['id']}", headers=bearer(token), json={"email": "alice@example.com"})
    assert response.status_code == 200


def test_update_missing_user_is_not_found(client):
    response = client.put("/users/missing", headers=bearer(API_KEY), json={"name": "Nobody"})
    assert response.status_code == 404


def test_update_coordinates_records_history(client, register):
    user, token = register()

    response = client.put(
        f"/users/{user['id']}", headers=bearer(token), json={"coordinates": "-0.1278, 51.5074", "city": "London"}
    )
    assert response.status_code == 200
    assert response.json()["data"]["user"]["location"] == [-0.1278, 51.5074]

    response = client.get(f"/users/{user['id']}/locations", headers=bearer(token))
    data = response.json()["data"]
    assert data["count"] == 1
    assert data["locations"][0]["city"] == "London"


def test_update_rejects_malformed_coordinates(client, register):
    user, token = register()

    response = client.put(f"/users/{user['id']}", headers=bearer(token), json={"coordinates": "200, 0"})
    assert response.status_code == 400


def test_non_owner_cannot_update_or_delete(client, register, admin):
    alice, _ = register(name="Alice", email="alice@example.com")
    _, bob_token = register(name="Bob", email="bob@example.com")
    _, admin_token = admin

    assert client.put(f"/users/{alice['id']}", headers=bearer(bob_token), json={"name": "Hacked"}).status_code == 403
    assert client.delete(f"/users/{alice['id']}", headers=bearer(bob_token)).status_code == 403
    assert client.put(f"/users/{alice['id']}", headers=bearer(admin_token), json={"name": "Alicia"}).status_code == 200


def test_delete_cascades_to_history(client, register):
    user, token = register()
    for raw in ("1, 1", "2, 2", "3, 3"):
        client.post("/location/update", headers=bearer(token), json={"coordinates": raw})

    response = client.delete(f"/users/{user['id']}", headers=bearer(API_KEY))
    assert response.status_code == 200

    session = SessionLocal()
    try:
        assert session.query(LocationUpdate).filter(LocationUpdate.user_id == user["id"]).count() == 0
    finally:
        session.close()

    response = client.get(f"/location/history/{user['id']}", headers=bearer(API_KEY))
    assert response.status_code == 404
    assert client.delete(f"/users/{user['id']}", headers=bearer(API_KEY)).status_code == 404
