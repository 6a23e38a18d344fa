"""Tests for the user HTTP endpoints."""

from fastapi.testclient import TestClient

from user_directory.api.app import create_app
from user_directory.containers import AppContainer
from user_directory.services.users import UserService
from tests.conftest import FailingDatabase


def _create(client: TestClient, **overrides: object) -> dict[str, object]:
    payload = {"name": "Ann", "email": "ann@ex.com", "age": 29, **overrides}
    response = client.post("/api/users", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Server is running"
    assert "timestamp" in body


def test_index_lists_endpoints(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["endpoints"]["users"]["create"] == "POST /api/users"


def test_create_normalizes_and_fetch_returns_same_values(client: TestClient) -> None:
    response = client.post(
        "/api/users", json={"name": "Ann", "email": "ANN@EX.com", "age": 29.9}
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "User created successfully"
    created = body["data"]
    assert created["email"] == "ann@ex.com"
    assert created["age"] == 29
    assert set(created) == {"id", "name", "email", "age", "createdAt", "updatedAt"}

    fetched = client.get(f"/api/users/{created['id']}")

    assert fetched.status_code == 200
    assert fetched.json()["data"] == created


def test_create_duplicate_email_returns_conflict(client: TestClient) -> None:
    _create(client, email="a@b.com")

    response = client.post(
        "/api/users", json={"name": "Bea", "email": "a@b.com", "age": 31}
    )

    assert response.status_code == 409
    assert response.json() == {"success": False, "message": "Email already exists"}


def test_create_reports_every_validation_error(client: TestClient) -> None:
    response = client.post("/api/users", json={"name": "", "email": "bad", "age": 200})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert len(body["errors"]) == 3


def test_create_with_malformed_json_returns_bad_request(client: TestClient) -> None:
    response = client.post(
        "/api/users",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_get_user_with_malformed_id(client: TestClient) -> None:
    response = client.get("/api/users/abc")

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Invalid user ID"}


def test_get_missing_user(client: TestClient) -> None:
    response = client.get("/api/users/999")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "User not found"}


def test_list_users_with_pagination(client: TestClient) -> None:
    for index in range(5):
        _create(client, email=f"user{index}@ex.com", age=20 + index)

    response = client.get("/api/users", params={"page": 2, "limit": 2})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Users retrieved successfully"
    assert len(body["data"]) == 2
    assert body["pagination"] == {"page": 2, "limit": 2, "total": 5, "totalPages": 3}


def test_list_users_default_pagination(client: TestClient) -> None:
    response = client.get("/api/users")

    assert response.status_code == 200
    body = response.json()
    assert body["data"] == []
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 0, "totalPages": 0}


def test_list_users_filters_by_age(client: TestClient) -> None:
    _create(client, email="a@ex.com", age=29)
    thirty = _create(client, email="b@ex.com", age=30)
    _create(client, email="c@ex.com", age=31)

    response = client.get("/api/users", params={"minAge": 30, "maxAge": 30})

    assert [user["id"] for user in response.json()["data"]] == [thirty["id"]]


def test_list_users_rejects_bad_filters(client: TestClient) -> None:
    response = client.get("/api/users", params={"limit": 0, "page": "x"})

    assert response.status_code == 400
    assert response.json()["errors"] == [
        "page must be a positive integer",
        "limit must be an integer between 1 and 100",
    ]


def test_update_user(client: TestClient) -> None:
    created = _create(client)

    response = client.put(f"/api/users/{created['id']}", json={"name": "  Annie "})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "User updated successfully"
    assert body["data"]["name"] == "Annie"
    assert body["data"]["email"] == created["email"]
    assert body["data"]["createdAt"] == created["createdAt"]


def test_update_to_own_email_with_different_case(client: TestClient) -> None:
    created = _create(client, email="ann@ex.com")

    response = client.put(
        f"/api/users/{created['id']}", json={"email": "  ANN@EX.COM "}
    )

    assert response.status_code == 200
    assert response.json()["data"]["email"] == "ann@ex.com"


def test_update_to_taken_email_conflicts(client: TestClient) -> None:
    _create(client, email="taken@ex.com")
    created = _create(client, email="mine@ex.com")

    response = client.put(
        f"/api/users/{created['id']}", json={"email": "taken@ex.com"}
    )

    assert response.status_code == 409


def test_update_missing_user(client: TestClient) -> None:
    response = client.put("/api/users/999", json={"name": "X"})

    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


def test_update_without_recognized_fields(client: TestClient) -> None:
    created = _create(client)

    response = client.put(f"/api/users/{created['id']}", json={"nickname": "A"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "No fields to update"}


def test_update_with_invalid_fields(client: TestClient) -> None:
    created = _create(client)

    response = client.put(f"/api/users/{created['id']}", json={"age": -3})

    assert response.status_code == 400
    assert response.json()["errors"] == ["Age must be a number between 0 and 150"]


def test_delete_user(client: TestClient) -> None:
    created = _create(client)

    response = client.delete(f"/api/users/{created['id']}")
    again = client.delete(f"/api/users/{created['id']}")

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "User deleted successfully"}
    assert again.status_code == 404


def test_unknown_endpoint(client: TestClient) -> None:
    response = client.get("/api/unknown")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Endpoint not found"}


def test_responses_carry_security_headers(client: TestClient) -> None:
    response = client.get("/health")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_storage_failure_returns_generic_error(container: AppContainer) -> None:
    container.user_service = UserService(FailingDatabase())
    client = TestClient(create_app(container))

    response = client.get("/api/users/1")

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Internal server error"}
    assert "locked" not in response.text


class ExplodingUserService(UserService):
    """User service that fails with an unexpected exception."""

    def get_user_by_id(self, user_id: int):  # type: ignore[no-untyped-def]
        raise RuntimeError("secret detail")


def test_unhandled_exception_returns_generic_error(container: AppContainer) -> None:
    container.user_service = ExplodingUserService(container.database)
    client = TestClient(create_app(container), raise_server_exceptions=False)

    response = client.get("/api/users/1")

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Internal server error"}
    assert "secret" not in response.text
    assert response.headers["X-Frame-Options"] == "DENY"


def test_unsupported_method(client: TestClient) -> None:
    response = client.patch("/api/users/1", json={"name": "X"})

    assert response.status_code == 405
    assert response.json() == {"success": False, "message": "Method not allowed"}


def test_get_user_with_non_decimal_id(client: TestClient) -> None:
    for index in range(10):
        _create(client, email=f"user{index}@ex.com")

    response = client.get("/api/users/1_0")

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Invalid user ID"}
