"""HTTP tests: guard chain, status codes and response shapes through FastAPI's TestClient."""

import unittest
from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import Settings, get_settings
from app.core.database import build_engine, get_db, init_db
from app.core.security import build_claims, encode_token, hash_password
from app.main import create_app
from app.models import Role
from app.repositories import UserRepository
from app.services.events import EventPublisher


class RecordingPublisher(EventPublisher):
    def __init__(self) -> None:
        self.events: list[tuple[str, str, dict[str, Any]]] = []

    def emit(self, topic: str, key: str, value: dict[str, Any]) -> None:
        self.events.append((topic, key, value))


def _settings(**overrides: object) -> Settings:
    values = {
        "JWT_SECRET": "test-access-secret",
        "REFRESH_TOKEN_SECRET": "test-refresh-secret",
        "BCRYPT_ROUNDS": 4,
        "DATABASE_URL": "sqlite://",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class ApiTestCase(unittest.TestCase):
    """Fresh app, in-memory database and recording publisher per test."""

    settings_overrides: dict[str, Any] = {}

    def setUp(self) -> None:
        self.settings = _settings(**self.settings_overrides)
        engine = build_engine("sqlite://")
        init_db(engine)
        self.SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

        def override_get_db() -> Generator[Session, None, None]:
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        self.publisher = RecordingPublisher()
        self.app = create_app(publisher=self.publisher)
        self.app.dependency_overrides[get_db] = override_get_db
        self.app.dependency_overrides[get_settings] = lambda: self.settings
        self.client = TestClient(self.app)

    def signup(self, email: str = "a@example.com", password: str = "password123") -> dict:
        response = self.client.post("/auth/signup", json={"email": email, "password": password})
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()

    def user_id(self, email: str) -> int:
        db = self.SessionLocal()
        try:
            return UserRepository(db).find_by_email(email).id
        finally:
            db.close()

    def set_role(self, email: str, role: Role) -> None:
        db = self.SessionLocal()
        try:
            users = UserRepository(db)
            user = users.find_by_email(email)
            user.role = role.value
            users.save(user)
        finally:
            db.close()

    def create_admin(self, email: str = "admin@example.com") -> dict:
        db = self.SessionLocal()
        try:
            UserRepository(db).create(
                email, hash_password("adminpass1", rounds=4), now=datetime.now(UTC), role=Role.ADMIN
            )
        finally:
            db.close()
        response = self.client.post("/auth/login", json={"email": email, "password": "adminpass1"})
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()


class TestAuthEndpoints(ApiTestCase):
    def test_signup_then_login(self) -> None:
        self.signup()
        response = self.client.post(
            "/auth/login", json={"email": "a@example.com", "password": "password123"}
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(set(body), {"access_token", "refresh_token"})
        self.assertNotEqual(body["access_token"], body["refresh_token"])

    def test_signup_trims_whitespace(self) -> None:
        self.signup(email="  a@example.com ", password="  password123  ")
        response = self.client.post(
            "/auth/login", json={"email": "a@example.com", "password": "password123"}
        )
        self.assertEqual(response.status_code, 200)

    def test_signup_duplicate_conflict(self) -> None:
        self.signup()
        response = self.client.post(
            "/auth/signup", json={"email": "a@example.com", "password": "password456"}
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(len(self.publisher.events), 1)

    def test_signup_validation_errors(self) -> None:
        bad_bodies = [
            {"email": "not-an-email", "password": "password123"},
            {"email": "a@example.com", "password": "short"},
            {"email": "a@example.com", "password": "x" * 51},
            {"email": "a@example.com", "password": "   short   "},
            {"email": "a@example.com"},
        ]
        for body in bad_bodies:
            with self.subTest(body=body):
                response = self.client.post("/auth/signup", json=body)
                self.assertEqual(response.status_code, 400)
        self.assertEqual(self.publisher.events, [])

    def test_signup_rejects_password_over_72_bytes(self) -> None:
        # 37 characters, 73 bytes in UTF-8.
        response = self.client.post(
            "/auth/signup", json={"email": "a@example.com", "password": "é" * 36 + "a"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.publisher.events, [])

    def test_multibyte_passwords_stay_distinct(self) -> None:
        self.signup(password="é" * 36)
        for candidate in ("é" * 35 + "e", "é" * 36 + "a", "é" * 36 + "b"):
            with self.subTest(candidate=candidate):
                response = self.client.post(
                    "/auth/login", json={"email": "a@example.com", "password": candidate}
                )
                self.assertNotEqual(response.status_code, 200)
        login = self.client.post(
            "/auth/login", json={"email": "a@example.com", "password": "é" * 36}
        )
        self.assertEqual(login.status_code, 200)

    def test_login_failures_are_indistinguishable(self) -> None:
        self.signup()
        wrong_password = self.client.post(
            "/auth/login", json={"email": "a@example.com", "password": "password124"}
        )
        unknown_email = self.client.post(
            "/auth/login", json={"email": "b@example.com", "password": "password123"}
        )
        self.assertEqual(wrong_password.status_code, 401)
        self.assertEqual(unknown_email.status_code, 401)
        self.assertEqual(wrong_password.json(), unknown_email.json())
        self.assertEqual(wrong_password.headers["www-authenticate"], "Bearer")

    def test_refresh_with_refresh_token(self) -> None:
        tokens = self.signup()
        response = self.client.post(
            "/auth/refresh",
            json={"email": "a@example.com"},
            headers=_bearer(tokens["refresh_token"]),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(set(response.json()), {"access_token"})

        profile = self.client.get("/auth/profile", headers=_bearer(response.json()["access_token"]))
        self.assertEqual(profile.status_code, 200)

    def test_refresh_rejects_access_token(self) -> None:
        tokens = self.signup()
        response = self.client.post(
            "/auth/refresh",
            json={"email": "a@example.com"},
            headers=_bearer(tokens["access_token"]),
        )
        self.assertEqual(response.status_code, 401)

    def test_refresh_without_token(self) -> None:
        self.signup()
        response = self.client.post("/auth/refresh", json={"email": "a@example.com"})
        self.assertEqual(response.status_code, 401)

    def test_refresh_for_another_account(self) -> None:
        tokens = self.signup()
        self.signup(email="b@example.com")
        response = self.client.post(
            "/auth/refresh",
            json={"email": "b@example.com"},
            headers=_bearer(tokens["refresh_token"]),
        )
        self.assertEqual(response.status_code, 401)

    def test_profile_returns_identity(self) -> None:
        tokens = self.signup()
        response = self.client.get("/auth/profile", headers=_bearer(tokens["access_token"]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {"userId": self.user_id("a@example.com"), "email": "a@example.com", "role": "USER"},
        )

    def test_profile_rejects_refresh_token(self) -> None:
        tokens = self.signup()
        response = self.client.get("/auth/profile", headers=_bearer(tokens["refresh_token"]))
        self.assertEqual(response.status_code, 401)

    def test_profile_rejects_expired_token(self) -> None:
        self.signup()
        claims = build_claims(self.user_id("a@example.com"), "a@example.com", "USER")
        expired = encode_token(claims, "test-access-secret", timedelta(seconds=-30))
        response = self.client.get("/auth/profile", headers=_bearer(expired))
        self.assertEqual(response.status_code, 401)

    def test_profile_rejected_after_role_change(self) -> None:
        tokens = self.signup()
        self.set_role("a@example.com", Role.ADMIN)
        response = self.client.get("/auth/profile", headers=_bearer(tokens["access_token"]))
        self.assertEqual(response.status_code, 401)


class TestUserEndpoints(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.alice = self.signup("alice@example.com")
        self.bob = self.signup("bob@example.com")
        self.alice_id = self.user_id("alice@example.com")
        self.bob_id = self.user_id("bob@example.com")
        self.publisher.events.clear()

    def test_get_own_record(self) -> None:
        response = self.client.get(
            f"/users/{self.alice_id}", headers=_bearer(self.alice["access_token"])
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["email"], "alice@example.com")
        self.assertTrue(body["isActive"])
        self.assertIn("createdAt", body)
        self.assertIn("updatedAt", body)
        self.assertNotIn("password", body)

    def test_get_other_record_forbidden_for_user(self) -> None:
        response = self.client.get(
            f"/users/{self.bob_id}", headers=_bearer(self.alice["access_token"])
        )
        self.assertEqual(response.status_code, 403)

    def test_get_other_record_allowed_for_admin(self) -> None:
        admin = self.create_admin()
        response = self.client.get(f"/users/{self.bob_id}", headers=_bearer(admin["access_token"]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["id"], self.bob_id)

    def test_get_missing_record(self) -> None:
        admin = self.create_admin()
        response = self.client.get("/users/9999", headers=_bearer(admin["access_token"]))
        self.assertEqual(response.status_code, 404)

    def test_get_out_of_range_id(self) -> None:
        admin = self.create_admin()
        for user_id in ("99999999999999999999", "0", "-1"):
            with self.subTest(user_id=user_id):
                response = self.client.get(
                    f"/users/{user_id}", headers=_bearer(admin["access_token"])
                )
                self.assertEqual(response.status_code, 404)

    def test_requires_token(self) -> None:
        response = self.client.get(f"/users/{self.alice_id}")
        self.assertEqual(response.status_code, 401)

    def test_update_own_record(self) -> None:
        response = self.client.put(
            f"/users/{self.alice_id}",
            json={"email": "alice2@example.com", "password": "newpassword1"},
            headers=_bearer(self.alice["access_token"]),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["email"], "alice2@example.com")
        login = self.client.post(
            "/auth/login", json={"email": "alice2@example.com", "password": "newpassword1"}
        )
        self.assertEqual(login.status_code, 200)

    def test_update_other_record_forbidden(self) -> None:
        response = self.client.put(
            f"/users/{self.bob_id}",
            json={"email": "x@example.com", "password": "newpassword1"},
            headers=_bearer(self.alice["access_token"]),
        )
        self.assertEqual(response.status_code, 403)

    def test_update_email_conflict(self) -> None:
        response = self.client.put(
            f"/users/{self.alice_id}",
            json={"email": "bob@example.com", "password": "newpassword1"},
            headers=_bearer(self.alice["access_token"]),
        )
        self.assertEqual(response.status_code, 409)

    def test_update_forbidden_for_admin_role(self) -> None:
        admin = self.create_admin()
        admin_id = self.user_id("admin@example.com")
        response = self.client.put(
            f"/users/{admin_id}",
            json={"email": "admin2@example.com", "password": "newpassword1"},
            headers=_bearer(admin["access_token"]),
        )
        self.assertEqual(response.status_code, 403)

    def test_delete_own_record(self) -> None:
        response = self.client.delete(
            f"/users/{self.alice_id}", headers=_bearer(self.alice["access_token"])
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"message": "User deleted successfully"})
        self.assertEqual(
            self.publisher.events,
            [
                (
                    "user.deleted",
                    str(self.alice_id),
                    {"id": self.alice_id, "role": "USER", "isActive": False},
                )
            ],
        )
        # The token outlives the account but no longer authenticates.
        again = self.client.get(
            f"/users/{self.alice_id}", headers=_bearer(self.alice["access_token"])
        )
        self.assertEqual(again.status_code, 401)

    def test_delete_other_record_forbidden(self) -> None:
        response = self.client.delete(
            f"/users/{self.bob_id}", headers=_bearer(self.alice["access_token"])
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(self.publisher.events, [])

    def test_non_integer_id(self) -> None:
        response = self.client.get("/users/abc", headers=_bearer(self.alice["access_token"]))
        self.assertEqual(response.status_code, 400)


class TestApiKeyGuard(ApiTestCase):
    settings_overrides = {"X_API_KEY": "k3y"}

    def test_missing_key_forbidden(self) -> None:
        response = self.client.post(
            "/auth/login", json={"email": "a@example.com", "password": "password123"}
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"detail": "Invalid API Key"})

    def test_matching_key_allowed(self) -> None:
        response = self.client.post(
            "/auth/signup",
            json={"email": "a@example.com", "password": "password123"},
            headers={"x-api-key": "k3y"},
        )
        self.assertEqual(response.status_code, 200)

    def test_health_is_open(self) -> None:
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")
        self.assertEqual(response.json()["database"], "connected")


if __name__ == "__main__":
    unittest.main()
