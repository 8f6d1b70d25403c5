"""HTTP tests for /api/v1/auth: cookies, status mapping, bearer checks and role guard."""

import unittest
from collections.abc import Generator

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from pathfinder.core.database import get_db
from pathfinder.core.security import get_token_codec
from pathfinder.main import app
from pathfinder.models import Role, Token
from pathfinder.services.credentials import create_user
from tests.helpers import FakeClock, make_codec, make_engine, make_session_factory

PREFIX = "/api/v1/auth"


class ApiTestCase(unittest.TestCase):
    """App wired to an in-memory database and a codec on a fake clock."""

    def setUp(self) -> None:
        self.engine = make_engine()
        self.session_factory = make_session_factory(self.engine)
        self.clock = FakeClock()
        self.codec = make_codec(self.clock)

        def override_get_db() -> Generator[Session, None, None]:
            db = self.session_factory()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_token_codec] = lambda: self.codec
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        self.engine.dispose()

    def register(self, email: str = "a@x.com", password: str = "password123", **extra: str):
        body = {"email": email, "password": password, "first_name": "Ada", "last_name": "L"}
        body.update(extra)
        return self.client.post(f"{PREFIX}/register", json=body)

    def login(self, email: str = "a@x.com", password: str = "password123"):
        return self.client.post(f"{PREFIX}/authenticate", json={"email": email, "password": password})


class TestRegisterEndpoint(ApiTestCase):
    def test_register_returns_tokens_and_sets_cookie(self) -> None:
        response = self.register()
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["user"]["email"], "a@x.com")
        self.assertEqual(data["user"]["role"], "buyer")
        self.assertEqual(data["token_type"], "bearer")
        set_cookie = response.headers["set-cookie"]
        self.assertIn(f"refresh_token={data['refresh_token']}", set_cookie)
        self.assertIn("HttpOnly", set_cookie)
        self.assertNotIn("password", response.text)

    def test_weak_password_is_422(self) -> None:
        response = self.register(password="short")
        self.assertEqual(response.status_code, 422)
        self.assertIn("at least 8", response.json()["detail"])

    def test_duplicate_email_is_409(self) -> None:
        self.register()
        response = self.register()
        self.assertEqual(response.status_code, 409)

    def test_privileged_role_cannot_self_register(self) -> None:
        for role in ("manager", "admin"):
            with self.subTest(role=role):
                self.assertEqual(self.register(email=f"{role}@x.com", role=role).status_code, 422)

    def test_seller_can_self_register(self) -> None:
        response = self.register(role="seller")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["role"], "seller")


class TestAuthenticateEndpoint(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.register()

    def test_login_ok(self) -> None:
        response = self.login()
        self.assertEqual(response.status_code, 200)
        self.assertIn("refresh_token=", response.headers["set-cookie"])

    def test_unknown_email_and_wrong_password_look_the_same(self) -> None:
        unknown = self.login(email="nobody@x.com")
        wrong = self.login(password="wrong-password")
        self.assertEqual(unknown.status_code, 401)
        self.assertEqual(wrong.status_code, 401)
        self.assertEqual(unknown.json(), wrong.json())

    def test_missing_credentials_is_400(self) -> None:
        response = self.client.post(f"{PREFIX}/authenticate", json={"email": "a@x.com"})
        self.assertEqual(response.status_code, 400)


class TestRefreshEndpoint(ApiTestCase):
    def test_missing_cookie_is_403_with_empty_body(self) -> None:
        response = self.client.post(f"{PREFIX}/refresh-token")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.content, b"")

    def test_refresh_token_in_body_or_header_is_ignored(self) -> None:
        token = self.register().json()["refresh_token"]
        client = TestClient(app)
        response = client.post(
            f"{PREFIX}/refresh-token",
            json={"refresh_token": token},
            headers={"Authorization": f"Bearer {token}"},
        )
        self.assertEqual(response.status_code, 403)

    def test_refresh_with_cookie(self) -> None:
        registered = self.register().json()
        response = self.client.post(f"{PREFIX}/refresh-token")
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["refresh_token"], registered["refresh_token"])
        self.assertNotEqual(data["access_token"], registered["access_token"])
        self.assertEqual(self.codec.extract_identity(data["access_token"]), registered["user"]["id"])

    def test_expired_cookie_is_401(self) -> None:
        token = self.register().json()["refresh_token"]
        self.clock.advance(days=8)
        client = TestClient(app)
        client.cookies.set("refresh_token", token)
        response = client.post(f"{PREFIX}/refresh-token")
        self.assertEqual(response.status_code, 401)

    def test_garbage_cookie_is_401(self) -> None:
        client = TestClient(app)
        client.cookies.set("refresh_token", "garbage")
        self.assertEqual(client.post(f"{PREFIX}/refresh-token").status_code, 401)


class TestCurrentUser(ApiTestCase):
    def _me(self, token: str):
        return self.client.get(f"{PREFIX}/me", headers={"Authorization": f"Bearer {token}"})

    def test_me_with_access_token(self) -> None:
        token = self.register().json()["access_token"]
        response = self._me(token)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["email"], "a@x.com")

    def test_me_without_token_is_401(self) -> None:
        self.assertEqual(self.client.get(f"{PREFIX}/me").status_code, 401)

    def test_expired_access_token_is_401(self) -> None:
        token = self.register().json()["access_token"]
        self.clock.advance(minutes=16)
        self.assertEqual(self._me(token).status_code, 401)

    def test_revoked_access_token_is_401(self) -> None:
        old = self.register().json()["access_token"]
        new = self.login().json()["access_token"]
        self.assertEqual(self._me(old).status_code, 401)
        self.assertEqual(self._me(new).status_code, 200)

    def test_refresh_token_is_not_a_bearer_token(self) -> None:
        refresh = self.register().json()["refresh_token"]
        self.assertEqual(self._me(refresh).status_code, 401)

    def test_unstored_refresh_token_is_not_a_bearer_token(self) -> None:
        refresh = self.register().json()["refresh_token"]
        db = self.session_factory()
        try:
            db.query(Token).filter(Token.token == refresh).delete()
            db.commit()
        finally:
            db.close()
        self.assertEqual(self._me(refresh).status_code, 401)


class TestRoleGuard(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        db = self.session_factory()
        try:
            create_user(db, email="boss@x.com", password="password123", role=Role.MANAGER)
            db.commit()
        finally:
            db.close()

    def test_manager_lists_users(self) -> None:
        self.register()
        token = self.login(email="boss@x.com").json()["access_token"]
        response = self.client.get(f"{PREFIX}/users", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(response.status_code, 200)
        emails = [u["email"] for u in response.json()["users"]]
        self.assertEqual(emails, ["boss@x.com", "a@x.com"])

    def test_buyer_is_forbidden(self) -> None:
        token = self.register().json()["access_token"]
        response = self.client.get(f"{PREFIX}/users", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(response.status_code, 403)


class TestHealth(ApiTestCase):
    def test_health_reports_database(self) -> None:
        response = self.client.get("/api/v1/health/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["database"], "connected")


if __name__ == "__main__":
    unittest.main()
