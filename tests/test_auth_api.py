"""HTTP tests for /api/auth: register, login, logout, current user and token expiry."""

import unittest
from unittest.mock import patch

from sqlalchemy import false

from tests.support import add_user, bearer, make_client


class TestRegister(unittest.TestCase):
    """POST /api/auth/register creates a 'user' account and returns a token."""

    def setUp(self) -> None:
        self.client, self.ctx, self.clock = make_client()

    def test_register_returns_201_with_user_and_token(self) -> None:
        response = self.client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "alice@x.org", "password": "secret1"},
        )
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["message"], "Registration successful")
        self.assertEqual(body["user"]["username"], "alice")
        self.assertEqual(body["user"]["email"], "alice@x.org")
        self.assertEqual(body["user"]["role"], "user")
        self.assertIsInstance(body["user"]["id"], str)
        self.assertNotIn("password_hash", body["user"])
        self.assertEqual(len(body["token"]), 64)

    def test_register_ignores_requested_admin_role(self) -> None:
        response = self.client.post(
            "/api/auth/register",
            json={"username": "eve", "email": "eve@x.org", "password": "pw", "role": "admin"},
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["user"]["role"], "user")

    def test_missing_fields_return_400(self) -> None:
        for body in (
            {"email": "a@x.org", "password": "pw"},
            {"username": "a", "password": "pw"},
            {"username": "a", "email": "a@x.org"},
            {"username": "", "email": "a@x.org", "password": "pw"},
        ):
            with self.subTest(body=body):
                response = self.client.post("/api/auth/register", json=body)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(
                    response.json(),
                    {"success": False, "message": "Username, email, and password are required"},
                )

    def test_duplicate_email_returns_409(self) -> None:
        first = self.client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "alice@x.org", "password": "secret1"},
        )
        self.assertEqual(first.status_code, 201)
        second = self.client.post(
            "/api/auth/register",
            json={"username": "alice2", "email": "alice@x.org", "password": "other"},
        )
        self.assertEqual(second.status_code, 409)
        self.assertEqual(second.json()["message"], "Email or username already in use")

    def test_duplicate_username_returns_409(self) -> None:
        self.client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "alice@x.org", "password": "secret1"},
        )
        response = self.client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "other@x.org", "password": "secret1"},
        )
        self.assertEqual(response.status_code, 409)

    def test_unique_constraint_race_returns_409(self) -> None:
        register = {"username": "alice", "email": "alice.org", "password": "secret1"}
        self.assertEqual(self.client.post("/api/auth/register", json=register).status_code, 201)
        # Make the pre-insert lookup miss, as it would for a concurrent registration.
        with patch("app.services.auth.or_", return_value=false()):
            response = self.client.post(
                "/api/auth/register",
                json={"username": "alice2", "email": "alice.org", "password": "other"},
            )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["message"], "Email or username already in use")
        again = self.client.post(
            "/api/auth/register",
            json={"username": "bob", "email": "bob.org", "password": "secret1"},
        )
        self.assertEqual(again.status_code, 201)

    def test_non_json_body_returns_400(self) -> None:
        response = self.client.post(
            "/api/auth/register",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()["success"])


class TestLogin(unittest.TestCase):
    """POST /api/auth/login checks credentials without revealing which part was wrong."""

    def setUp(self) -> None:
        self.client, self.ctx, self.clock = make_client()
        add_user(self.ctx, "member", "member@x.org", "user123")

    def test_correct_password_returns_token_that_authenticates(self) -> None:
        response = self.client.post(
            "/api/auth/login", json={"email": "member@x.org", "password": "user123"}
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["message"], "Login successful")
        self.assertEqual(body["user"]["email"], "member@x.org")

        me = self.client.get("/api/auth/user", headers=bearer(body["token"]))
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["data"]["username"], "member")

    def test_wrong_password_and_unknown_email_give_identical_401(self) -> None:
        wrong_password = self.client.post(
            "/api/auth/login", json={"email": "member@x.org", "password": "nope"}
        )
        unknown_email = self.client.post(
            "/api/auth/login", json={"email": "ghost@x.org", "password": "user123"}
        )
        self.assertEqual(wrong_password.status_code, 401)
        self.assertEqual(unknown_email.status_code, 401)
        self.assertEqual(wrong_password.json(), unknown_email.json())
        self.assertEqual(wrong_password.json()["message"], "Invalid email or password")

    def test_missing_fields_return_400(self) -> None:
        for body in ({}, {"email": "member@x.org"}, {"password": "user123"}):
            with self.subTest(body=body):
                response = self.client.post("/api/auth/login", json=body)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json()["message"], "Email and password are required")

    def test_each_login_issues_a_distinct_token(self) -> None:
        creds = {"email": "member@x.org", "password": "user123"}
        t1 = self.client.post("/api/auth/login", json=creds).json()["token"]
        t2 = self.client.post("/api/auth/login", json=creds).json()["token"]
        self.assertNotEqual(t1, t2)
        self.assertEqual(self.client.get("/api/auth/user", headers=bearer(t1)).status_code, 200)
        self.assertEqual(self.client.get("/api/auth/user", headers=bearer(t2)).status_code, 200)


class TestCurrentUserAndLogout(unittest.TestCase):
    """GET /api/auth/user and POST /api/auth/logout."""

    def setUp(self) -> None:
        self.client, self.ctx, self.clock = make_client()

    def test_register_user_logout_scenario(self) -> None:
        reg = self.client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "alice@x.org", "password": "secret1"},
        )
        self.assertEqual(reg.status_code, 201)
        t1 = reg.json()["token"]

        me = self.client.get("/api/auth/user", headers=bearer(t1))
        self.assertEqual(me.status_code, 200)
        self.assertTrue(me.json()["success"])
        self.assertEqual(me.json()["data"]["email"], "alice@x.org")

        out = self.client.post("/api/auth/logout", headers=bearer(t1))
        self.assertEqual(out.status_code, 200)
        self.assertEqual(out.json(), {"success": True, "message": "Logout successful"})

        again = self.client.get("/api/auth/user", headers=bearer(t1))
        self.assertEqual(again.status_code, 401)
        self.assertEqual(again.json()["message"], "Invalid or expired token")

    def test_missing_token_returns_401_token_required(self) -> None:
        response = self.client.get("/api/auth/user")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Authentication token required")
        self.assertEqual(response.headers["WWW-Authenticate"], "Bearer")

    def test_unknown_token_returns_401(self) -> None:
        response = self.client.get("/api/auth/user", headers=bearer("f" * 64))
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Invalid or expired token")

    def test_logout_without_token_returns_200(self) -> None:
        response = self.client.post("/api/auth/logout")
        self.assertEqual(response.status_code, 200)

    def test_logout_with_unknown_token_returns_200(self) -> None:
        response = self.client.post("/api/auth/logout", headers=bearer("not-a-token"))
        self.assertEqual(response.status_code, 200)

    def test_logout_twice_is_idempotent(self) -> None:
        token = self.client.post(
            "/api/auth/register",
            json={"username": "bob", "email": "bob@x.org", "password": "pw"},
        ).json()["token"]
        self.assertEqual(self.client.post("/api/auth/logout", headers=bearer(token)).status_code, 200)
        self.assertEqual(self.client.post("/api/auth/logout", headers=bearer(token)).status_code, 200)


class TestTokenExpiry(unittest.TestCase):
    """Tokens stop authenticating once the clock reaches issuance + 24h."""

    def setUp(self) -> None:
        self.client, self.ctx, self.clock = make_client()
        self.token = self.client.post(
            "/api/auth/register",
            json={"username": "carol", "email": "carol@x.org", "password": "pw"},
        ).json()["token"]

    def test_valid_just_before_expiry(self) -> None:
        self.clock.advance(hours=23, minutes=59, seconds=59)
        response = self.client.get("/api/auth/user", headers=bearer(self.token))
        self.assertEqual(response.status_code, 200)

    def test_rejected_at_and_after_expiry(self) -> None:
        self.clock.advance(hours=24)
        response = self.client.get("/api/auth/user", headers=bearer(self.token))
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Invalid or expired token")

        self.clock.advance(days=3)
        self.assertEqual(
            self.client.get("/api/auth/user", headers=bearer(self.token)).status_code, 401
        )


if __name__ == "__main__":
    unittest.main()
