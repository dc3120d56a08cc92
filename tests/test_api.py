"""HTTP tests for the auth, onboarding, admin and record endpoints (FastAPI TestClient on SQLite)."""

import unittest
from datetime import timedelta
from unittest.mock import patch

from fastapi.testclient import TestClient

from corpgate.core.config import get_settings
from corpgate.core.rate_limit import RateLimiter
from corpgate.core.database import get_db
from corpgate.core.security import TokenIdentity, TokenService, verify_password
from corpgate.main import app
from corpgate.models import Issue, Order, UserSession
from corpgate.models.user import STATUS_ACTIVE, STATUS_INACTIVE
from corpgate.services import user_store
from dbsupport import add_issue, add_order, add_user, make_engine, make_session_factory


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = make_engine()
        self.SessionTest = make_session_factory(self.engine)

        def override_get_db():
            db = self.SessionTest()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        limiter = app.state.rate_limiter
        app.state.rate_limiter = None
        self.addCleanup(setattr, app.state, "rate_limiter", limiter)
        self.client = TestClient(app)
        with self.SessionTest() as db:
            add_user(db, "admin@x.com", "admin123", role="Admin")

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        self.engine.dispose()

    def post(self, path: str, json: dict | None = None, token: str | None = None):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        return self.client.post(f"/api{path}", json=json or {}, headers=headers)

    def get(self, path: str, token: str | None = None):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        return self.client.get(f"/api{path}", headers=headers)

    def login(self, email: str, password: str) -> dict:
        response = self.post("/auth/login", {"email": email, "password": password})
        self.assertEqual(response.status_code, 200)
        return response.json()

    def admin_token(self) -> str:
        return self.login("admin@x.com", "admin123")["accessToken"]

    def sessions_for(self, email: str) -> int:
        with self.SessionTest() as db:
            user = user_store.get_user_by_email(db, email)
            return db.query(UserSession).filter(UserSession.user_id == user.id).count()


class TestLoginEndpoint(ApiTestCase):
    def test_active_login_payload(self) -> None:
        body = self.login("admin@x.com", "admin123")
        self.assertTrue(body["ok"])
        self.assertIn("accessToken", body)
        self.assertIn("refreshToken", body)
        self.assertEqual(body["user"], {"email": "admin@x.com", "role": "Admin", "status": "Active"})
        self.assertEqual(body["pages"], [])
        self.assertNotIn("needsPasswordSetup", body)

    def test_generic_failure_message(self) -> None:
        wrong = self.login("admin@x.com", "bad")
        missing = self.login("nobody@x.com", "admin123")
        self.assertFalse(wrong["ok"])
        self.assertEqual(wrong, missing)
        self.assertEqual(wrong["message"], "Invalid email or password")

    def test_missing_fields(self) -> None:
        body = self.login("admin@x.com", "")
        self.assertEqual(body, {"ok": False, "message": "Email and password are required"})


class TestRefreshAndLogout(ApiTestCase):
    def test_refresh_then_logout(self) -> None:
        refresh_token = self.login("admin@x.com", "admin123")["refreshToken"]

        refreshed = self.post("/auth/refresh", {"refreshToken": refresh_token}).json()
        self.assertTrue(refreshed["ok"])
        self.assertEqual(self.get("/auth/me", refreshed["accessToken"]).status_code, 200)

        self.assertEqual(self.post("/auth/logout", {"refreshToken": refresh_token}).json(), {"ok": True})
        again = self.post("/auth/refresh", {"refreshToken": refresh_token}).json()
        self.assertEqual(again, {"ok": False, "message": "Invalid refresh token"})

    def test_logout_unknown_token_succeeds(self) -> None:
        response = self.post("/auth/logout", {"refreshToken": "nope"})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["ok"])

    def test_refresh_requires_token(self) -> None:
        body = self.post("/auth/refresh", {}).json()
        self.assertEqual(body, {"ok": False, "message": "Refresh token required"})


class TestProtectedRoutes(ApiTestCase):
    def test_me(self) -> None:
        body = self.get("/auth/me", self.admin_token()).json()
        self.assertTrue(body["ok"])
        self.assertEqual(body["user"]["email"], "admin@x.com")
        self.assertEqual(body["user"]["role"], "Admin")
        self.assertIn("allowedPages", body["user"])
        self.assertIsNotNone(body["user"]["lastLogin"])
        self.assertNotIn("passwordHash", body["user"])

    def test_no_token(self) -> None:
        response = self.get("/auth/me")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"ok": False, "message": "Unauthorized: No token provided"})

    def test_non_bearer_header(self) -> None:
        response = self.client.get("/api/auth/me", headers={"Authorization": "Basic abc"})
        self.assertEqual(response.status_code, 401)

    def test_expired_token(self) -> None:
        with self.SessionTest() as db:
            admin = user_store.get_user_by_email(db, "admin@x.com")
            identity = TokenIdentity(user_id=admin.id, email=admin.email, role=admin.role)
        expired = TokenService(
            get_settings().JWT_SECRET.get_secret_value(), access_ttl=timedelta(seconds=-30)
        ).issue_access_token(identity)
        response = self.get("/auth/me", expired)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Unauthorized: Invalid token")

    def test_change_password_signs_out_everywhere(self) -> None:
        first = self.login("admin@x.com", "admin123")
        self.login("admin@x.com", "admin123")
        self.assertEqual(self.sessions_for("admin@x.com"), 2)

        body = self.post(
            "/auth/change-password",
            {"currentPassword": "admin123", "newPassword": "admin456"},
            first["accessToken"],
        ).json()

        self.assertEqual(body, {"ok": True, "message": "Password changed successfully"})
        self.assertEqual(self.sessions_for("admin@x.com"), 0)
        refreshed = self.post("/auth/refresh", {"refreshToken": first["refreshToken"]}).json()
        self.assertEqual(refreshed["message"], "Invalid refresh token")
        self.assertTrue(self.login("admin@x.com", "admin456")["ok"])

    def test_change_password_validation(self) -> None:
        token = self.admin_token()
        short = self.post(
            "/auth/change-password", {"currentPassword": "admin123", "newPassword": "abc"}, token
        ).json()
        self.assertEqual(short, {"ok": False, "message": "Password must be at least 4 characters"})
        wrong = self.post(
            "/auth/change-password", {"currentPassword": "nope", "newPassword": "abcd"}, token
        ).json()
        self.assertEqual(wrong, {"ok": False, "message": "Current password is incorrect"})


class TestOnboardingScenario(ApiTestCase):
    """Admin creates bob, bob sets his password, admin activates him."""

    def test_full_onboarding(self) -> None:
        admin = self.admin_token()

        created = self.post("/admin/createUser", {"email": " Bob@X.com ", "role": "User"}, admin).json()
        self.assertTrue(created["ok"])
        temp_password = created["tempPassword"]
        with self.SessionTest() as db:
            bob = user_store.get_user_by_email(db, "bob@x.com")
            self.assertEqual(bob.status, STATUS_INACTIVE)
            self.assertEqual(bob.allowed_pages, [])
            self.assertTrue(verify_password(temp_password, bob.password_hash))

        first = self.login("bob@x.com", temp_password)
        self.assertTrue(first["needsPasswordSetup"])
        self.assertNotIn("refreshToken", first)
        self.assertEqual(self.sessions_for("bob@x.com"), 0)

        # Inactive token is only good for the setup endpoint.
        self.assertEqual(self.get("/auth/me", first["accessToken"]).status_code, 403)

        set_pw = self.post("/user/setInitialPassword", {"newPassword": "newpass1"}, first["accessToken"])
        self.assertEqual(set_pw.status_code, 200)
        self.assertTrue(set_pw.json()["ok"])

        second = self.login("bob@x.com", "newpass1")
        self.assertTrue(second["needsPasswordSetup"])
        again = self.post("/user/setInitialPassword", {"newPassword": "other123"}, second["accessToken"])
        self.assertFalse(again.json()["ok"])

        status = self.post("/admin/setUserStatus", {"email": "bob@x.com", "status": "Active"}, admin)
        self.assertTrue(status.json()["ok"])

        active = self.login("bob@x.com", "newpass1")
        self.assertIn("refreshToken", active)
        self.assertNotIn("needsPasswordSetup", active)
        late = self.post("/user/setInitialPassword", {"newPassword": "other123"}, active["accessToken"])
        self.assertEqual(
            late.json(), {"ok": False, "message": "This endpoint is only for initial password setup"}
        )

    def test_set_initial_password_validation(self) -> None:
        admin = self.admin_token()
        temp = self.post("/admin/createUser", {"email": "bob@x.com", "role": "User"}, admin).json()[
            "tempPassword"
        ]
        token = self.login("bob@x.com", temp)["accessToken"]
        body = self.post("/user/setInitialPassword", {"newPassword": "abc"}, token).json()
        self.assertEqual(body, {"ok": False, "message": "Password must be at least 4 characters"})
        body = self.post("/user/setInitialPassword", {}, token).json()
        self.assertEqual(body, {"ok": False, "message": "New password required"})


class TestAdminRoutes(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        with self.SessionTest() as db:
            add_user(db, "alice@x.com", "alice123", pages=["Orders"])

    def test_non_admin_forbidden(self) -> None:
        token = self.login("alice@x.com", "alice123")["accessToken"]
        response = self.post("/admin/listUsers", {}, token)
        self.assertEqual(response.status_code, 403)
        self.assertFalse(response.json()["ok"])

    def test_list_users(self) -> None:
        body = self.post("/admin/listUsers", {}, self.admin_token()).json()
        emails = {u["email"] for u in body["users"]}
        self.assertEqual(emails, {"admin@x.com", "alice@x.com"})
        self.assertTrue(all("passwordHash" not in u for u in body["users"]))

    def test_duplicate_user(self) -> None:
        body = self.post(
            "/admin/createUser", {"email": "ALICE@x.com", "role": "User"}, self.admin_token()
        ).json()
        self.assertEqual(body, {"ok": False, "message": "User already exists"})

    def test_set_allowed_pages_dedupes(self) -> None:
        self.post(
            "/admin/setAllowedPages",
            {"email": "alice@x.com", "pages": ["Issues", "Orders", "Issues"]},
            self.admin_token(),
        )
        with self.SessionTest() as db:
            self.assertEqual(user_store.get_user_by_email(db, "alice@x.com").allowed_pages, ["Issues", "Orders"])

    def test_invalid_status(self) -> None:
        body = self.post(
            "/admin/setUserStatus", {"email": "alice@x.com", "status": "Paused"}, self.admin_token()
        ).json()
        self.assertEqual(body["message"], "Invalid status. Must be Active or Inactive")

    def test_deactivation_revokes_sessions_and_blocks_next_request(self) -> None:
        alice = self.login("alice@x.com", "alice123")
        self.assertEqual(self.sessions_for("alice@x.com"), 1)

        self.post("/admin/setUserStatus", {"email": "alice@x.com", "status": "Inactive"}, self.admin_token())

        self.assertEqual(self.sessions_for("alice@x.com"), 0)
        self.assertEqual(self.get("/auth/me", alice["accessToken"]).status_code, 403)

    def test_set_role(self) -> None:
        self.post("/admin/setUserRole", {"email": "alice@x.com", "role": "admin"}, self.admin_token())
        token = self.login("alice@x.com", "alice123")["accessToken"]
        self.assertEqual(self.post("/admin/listUsers", {}, token).status_code, 200)

    def test_delete_user(self) -> None:
        admin = self.admin_token()
        alice_token = self.login("alice@x.com", "alice123")["accessToken"]
        self_delete = self.post("/admin/deleteUser", {"email": "Admin@x.com"}, admin).json()
        self.assertEqual(self_delete["message"], "Cannot delete your own account")

        self.assertTrue(self.post("/admin/deleteUser", {"email": "alice@x.com"}, admin).json()["ok"])
        gone = self.get("/auth/me", alice_token)
        self.assertEqual(gone.status_code, 401)
        self.assertEqual(gone.json()["message"], "Unauthorized: User not found")
        again = self.post("/admin/deleteUser", {"email": "alice@x.com"}, admin).json()
        self.assertEqual(again["message"], "User not found")

    def test_reset_password(self) -> None:
        self.login("alice@x.com", "alice123")
        body = self.post("/admin/resetPassword", {"email": "alice@x.com"}, self.admin_token()).json()
        self.assertTrue(body["ok"])
        self.assertEqual(self.sessions_for("alice@x.com"), 0)
        self.assertFalse(self.login("alice@x.com", "alice123")["ok"])
        relog = self.login("alice@x.com", body["tempPassword"])
        self.assertTrue(relog["needsPasswordSetup"])


class TestRecordRoutes(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        with self.SessionTest() as db:
            alice = add_user(db, "alice@x.com", "alice123", pages=["Orders", "Issues"])
            carol = add_user(db, "carol@x.com", "carol123", pages=["Orders"])
            self.alice_order = add_order(db, alice.id).order_id
            self.carol_order = add_order(db, carol.id).order_id
            self.alice_issue = add_issue(db, alice.id).issue_id
        self.alice = self.login("alice@x.com", "alice123")["accessToken"]
        self.carol = self.login("carol@x.com", "carol123")["accessToken"]

    def test_own_order(self) -> None:
        body = self.get(f"/orders/{self.alice_order}", self.alice).json()
        self.assertTrue(body["ok"])
        self.assertEqual(body["record"]["orderId"], self.alice_order)
        self.assertEqual(body["record"]["status"], "Waiting Supplier")

    def test_foreign_order_forbidden(self) -> None:
        response = self.get(f"/orders/{self.carol_order}", self.alice)
        self.assertEqual(response.status_code, 403)

    def test_missing_order(self) -> None:
        self.assertEqual(self.get("/orders/424242", self.alice).status_code, 404)

    def test_page_not_allowed(self) -> None:
        response = self.get(f"/issues/{self.alice_issue}", self.carol)
        self.assertEqual(response.status_code, 403)
        self.assertIn("Issues", response.json()["message"])

    def test_admin_sees_any_order(self) -> None:
        self.assertEqual(self.get(f"/orders/{self.carol_order}", self.admin_token()).status_code, 200)

    def test_update_order_status_uses_body_id(self) -> None:
        denied = self.post(
            "/orders/updateStatus", {"order_id": self.carol_order, "status": "Delivered"}, self.alice
        )
        self.assertEqual(denied.status_code, 403)

        body = self.post(
            "/orders/updateStatus", {"order_id": self.alice_order, "status": "Delivered"}, self.alice
        ).json()
        self.assertTrue(body["ok"])
        with self.SessionTest() as db:
            order = db.get(Order, self.alice_order)
            self.assertEqual(order.status, "Delivered")
            self.assertIsNotNone(order.delivered_date)

    def test_query_string_id_cannot_cover_foreign_body_id(self) -> None:
        response = self.client.post(
            f"/api/orders/updateStatus?order_id={self.alice_order}",
            json={"order_id": self.carol_order, "status": "Delivered"},
            headers={"Authorization": f"Bearer {self.alice}"},
        )
        self.assertEqual(response.status_code, 403)
        with self.SessionTest() as db:
            self.assertEqual(db.get(Order, self.carol_order).status, "Waiting Supplier")

    def test_update_status_ignores_query_id_when_body_lacks_one(self) -> None:
        response = self.client.post(
            f"/api/orders/updateStatus?order_id={self.alice_order}",
            json={"status": "Delivered"},
            headers={"Authorization": f"Bearer {self.alice}"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"ok": False, "message": "Record ID required"})

    def test_update_status_rejects_float_id(self) -> None:
        response = self.post(
            "/orders/updateStatus", {"order_id": self.alice_order + 0.9, "status": "Delivered"}, self.alice
        )
        self.assertEqual(response.status_code, 404)

    def test_update_order_status_rejects_unknown_status(self) -> None:
        body = self.post(
            "/orders/updateStatus", {"order_id": self.alice_order, "status": "Lost"}, self.alice
        ).json()
        self.assertFalse(body["ok"])
        self.assertIn("Invalid status", body["message"])

    def test_solve_issue(self) -> None:
        body = self.post(
            "/issues/updateStatus", {"issue_id": self.alice_issue, "status": "Solved"}, self.alice
        ).json()
        self.assertTrue(body["ok"])
        with self.SessionTest() as db:
            issue = db.get(Issue, self.alice_issue)
            alice = user_store.get_user_by_email(db, "alice@x.com")
            self.assertEqual(issue.solved_by, alice.id)
            self.assertIsNotNone(issue.solved_at)


class TestEnvelope(ApiTestCase):
    def test_health(self) -> None:
        body = self.client.get("/health").json()
        self.assertEqual(body["status"], "ok")
        self.assertEqual(body["database"], "connected")

    def test_health_degraded_when_database_down(self) -> None:
        with patch("corpgate.api.health.check_db_connected", return_value=False):
            response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "degraded")
        self.assertEqual(response.json()["database"], "disconnected")

    def test_malformed_body_is_422_with_ok_flag(self) -> None:
        response = self.client.post(
            "/api/auth/login", content="not json", headers={"Content-Type": "application/json"}
        )
        self.assertEqual(response.status_code, 422)
        self.assertFalse(response.json()["ok"])

    def test_active_status_constant_matches_wire(self) -> None:
        self.assertEqual(self.login("admin@x.com", "admin123")["user"]["status"], STATUS_ACTIVE)


class TestRateLimiting(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        app.state.rate_limiter = RateLimiter(3, 900)

    def test_login_attempts_capped_per_client(self) -> None:
        for _ in range(3):
            self.assertFalse(self.login("admin@x.com", "wrong")["ok"])
        response = self.post("/auth/login", {"email": "admin@x.com", "password": "admin123"})
        self.assertEqual(response.status_code, 429)
        self.assertEqual(
            response.json(), {"ok": False, "message": "Too many requests, please try again later"}
        )
        self.assertIn("Retry-After", response.headers)
        self.assertEqual(self.sessions_for("admin@x.com"), 0)

    def test_allowed_requests_report_remaining_budget(self) -> None:
        response = self.post("/auth/login", {"email": "admin@x.com", "password": "admin123"})
        self.assertEqual(response.headers["X-RateLimit-Limit"], "3")
        self.assertEqual(response.headers["X-RateLimit-Remaining"], "2")

    def test_health_is_not_limited(self) -> None:
        for _ in range(5):
            self.assertEqual(self.client.get("/health").status_code, 200)


class TestUnknownRoutesAndHeaders(ApiTestCase):
    def test_unknown_api_route_uses_envelope(self) -> None:
        response = self.client.get("/api/no-such-thing")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"ok": False, "message": "API endpoint not found"})

    def test_unknown_route_outside_api_keeps_default_body(self) -> None:
        response = self.client.get("/no-such-thing")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"detail": "Not Found"})

    def test_security_headers(self) -> None:
        response = self.post("/auth/login", {"email": "admin@x.com", "password": "admin123"})
        self.assertEqual(response.headers["X-Frame-Options"], "DENY")
        self.assertEqual(response.headers["X-Content-Type-Options"], "nosniff")
        self.assertEqual(response.headers["Cache-Control"], "no-store")
        self.assertTrue(response.headers["Content-Security-Policy"].startswith("default-src"))
        health = self.client.get("/health")
        self.assertEqual(health.headers["X-Content-Type-Options"], "nosniff")
        self.assertNotIn("Content-Security-Policy", health.headers)


if __name__ == "__main__":
    unittest.main()
