import asyncio
from urllib.parse import parse_qs, urlparse

from app.core.config import settings
from app.crud.user import user as crud_user
from app.services.oauth import oauth_service
from tests.helpers.asserts import assert_redirect
from tests.helpers.auth import TEST_PASSWORD, login, session_data


class TestLogin:
    def test_student_lands_on_dashboard(self, client, student):
        response = login(client, student)
        assert_redirect(response, "/dashboard")

        page = client.get("/dashboard")
        assert page.status_code == 200
        assert "Welcome back, Stu!" in page.text

    def test_admin_lands_on_admin(self, client, admin):
        assert_redirect(login(client, admin), "/admin")

    def test_bad_password_rerenders_form(self, client, student):
        response = client.post("/auth/login", data={"email": student.email, "password": "nope"})
        assert response.status_code == 400
        assert "Invalid email or password" in response.text
        assert student.email in response.text

    def test_unverified_offers_resend(self, client, user_factory):
        user = user_factory(email_verified=False)
        response = client.post("/auth/login", data={"email": user.email, "password": TEST_PASSWORD})
        assert response.status_code == 400
        assert "/auth/resend-verification" in response.text

    def test_missing_fields(self, client):
        response = client.post("/auth/login", data={"email": "", "password": ""})
        assert response.status_code == 400
        assert "This field is required." in response.text

    def test_logged_in_user_skips_login_page(self, client, student):
        login(client, student)
        assert_redirect(client.get("/auth/login", follow_redirects=False), "/dashboard")

    def test_logout(self, client, student):
        login(client, student)
        response = client.post("/auth/logout", follow_redirects=False)
        assert_redirect(response, "/")
        assert_redirect(client.get("/dashboard", follow_redirects=False), "/auth/login")

    def test_session_of_deleted_account_is_dropped(self, client, db_session, student):
        login(client, student)
        assert session_data(client)["user_id"] == student.id

        crud_user.delete(db_session, id=student.id)
        response = client.get("/dashboard", follow_redirects=False)
        assert_redirect(response, "/auth/login")
        assert "user_id" not in session_data(client)

        # Now anonymous, so the login form is served instead of a dashboard redirect
        assert client.get("/auth/login", follow_redirects=False).status_code == 200


class TestRegistration:
    def test_register_then_verify_then_login(self, client, db_session, outbox):
        response = client.post("/auth/register", data={
            "username": "newbie",
            "email": "newbie@test.com",
            "password": "secret1",
            "password_confirm": "secret1",
            "first_name": "",
        })
        assert response.status_code == 200
        assert "Registration successful! Please check your email to verify your account." in response.text

        verify_url = outbox[0]["template_context"]["verify_url"]
        token = verify_url.rsplit("/", 1)[-1]
        response = client.get(f"/auth/verify/{token}")
        assert "Your email has been verified" in response.text

        user = crud_user.get_by_email(db_session, email="newbie@test.com")
        db_session.refresh(user)
        assert user.email_verified is True
        assert_redirect(login(client, user, "secret1"), "/dashboard")

    def test_password_mismatch(self, client):
        response = client.post("/auth/register", data={
            "username": "newbie",
            "email": "newbie@test.com",
            "password": "secret1",
            "password_confirm": "secret2",
        })
        assert response.status_code == 400
        assert "Passwords do not match." in response.text
        assert "secret1" not in response.text

    def test_duplicate_email(self, client, student):
        response = client.post("/auth/register", data={
            "username": "someone-new",
            "email": student.email,
            "password": "secret1",
            "password_confirm": "secret1",
        })
        assert response.status_code == 400
        assert "An account with this email already exists." in response.text

    def test_bad_verification_token(self, client):
        response = client.get("/auth/verify/not-a-token")
        assert "This link is invalid or has expired." in response.text


class TestPasswordReset:
    def test_same_message_for_known_and_unknown(self, client, student, outbox):
        known = client.post("/auth/forgot-password", data={"email": student.email})
        unknown = client.post("/auth/forgot-password", data={"email": "ghost@test.com"})
        message = "If an account exists with that email, a password reset link has been sent."
        assert message in known.text
        assert message in unknown.text
        assert len(outbox) == 1

    def test_reset_flow(self, client, student, outbox):
        client.post("/auth/forgot-password", data={"email": student.email})
        token = outbox[0]["template_context"]["reset_url"].rsplit("/", 1)[-1]

        assert client.get(f"/auth/reset-password/{token}").status_code == 200
        response = client.post(
            f"/auth/reset-password/{token}",
            data={"password": "changed1", "password_confirm": "changed1"},
            follow_redirects=False,
        )
        assert_redirect(response, "/auth/login")
        assert_redirect(login(client, student, "changed1"), "/dashboard")

        reused = client.get(f"/auth/reset-password/{token}", follow_redirects=False)
        assert_redirect(reused, "/auth/forgot-password")


class TestOAuth:
    def test_unconfigured_provider_shows_error(self, client):
        response = client.get("/auth/facebook/login")
        assert response.status_code == 200
        assert "This sign in method is not available." in response.text

    def test_unknown_provider(self, client):
        assert client.get("/auth/github/login").status_code == 404

    def test_google_sign_in_creates_account(self, client, db_session, monkeypatch):
        monkeypatch.setattr(settings, "GOOGLE_CLIENT_ID", "client-id")
        monkeypatch.setattr(settings, "GOOGLE_CLIENT_SECRET", "client-secret")

        async def _exchange_code(provider, code):
            return "access"

        async def _fetch_profile(provider, access_token):
            return {"id": "g-7", "email": "social@test.com", "given_name": "Sam"}

        monkeypatch.setattr(oauth_service, "_exchange_code", _exchange_code)
        monkeypatch.setattr(oauth_service, "_fetch_profile", _fetch_profile)

        start = client.get("/auth/google/login", follow_redirects=False)
        assert start.status_code == 303
        state = parse_qs(urlparse(start.headers["location"]).query)["state"][0]

        response = client.get(f"/auth/google/callback?code=abc&state={state}", follow_redirects=False)
        assert_redirect(response, "/dashboard")
        user = crud_user.get_by_email(db_session, email="social@test.com")
        assert user is not None
        assert user.email_verified is True

    def test_account_lookup_runs_off_the_event_loop(self, client, monkeypatch):
        monkeypatch.setattr(settings, "GOOGLE_CLIENT_ID", "client-id")
        monkeypatch.setattr(settings, "GOOGLE_CLIENT_SECRET", "client-secret")
        original = oauth_service.get_or_create_user
        loop_running = []

        async def _exchange_code(provider, code):
            return "access"

        async def _fetch_profile(provider, access_token):
            return {"id": "g-8", "email": "threaded@test.com"}

        def _get_or_create_user(db, provider, profile):
            try:
                asyncio.get_running_loop()
                loop_running.append(True)
            except RuntimeError:
                loop_running.append(False)
            return original(db, provider, profile)

        monkeypatch.setattr(oauth_service, "_exchange_code", _exchange_code)
        monkeypatch.setattr(oauth_service, "_fetch_profile", _fetch_profile)
        monkeypatch.setattr(oauth_service, "get_or_create_user", _get_or_create_user)

        start = client.get("/auth/google/login", follow_redirects=False)
        state = parse_qs(urlparse(start.headers["location"]).query)["state"][0]
        response = client.get(f"/auth/google/callback?code=abc&state={state}", follow_redirects=False)

        assert_redirect(response, "/dashboard")
        assert loop_running == [False]

    def test_forged_state_is_rejected(self, client, db_session, monkeypatch):
        monkeypatch.setattr(settings, "GOOGLE_CLIENT_ID", "client-id")
        monkeypatch.setattr(settings, "GOOGLE_CLIENT_SECRET", "client-secret")
        exchanged = []

        async def _exchange_code(provider, code):
            exchanged.append(code)
            return "access"

        monkeypatch.setattr(oauth_service, "_exchange_code", _exchange_code)
        client.get("/auth/google/login", follow_redirects=False)

        response = client.get("/auth/google/callback?code=abc&state=forged", follow_redirects=False)
        assert_redirect(response, "/auth/login")
        assert exchanged == []

    def test_provider_cancelled(self, client):
        response = client.get("/auth/google/callback?error=access_denied")
        assert "Google sign in was cancelled." in response.text
