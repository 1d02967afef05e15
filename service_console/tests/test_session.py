"""
Unit tests for console sessions and the route gate.
"""

import pytest
from jose import jwt
from unittest.mock import MagicMock

from shared.errors import AuthenticationError, AuthorizationError, BackendError
from service_console.app.domain.session import (
    SessionIdentity,
    SessionManager,
    redirect_for,
    require_admin,
    require_self_or_admin,
    require_staff,
)

ADMIN = SessionIdentity(id="e1", name="Ann", email="ann@school.test", is_admin=True)
TEACHER = SessionIdentity(id="e2", name="Tom", email="tom@school.test", is_teacher=True)
CLERK = SessionIdentity(id="e3", name="Cal", email="cal@school.test")


def backend_login_token(**claims) -> str:
    """Token as the backend signs it, with a key the console does not know."""
    payload = {"id": "e1", "name": "Ann", "email": "ann@school.test", "isAdmin": True, "isTeacher": False}
    payload.update(claims)
    return jwt.encode(payload, "backend-only-secret", algorithm="HS256")


class TestSessionManager:
    """Test cases for SessionManager."""

    @pytest.fixture
    def sessions(self, backend, console_config, clock):
        """Create SessionManager instance."""
        return SessionManager(backend, console_config, clock=clock)

    @pytest.mark.asyncio
    async def test_login_success(self, sessions, backend):
        """Test valid credentials yield the identity from the backend token."""
        backend.post.return_value = {"token": backend_login_token()}

        identity = await sessions.login("  Ann@School.test ", "secret")

        assert identity == SessionIdentity(id="e1", name="Ann", email="ann@school.test", is_admin=True)
        backend.post.assert_awaited_once_with(
            "/v1/employee/login", json={"email": "ann@school.test", "password": "secret"}
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("username,password", [("", "secret"), ("   ", "secret"), ("ann", "")])
    async def test_login_rejects_blank_credentials(self, sessions, backend, username, password):
        """Test blank credentials never reach the backend."""
        assert await sessions.login(username, password) is None
        backend.post.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_login_backend_rejection(self, sessions, backend):
        """Test a backend error means no session."""
        backend.post.side_effect = BackendError("Invalid credentials", backend_status=401)

        assert await sessions.login("ann@school.test", "wrong") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, {"token": ""}, {"token": "not-a-jwt"}, None])
    async def test_login_unusable_token(self, sessions, backend, body):
        """Test missing or undecodable tokens mean no session."""
        backend.post.return_value = body

        assert await sessions.login("ann@school.test", "secret") is None

    def test_issue_and_resolve_round_trip(self, sessions):
        """Test a console token resolves to the identity it was issued for."""
        token = sessions.issue_token(TEACHER)

        assert sessions.resolve(token) == TEACHER

    def test_resolve_expired_token(self, sessions, clock, console_config):
        """Test tokens stop resolving once the session TTL has passed."""
        token = sessions.issue_token(ADMIN)
        clock.advance(console_config.session_ttl_seconds)

        assert sessions.resolve(token) is None

    @pytest.mark.parametrize("token", [None, "", "garbage", backend_login_token()])
    def test_resolve_rejects_foreign_tokens(self, sessions, token):
        """Test malformed tokens and tokens signed by other keys are rejected."""
        assert sessions.resolve(token) is None

    def test_authenticate_from_cookie_and_bearer(self, sessions, console_config):
        """Test the session is read from the cookie or the Authorization header."""
        token = sessions.issue_token(ADMIN)

        cookie_request = MagicMock()
        cookie_request.cookies = {console_config.session_cookie_name: token}
        cookie_request.headers = {}
        assert sessions.authenticate(cookie_request) == ADMIN

        bearer_request = MagicMock()
        bearer_request.cookies = {}
        bearer_request.headers = {"Authorization": f"Bearer {token}"}
        assert sessions.authenticate(bearer_request) == ADMIN

    def test_authenticate_without_session(self, sessions):
        """Test requests without a session are rejected."""
        request = MagicMock()
        request.cookies = {}
        request.headers = {}

        with pytest.raises(AuthenticationError):
            sessions.authenticate(request)


class TestRouteGate:
    """Test cases for redirects and role checks."""

    @pytest.mark.parametrize("path,identity,target", [
        ("/", ADMIN, "/dashboard"),
        ("/", None, None),
        ("/dashboard", None, "/"),
        ("/dashboard/students", None, "/"),
        ("/dashboard", CLERK, None),
    ])
    def test_redirect_for(self, path, identity, target):
        """Test navigation redirects for signed-in and anonymous users."""
        assert redirect_for(path, identity) == target

    def test_require_admin(self):
        """Test only admins pass the admin gate."""
        assert require_admin(ADMIN) is ADMIN
        with pytest.raises(AuthorizationError):
            require_admin(TEACHER)

    def test_require_staff(self):
        """Test admins and teachers pass the staff gate."""
        assert require_staff(ADMIN) is ADMIN
        assert require_staff(TEACHER) is TEACHER
        with pytest.raises(AuthorizationError):
            require_staff(CLERK)

    def test_identity_from_backend_claims(self):
        """Test backend camelCase claims map onto the identity."""
        identity = SessionIdentity.from_backend_claims({"id": 7, "name": "Tom", "isTeacher": True})

        assert identity.id == "7"
        assert identity.is_teacher
        assert not identity.is_admin
        assert identity.email == ""

    def test_require_self_or_admin(self):
        """Test employees pass for their own record and admins for any."""
        assert require_self_or_admin(TEACHER, "e2") is TEACHER
        assert require_self_or_admin(ADMIN, "e2") is ADMIN
        with pytest.raises(AuthorizationError):
            require_self_or_admin(TEACHER, "e1")
        with pytest.raises(AuthorizationError):
            require_self_or_admin(CLERK, "")
