"""
Console sessions: backend login, session tokens and the route gate.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from fastapi import Request
from jose import JWTError, jwt

from shared.config import BaseConfig
from shared.errors import AuthenticationError, AuthorizationError, BackendError
from shared.logging import get_logger
from service_console.app.adapters.backend_client import BackendClient

LANDING_PATH = "/"
DASHBOARD_PATH = "/dashboard"


@dataclass(frozen=True)
class SessionIdentity:
    """Signed-in employee as carried by the console session."""

    id: str
    name: str
    email: str
    is_admin: bool = False
    is_teacher: bool = False

    @classmethod
    def from_backend_claims(cls, claims: Dict[str, Any]) -> "SessionIdentity":
        return cls(
            id=str(claims.get("id", "")),
            name=claims.get("name") or "",
            email=claims.get("email") or "",
            is_admin=bool(claims.get("isAdmin", False)),
            is_teacher=bool(claims.get("isTeacher", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SessionManager:
    """Logs employees in against the backend and issues console session tokens.

    The backend signs its own login token with a key the console never sees,
    so its claims are read unverified and re-issued in a console token signed
    with ``session_secret``.
    """

    def __init__(self, backend: BackendClient, config: BaseConfig, clock=time.time):
        self.backend = backend
        self.config = config
        self._clock = clock
        self.logger = get_logger("console.session")

    async def login(self, username: str, password: str) -> Optional[SessionIdentity]:
        """Return the identity for valid credentials, otherwise ``None``."""
        if not username or not username.strip() or not password:
            return None

        try:
            body = await self.backend.post(
                "/v1/employee/login",
                json={"email": username.strip().lower(), "password": password},
            )
        except BackendError as exc:
            self.logger.warning("Login rejected", backend_status=exc.backend_status, error=exc.reason)
            return None

        token = body.get("token") if isinstance(body, dict) else None
        if not token:
            self.logger.warning("Login response carried no token")
            return None

        try:
            claims = jwt.get_unverified_claims(token)
        except JWTError as exc:
            self.logger.warning("Backend token could not be decoded", error=str(exc))
            return None

        identity = SessionIdentity.from_backend_claims(claims)
        if not identity.id:
            return None

        self.logger.info("Employee logged in", user_id=identity.id, is_admin=identity.is_admin)
        return identity

    def issue_token(self, identity: SessionIdentity) -> str:
        now = int(self._clock())
        claims = {
            "sub": identity.id,
            "name": identity.name,
            "email": identity.email,
            "isAdmin": identity.is_admin,
            "isTeacher": identity.is_teacher,
            "iat": now,
            "exp": now + self.config.session_ttl_seconds,
        }
        return jwt.encode(claims, self.config.session_secret, algorithm=self.config.session_algorithm)

    def resolve(self, token: Optional[str]) -> Optional[SessionIdentity]:
        """Decode a console session token; invalid or expired tokens give ``None``."""
        if not token:
            return None

        try:
            claims = jwt.decode(
                token,
                self.config.session_secret,
                algorithms=[self.config.session_algorithm],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            self.logger.debug("Session token rejected", error=str(exc))
            return None

        # Expiry is checked against the injected clock rather than wall time
        expires_at = claims.get("exp")
        if not isinstance(expires_at, (int, float)) or self._clock() >= expires_at:
            return None

        return SessionIdentity(
            id=str(claims.get("sub", "")),
            name=claims.get("name", ""),
            email=claims.get("email", ""),
            is_admin=bool(claims.get("isAdmin", False)),
            is_teacher=bool(claims.get("isTeacher", False)),
        )

    def token_from_request(self, request: Request) -> Optional[str]:
        """Session cookie first, then an ``Authorization: Bearer`` header."""
        token = request.cookies.get(self.config.session_cookie_name)
        if token:
            return token

        authorization = request.headers.get("Authorization", "")
        if authorization.startswith("Bearer "):
            return authorization[7:].strip() or None
        return None

    def authenticate(self, request: Request) -> SessionIdentity:
        identity = self.resolve(self.token_from_request(request))
        if identity is None:
            raise AuthenticationError("Login required")

        request.state.identity = identity
        return identity


def redirect_for(path: str, identity: Optional[SessionIdentity]) -> Optional[str]:
    """Where to send a navigation to ``path``, or ``None`` to let it through."""
    if identity is not None and path == LANDING_PATH:
        return DASHBOARD_PATH
    if identity is None and path != LANDING_PATH:
        return LANDING_PATH
    return None


def require_admin(identity: SessionIdentity) -> SessionIdentity:
    if not identity.is_admin:
        raise AuthorizationError("Admin role required", details={"user_id": identity.id})
    return identity


def require_self_or_admin(identity: SessionIdentity, employee_id: str) -> SessionIdentity:
    """Employees may act on their own record; admins on anyone's."""
    if identity.is_admin or identity.id == employee_id:
        return identity
    raise AuthorizationError(
        "Admin role required for another employee's record",
        details={"user_id": identity.id, "employee_id": employee_id},
    )


def require_staff(identity: SessionIdentity) -> SessionIdentity:
    """Admins and teachers may change student records."""
    if not (identity.is_admin or identity.is_teacher):
        raise AuthorizationError("Admin or teacher role required", details={"user_id": identity.id})
    return identity
