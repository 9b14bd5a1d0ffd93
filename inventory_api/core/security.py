"""
Inventory API — Security Layer
Password hashing, JWT issuance and verification.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from inventory_api.config import Settings
from inventory_api.core.exceptions import AuthenticationError, ConfigurationError
from inventory_api.models.users import ROLE_ADMIN, ROLES

if TYPE_CHECKING:
    from inventory_api.models.users import User

logger = logging.getLogger("inventory_api.security")

# ─── Password hashing ─────────────────────────────────────────────────────────
# pbkdf2_sha256 embeds a random salt in every hash and has no 72-byte limit
_pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    """Return a salted hash of the given plain-text password."""
    return _pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Return True if the plain password matches the hash. Never raises."""
    if not plain_password or not hashed_password:
        return False
    try:
        return _pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # Unrecognised or corrupted hash
        return False


# ─── Identity context ─────────────────────────────────────────────────────────


class CurrentUser:
    """Represents the authenticated user extracted from a verified JWT."""

    def __init__(
        self,
        user_id: int,
        role: str,
        name: str = "",
        email: str = "",
    ) -> None:
        self.user_id = user_id
        self.role = role
        self.name = name
        self.email = email

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def __repr__(self) -> str:
        return f"CurrentUser(user_id={self.user_id!r}, role={self.role!r})"


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: datetime


# ─── JWT ──────────────────────────────────────────────────────────────────────


class TokenService:
    """
    Issues and verifies HS256 bearer tokens.

    Built once by the app factory from the process settings; a missing
    signing key is a startup failure, not a per-request one.
    """

    def __init__(self, settings: Settings) -> None:
        if not settings.JWT_SECRET or not settings.JWT_SECRET.strip():
            raise ConfigurationError("JWT_SECRET")
        self._secret = settings.JWT_SECRET
        self._algorithm = settings.JWT_ALGORITHM
        self.issuer = settings.JWT_ISSUER
        self.audience = settings.JWT_AUDIENCE
        self.default_expiry_minutes = settings.JWT_EXPIRY_MINUTES
        self.login_expiry_minutes = settings.JWT_LOGIN_EXPIRY_MINUTES

    def issue(
        self,
        user: "User",
        ttl_minutes: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> IssuedToken:
        """
        Create a signed JWT for the given user.

        :param user: Persisted user; id, name, email and role are embedded.
        :param ttl_minutes: Override the default lifetime from settings.
        :param now: Issue time, defaults to the current UTC time.
        """
        minutes = self.default_expiry_minutes if ttl_minutes is None else ttl_minutes
        if minutes <= 0:
            raise ValueError("token lifetime must be a positive number of minutes")
        issued_at = now or datetime.now(tz=timezone.utc)
        expires_at = issued_at + timedelta(minutes=minutes)

        payload: Dict[str, Any] = {
            "sub": str(user.id),
            "name": user.name,
            "email": user.email,
            "role": user.role,
            "jti": str(uuid.uuid4()),
            "iat": issued_at,
            "exp": expires_at,
            "iss": self.issuer,
            "aud": self.audience,
        }
        token = jwt.encode(payload, self._secret, algorithm=self._algorithm)
        return IssuedToken(token=token, expires_at=expires_at)

    def decode(self, token: str) -> Dict[str, Any]:
        """
        Validate signature, issuer, audience and expiry and return the claims.
        Raises AuthenticationError on any failure.
        """
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self.audience,
                issuer=self.issuer,
                options={
                    "require_exp": True,
                    "require_sub": True,
                    "require_jti": True,
                    "leeway": 0,
                },
            )
        except JWTError as exc:
            logger.debug("rejected bearer token: %s", exc)
            raise AuthenticationError() from exc

    def verify(self, token: str) -> CurrentUser:
        """Decode a bearer token into the request's identity context."""
        payload = self.decode(token)
        role = payload.get("role")
        try:
            user_id = int(payload["sub"])
        except (KeyError, TypeError, ValueError) as exc:
            raise AuthenticationError() from exc

        if role not in ROLES:
            logger.debug("rejected bearer token with unknown role %r", role)
            raise AuthenticationError()

        return CurrentUser(
            user_id=user_id,
            role=role,
            name=payload.get("name", ""),
            email=payload.get("email", ""),
        )
