# tokens.py
"""Signed bearer tokens.

A token is a compact HS256 JWT with the claims ``sub`` (username), ``roles``
(``ROLE_USER``/``ROLE_ADMIN``), ``iat`` and ``exp``. Nothing is stored server
side: a token is valid when its signature verifies and ``exp`` lies in the
future according to the service clock.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, FrozenSet, Optional, Union

import jwt

from config import Settings
from errors import ConfigError, InvalidReason, TokenInvalid
from policy import Principal

logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ["sub", "iat", "exp"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TokenClaims:
    subject: str
    roles: FrozenSet[str]
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class InvalidToken:
    reason: InvalidReason

    def to_error(self) -> TokenInvalid:
        return TokenInvalid(self.reason)


class TokenService:
    def __init__(
        self, settings: Settings, clock: Optional[Callable[[], datetime]] = None
    ):
        self._key = settings.jwt_secret_key
        self._algorithm = settings.jwt_algorithm
        self._ttl = settings.access_token_ttl
        self._clock = clock or utcnow

    def _signing_key(self) -> str:
        if not self._key:
            raise ConfigError("JWT_SECRET_KEY is not set")
        return self._key

    def issue(self, principal: Principal) -> str:
        key = self._signing_key()
        now = self._clock()
        expire = now + self._ttl
        to_encode = {
            "sub": principal.username,
            "roles": sorted(principal.roles),
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
        }
        return jwt.encode(to_encode, key, algorithm=self._algorithm)

    def validate(self, token: str) -> Union[TokenClaims, InvalidToken]:
        """Check signature, then expiry. Bad tokens are returned, not raised."""
        key = self._signing_key()
        try:
            payload = jwt.decode(
                token,
                key,
                algorithms=[self._algorithm],
                # expiry is judged against our own clock below
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": REQUIRED_CLAIMS,
                },
            )
        except jwt.InvalidSignatureError:
            return InvalidToken(InvalidReason.BAD_SIGNATURE)
        except jwt.InvalidTokenError:
            return InvalidToken(InvalidReason.MALFORMED)

        claims = self._parse_claims(payload)
        if claims is None:
            return InvalidToken(InvalidReason.MALFORMED)
        if claims.expires_at <= self._clock():
            return InvalidToken(InvalidReason.EXPIRED)
        return claims

    def extract_subject(self, token: str) -> str:
        """Read ``sub`` without verifying anything. Call validate() first."""
        try:
            payload = jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError:
            raise TokenInvalid(InvalidReason.MALFORMED)
        subject = payload.get("sub")
        if not isinstance(subject, str):
            raise TokenInvalid(InvalidReason.MALFORMED)
        return subject

    @staticmethod
    def _parse_claims(payload: dict) -> Optional[TokenClaims]:
        subject = payload.get("sub")
        roles = payload.get("roles", [])
        iat = payload.get("iat")
        exp = payload.get("exp")
        if not isinstance(subject, str) or not subject:
            return None
        if not isinstance(roles, list) or not all(isinstance(r, str) for r in roles):
            return None
        for value in (iat, exp):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return None
        try:
            issued_at = datetime.fromtimestamp(iat, tz=timezone.utc)
            expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
        except (OverflowError, ValueError, OSError):
            # NaN or outside the platform time_t range
            return None
        return TokenClaims(
            subject=subject,
            roles=frozenset(roles),
            issued_at=issued_at,
            expires_at=expires_at,
        )
