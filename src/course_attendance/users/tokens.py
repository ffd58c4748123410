"""Signed bearer tokens (HS256 JWT) for API authentication."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt

from ..core.constants import DEFAULT_TOKEN_HOURS
from ..core.exceptions import AuthenticationError

JWT_ALGO = "HS256"


class TokenIssuer:
    def __init__(self, secret: str, *, expires_hours: int = DEFAULT_TOKEN_HOURS):
        self._secret = secret
        self._ttl = timedelta(hours=int(expires_hours))

    def issue(self, *, user_id: str, role: str, now: datetime | None = None) -> str:
        now = now or datetime.now(timezone.utc)
        payload = {
            "userId": user_id,
            "role": role,
            "iat": int(now.timestamp()),
            "exp": int((now + self._ttl).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=JWT_ALGO)

    def decode(self, token: str) -> dict:
        """Return the payload; raises AuthenticationError when invalid or expired."""
        try:
            return jwt.decode(token, self._secret, algorithms=[JWT_ALGO])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid token")
