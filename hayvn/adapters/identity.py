# hayvn/adapters/identity.py
from __future__ import annotations

from dataclasses import dataclass

import jwt

from ..config import settings
from ..domain.errors import AuthError


@dataclass(frozen=True)
class Principal:
    agent_id: str
    brokerage_id: str | None


class JwtIdentityVerifier:
    """Verifies session JWTs from the identity provider; the `sub` claim is the agent id."""

    def __init__(self, secret: str | None, *, algorithm: str = "HS256", audience: str | None = None) -> None:
        self.secret = secret
        self.algorithm = algorithm
        self.audience = audience

    @classmethod
    def from_settings(cls) -> "JwtIdentityVerifier":
        return cls(
            settings.AUTH_JWT_SECRET,
            algorithm=settings.AUTH_JWT_ALGORITHM,
            audience=settings.AUTH_JWT_AUDIENCE,
        )

    def subject(self, token: str) -> str:
        if not self.secret:
            raise AuthError("Invalid session")
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                options={"verify_aud": self.audience is not None},
            )
        except jwt.PyJWTError as e:
            raise AuthError("Invalid session") from e

        sub = claims.get("sub")
        if not sub:
            raise AuthError("Invalid session")
        return str(sub)


def bearer_token(authorization: str | None) -> str:
    header = authorization or ""
    if not header.lower().startswith("bearer "):
        raise AuthError("Missing Authorization bearer token")
    token = header[7:].strip()
    if not token:
        raise AuthError("Missing Authorization bearer token")
    return token
