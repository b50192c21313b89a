from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Sequence

import jwt
from jwt import InvalidTokenError

from ..domain.identity import Identity

SESSION_TTL = timedelta(hours=1)
_REQUIRED_CLAIMS = ["sub", "name", "exp"]


class InvalidSessionError(ValueError):
    pass


@dataclass(frozen=True)
class SessionClaims:
    """What a verified session token asserts about its holder."""

    user_id: int
    name: str
    expires_at: datetime

    def identity(self) -> Identity:
        return Identity(user_id=self.user_id, name=self.name)


def create_session_token(
    *,
    identity: Identity,
    secret: str,
    algorithm: str = "HS256",
    ttl: timedelta = SESSION_TTL,
) -> str:
    issued_at = datetime.now(timezone.utc)
    claims = {
        "sub": str(identity.user_id),
        "name": identity.name,
        "iat": issued_at,
        "exp": issued_at + ttl,
    }
    return jwt.encode(claims, secret, algorithm=algorithm)


def verify_session_token(token: str, *, secret: str, algorithms: Sequence[str]) -> SessionClaims:
    try:
        claims = jwt.decode(token, secret, algorithms=list(algorithms), options={"require": _REQUIRED_CLAIMS})
    except InvalidTokenError as exc:
        # Expired, tampered and claim-less tokens all land here.
        raise InvalidSessionError("invalid session token") from exc

    subject, name = claims["sub"], claims["name"]
    if not isinstance(subject, str) or not subject.isdigit():
        raise InvalidSessionError("session subject is not a user id")
    if not isinstance(name, str) or not name:
        raise InvalidSessionError("session carries no user name")
    return SessionClaims(
        user_id=int(subject),
        name=name,
        expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
    )
