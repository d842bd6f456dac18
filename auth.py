"""Session tokens and the bearer identity check for protected routes."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from errors import Unauthorized

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    email: str


class IdentityVerifier(Protocol):
    def verify(self, credential: str) -> Identity:
        ...


def issue_token(email: str, secret: str, ttl_minutes: int = 60) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "email": email,
        "iat": now,
        "exp": now + timedelta(minutes=ttl_minutes),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


class JWTIdentityVerifier:
    """Accepts tokens signed by :func:`issue_token` with the same secret."""

    def __init__(self, secret: str):
        self.secret = secret

    def verify(self, credential: str) -> Identity:
        try:
            claims = jwt.decode(credential, self.secret, algorithms=[ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise Unauthorized("Token has expired")
        except jwt.InvalidTokenError as e:
            logger.warning("Rejected bearer token: %s", e)
            raise Unauthorized("Invalid token")

        email = claims.get("email")
        if not email:
            raise Unauthorized("Token carries no email")
        return Identity(email=email)


async def require_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthorized("Unauthorized access")

    verifier: Optional[IdentityVerifier] = getattr(request.app.state, "identity_verifier", None)
    if verifier is None:
        raise Unauthorized("Identity verification is not configured")
    return verifier.verify(credentials.credentials)
