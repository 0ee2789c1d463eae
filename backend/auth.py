"""
Caller identity.

Sessions are owned by the external identity provider; the API only verifies
the bearer token it issued and reads the user id from the ``sub`` claim.
"""
import logging
from typing import Optional

import jwt
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

import config
from errors import AuthenticationError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
UNAUTHENTICATED_MESSAGE = "인증되지 않은 사용자입니다."

# auto_error=False so a missing header reaches our own error envelope
bearer_scheme = HTTPBearer(auto_error=False)


class User(BaseModel):
    id: str
    email: Optional[str] = None


def resolve_user(credentials: Optional[HTTPAuthorizationCredentials]) -> User:
    if credentials is None or not config.AUTH_JWT_SECRET:
        raise AuthenticationError(UNAUTHENTICATED_MESSAGE)

    try:
        payload = jwt.decode(
            credentials.credentials,
            config.AUTH_JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            audience=config.AUTH_JWT_AUDIENCE,
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("인증이 만료되었습니다. 다시 로그인해주세요.")
    except jwt.InvalidTokenError as e:
        logger.info("Rejected bearer token: %s", e)
        raise AuthenticationError(UNAUTHENTICATED_MESSAGE)

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError(UNAUTHENTICATED_MESSAGE)
    return User(id=str(user_id), email=payload.get("email"))


def create_access_token(user_id: str, email: Optional[str] = None, **claims) -> str:
    """Issue a token the way the identity provider does. Used by local tooling and tests."""
    payload = {"sub": user_id, "aud": config.AUTH_JWT_AUDIENCE, **claims}
    if email:
        payload["email"] = email
    return jwt.encode(payload, config.AUTH_JWT_SECRET, algorithm=JWT_ALGORITHM)
