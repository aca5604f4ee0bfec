"""JWT token creation and validation."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import settings

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """The authenticated caller."""

    id: int
    role: str = "user"

    @property
    def is_creator(self) -> bool:
        return self.role == "creator"


def normalize_role(value) -> str:
    return str(value if value is not None else "user").strip().lower() or "user"


def create_access_token(user_id: int, role: str = "user") -> str:
    """Create a short-lived JWT access token."""
    payload = {
        "sub": str(user_id),
        "role": normalize_role(role),
        "exp": datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
        "type": "access",
    }
    return jwt.encode(payload, settings.app_secret_key, algorithm=ALGORITHM)


def decode_token(token: str, expected_type: str = "access") -> Identity:
    """Decode and validate a JWT token, returning the caller identity.

    Raises:
        HTTPException: If token is invalid, expired, or wrong type.
    """
    try:
        payload = jwt.decode(token, settings.app_secret_key, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    if payload.get("type") != expected_type:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")

    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")

    return Identity(id=user_id, role=normalize_role(payload.get("role")))


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> Identity:
    """FastAPI dependency that resolves the Bearer token to an Identity."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized (no token)"
        )
    return decode_token(credentials.credentials, expected_type="access")


async def require_creator(user: Identity = Depends(get_current_user)) -> Identity:
    """FastAPI dependency that only admits creators."""
    if not user.is_creator:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Creator access only")
    return user
