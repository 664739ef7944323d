"""
Identity resolution.

Every request is mapped to an ``Identity``: an authenticated user id taken
from a bearer token and/or an anonymous session id the client generates and
sends in ``X-Session-Id``. Per-visitor state is keyed by ``Identity.key``,
which prefers the user id when both are present.

Anonymous session rows are not migrated to the user id after login.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from trellis.config import get_config
from trellis.errors import AuthRequired, InvalidRequest, ServiceUnavailable
from trellis.logger import get_logger

logger = get_logger("identity")

ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24 * 7

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    user_id: Optional[str] = None
    session_id: Optional[str] = None

    @property
    def key(self) -> Optional[str]:
        return self.user_id or self.session_id

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Issue an HS256 token whose ``sub`` claim is the user id."""
    config = get_config()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"sub": user_id, "exp": expire}
    return jwt.encode(to_encode, config.secret_key, algorithm=config.jwt_algorithm)


def decode_user_id(token: str) -> str:
    """Return the user id carried by ``token``; raise AuthRequired when it does not validate."""
    config = get_config()
    try:
        payload = jwt.decode(token, config.secret_key, algorithms=[config.jwt_algorithm])
    except JWTError as e:
        logger.info("identity: method=decode result=rejected error=%s", e)
        raise AuthRequired("Could not validate credentials")
    user_id = payload.get("sub")
    if not user_id:
        raise AuthRequired("Could not validate credentials")
    return str(user_id)


def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    x_session_id: Optional[str] = Header(None, alias="X-Session-Id"),
) -> Identity:
    """
    Resolve the caller. Never fails for anonymous callers; an invalid bearer
    token is rejected rather than silently downgraded to anonymous.
    """
    user_id = decode_user_id(credentials.credentials) if credentials else None
    session_id = x_session_id.strip() if x_session_id and x_session_id.strip() else None
    return Identity(user_id=user_id, session_id=session_id)


def identity_key(identity: Identity) -> str:
    """The key per-visitor state is stored under; InvalidRequest for an unidentified caller."""
    if identity.key is None:
        raise InvalidRequest("An X-Session-Id header or bearer token is required")
    return identity.key


def authenticated_user_id(identity: Identity) -> str:
    """The caller's user id; AuthRequired for anonymous callers."""
    if not identity.is_authenticated:
        raise AuthRequired("Authentication required")
    return identity.user_id


def require_identity(identity: Identity = Depends(get_identity)) -> Identity:
    """Caller must be identifiable (session header or bearer token)."""
    identity_key(identity)
    return identity


def require_user(identity: Identity = Depends(get_identity)) -> Identity:
    """Caller must be authenticated."""
    authenticated_user_id(identity)
    return identity


def require_admin(api_key: Optional[str] = Header(None, alias="X-Admin-API-Key")) -> str:
    """
    Verify the admin API key from the environment (ADMIN_API_KEY).
    Catalog administration is the only caller of this dependency.
    """
    expected_key = get_config().admin_api_key
    if not expected_key or not expected_key.strip():
        raise ServiceUnavailable("Admin API key not configured (set ADMIN_API_KEY in .env)")
    if api_key != expected_key:
        raise AuthRequired("Invalid admin API key")
    return api_key
