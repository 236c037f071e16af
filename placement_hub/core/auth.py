"""
Authentication Utility - JWT and Password handling.

Provides:
- Password hashing with bcrypt
- JWT token creation/verification
- FastAPI dependency that turns a bearer token into a SessionContext
"""

from datetime import datetime, timedelta, timezone
from typing import AsyncIterator, Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from placement_hub.core.config import get_settings
from placement_hub.core.session import SessionContext

settings = get_settings()

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token extractor
bearer_scheme = HTTPBearer()


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def get_remote():
    """FastAPI dependency - the process-wide Remote Data Client."""
    from placement_hub.services.remote import get_remote_client
    return get_remote_client()


async def get_session_context(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    remote=Depends(get_remote),
) -> AsyncIterator[SessionContext]:
    """
    FastAPI dependency - Session for the current bearer token.

    The context subscribes to session-change events for its identity and is
    closed once the response is sent.

    Usage:
        @router.get("/protected")
        async def route(session: SessionContext = Depends(get_session_context)):
            return session.identity
    """
    identity = await remote.get_session(credentials.credentials)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    session = SessionContext(identity, remote)
    try:
        yield session
    finally:
        session.close()
