"""
Security Utilities

Signed session tokens. The token only names a server-side session; the
teacher's upstream credentials stay in that session's cookie jar.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from teacher_portal.core.config import settings


def create_session_token(session_id: str | Any, expires_delta: timedelta | None = None) -> str:
    """
    Create a JWT naming a session.
    
    Args:
        session_id: The server-side session key.
        expires_delta: Optional custom expiration time.
        
    Returns:
        str: Encoded JWT token.
    """
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.SESSION_EXPIRE_MINUTES
        )
    
    to_encode = {
        "sub": str(session_id),
        "exp": expire,
        "iat": datetime.now(timezone.utc),
    }
    
    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )


def decode_session_token(token: str) -> str | None:
    """
    Decode and validate a session token.
    
    Args:
        token: JWT token string to decode.
        
    Returns:
        str: The session id if the token is valid, None otherwise.
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except JWTError:
        return None
    return payload.get("sub")
