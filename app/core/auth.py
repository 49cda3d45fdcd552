# app/core/auth.py
import secrets
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader, OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt

from app.core.config import settings
from app.log.logging import logger

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def verify_jwt_token(token: str) -> Dict[str, Any]:
    """Decode and verify a bearer token signed with the service secret."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])


async def get_current_user(token: str = Depends(oauth2_scheme)) -> str:
    """Return the caller's user id from the ``id`` (or ``sub``) claim."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = verify_jwt_token(token)
    except ExpiredSignatureError:
        logger.warning("Token expired")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except JWTError as e:
        logger.warning(f"JWT validation error: {str(e)}")
        raise credentials_exception

    user_id = payload.get("id", payload.get("sub"))
    if user_id is None or str(user_id).strip() == "":
        logger.warning("Token payload missing user id claim", claims=list(payload))
        raise credentials_exception

    logger.debug(f"Successful authentication for user_id: {user_id}")
    return str(user_id)


async def verify_api_key(api_key: Optional[str] = Security(api_key_header)) -> None:
    """Guard for internal endpoints called by other services."""
    if not api_key or not secrets.compare_digest(api_key, settings.internal_api_key):
        logger.warning("Rejected request with missing or invalid API key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )
