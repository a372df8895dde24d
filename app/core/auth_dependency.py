from typing import Optional
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError
from app.core import config
from app.db.session import SessionLocal

bearer_scheme = HTTPBearer(auto_error=False)


def get_db():
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def decode_token(token: str) -> str:
    """Verify an identity-provider JWT and return its subject (the user id)."""
    if not config.AUTH_JWT_SECRET:
        raise HTTPException(status_code=401, detail="Authentication not configured")

    options = {"verify_aud": bool(config.AUTH_JWT_AUDIENCE)}
    try:
        payload = jwt.decode(
            token,
            config.AUTH_JWT_SECRET,
            algorithms=[config.AUTH_JWT_ALGORITHM],
            audience=config.AUTH_JWT_AUDIENCE,
            options=options,
        )
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token")
    return str(user_id)


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """Get the current user id from the bearer token."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return decode_token(credentials.credentials)


def get_optional_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """Like get_current_user_id, but anonymous callers get None."""
    if credentials is None:
        return None
    return decode_token(credentials.credentials)


def ensure_same_user(current_user_id: str, requested_user_id: str) -> None:
    """Reject access to another user's data."""
    if current_user_id != requested_user_id:
        raise HTTPException(status_code=403, detail="Forbidden")
