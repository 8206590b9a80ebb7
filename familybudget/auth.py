import hashlib
import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone

import bcrypt
from fastapi import Depends, Request, HTTPException, status
from jose import jwt, JWTError
from sqlalchemy.orm import Session

from familybudget.config import (
    JWT_SECRET,
    JWT_ALGORITHM,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    BCRYPT_ROUNDS,
)
from familybudget.database import get_db
from familybudget.models.user import User

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Hash a plain-text password using bcrypt."""
    # bcrypt only looks at the first 72 bytes and raises on longer input
    pw_bytes = password.encode("utf-8")[:72]
    hashed = bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain-text password against a bcrypt hash."""
    try:
        pw_bytes = plain_password.encode("utf-8")[:72]
        return bcrypt.checkpw(pw_bytes, hashed_password.encode("utf-8"))
    except ValueError as e:
        logger.warning(f"Bcrypt verification error: {e}")
        return False


def create_access_token(user_id: int) -> str:
    """Create a short-lived JWT access token with an expiry claim and a unique JTI."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {
        "sub": str(user_id),
        "type": "access",
        "exp": expire,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> dict | None:
    """Decode and verify a JWT token. Returns the payload or None on failure."""
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None


def generate_secret() -> str:
    """Random secret handed to the client for refresh, reset and invitation tokens."""
    return secrets.token_hex(32)


def hash_secret(secret: str) -> str:
    """Only this digest is stored; the raw secret never touches the database."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    FastAPI dependency: extracts the Bearer token from the Authorization
    header, verifies it, and returns the active user it belongs to.
    Raises HTTP 401 if the token is missing, invalid or expired.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise _unauthorized("Access token required")

    token = auth_header.split(" ", 1)[1]
    payload = verify_token(token)
    if payload is None or payload.get("type") != "access":
        raise _unauthorized("Invalid or expired token")

    sub = payload.get("sub")
    if sub is None or not str(sub).isdigit():
        raise _unauthorized("Token payload missing required claims")

    user = db.get(User, int(sub))
    if user is None or not user.is_active:
        raise _unauthorized("Invalid or expired token")

    return user
