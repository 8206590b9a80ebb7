# ---------- routes/auth_routes.py ----------
"""
Auth routes: registration, login, token refresh and password recovery.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr, Field, model_validator
from sqlalchemy.orm import Session

from familybudget.auth import get_current_user
from familybudget.database import get_db
from familybudget.models.user import User
from familybudget.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

GENERIC_RESET_MESSAGE = "If an account with this email exists, a password reset link has been sent."


# ── Pydantic schemas ──────────────────────────────────────────────
class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6)
    group_id: Optional[int] = None
    token: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class LogoutRequest(BaseModel):
    refresh_token: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    password: str = Field(min_length=6)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


def serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "is_active": user.is_active,
        "preferred_start_day": user.preferred_start_day,
        "groups": [
            {"group_id": link.group_id, "display_name": link.display_name}
            for link in user.groups
        ],
        "created_at": user.created_at,
    }


# ── Routes ────────────────────────────────────────────────────────
@router.post("/register", status_code=201)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    """Create an account. With an invitation token the user joins that group instead of a personal one."""
    try:
        user = AuthService.register(
            db, body.name, body.email, body.password,
            group_id=body.group_id, invite_token=body.token,
        )
        tokens = AuthService.issue_tokens(db, user)
        return {
            "success": True,
            "data": {"user": serialize_user(user), **tokens},
            "message": "User registered successfully.",
        }
    except HTTPException:
        raise
    except Exception:
        logger.exception("Registration error")
        raise HTTPException(status_code=500, detail="Server error during registration")


@router.post("/login")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    try:
        user = AuthService.authenticate(db, body.email, body.password)
        tokens = AuthService.issue_tokens(db, user)
        return {
            "success": True,
            "data": {"user": serialize_user(user), **tokens},
            "message": "Login successful",
        }
    except HTTPException:
        raise
    except Exception:
        logger.exception("Login error")
        raise HTTPException(status_code=500, detail="Server error during login")


@router.post("/refresh-token")
def refresh_token(body: RefreshRequest, db: Session = Depends(get_db)):
    """Exchange a refresh token for a new access/refresh pair."""
    try:
        user, tokens = AuthService.rotate_refresh_token(db, body.refresh_token)
        return {"success": True, "data": tokens, "message": "Token refreshed"}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Refresh token error")
        raise HTTPException(status_code=500, detail="Server error refreshing token")


@router.post("/logout")
def logout(
    body: Optional[LogoutRequest] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Drop the presented refresh token; the client discards its access token."""
    try:
        if body is not None and body.refresh_token:
            AuthService.revoke_refresh_token(db, user, body.refresh_token)
        return {"success": True, "message": "Logout successful"}
    except Exception:
        logger.exception("Logout error")
        raise HTTPException(status_code=500, detail="Server error during logout")


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return {"success": True, "data": serialize_user(user)}


@router.post("/forgot-password")
def forgot_password(body: ForgotPasswordRequest, db: Session = Depends(get_db)):
    # Same answer whether or not the account exists
    try:
        AuthService.request_password_reset(db, body.email)
    except Exception:
        logger.exception("Forgot password error")
    return {"success": True, "message": GENERIC_RESET_MESSAGE}


@router.post("/reset-password/{token}")
def reset_password(token: str, body: ResetPasswordRequest, db: Session = Depends(get_db)):
    try:
        AuthService.reset_password(db, token, body.password)
        return {"success": True, "message": "Password has been reset successfully."}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Reset password error")
        raise HTTPException(
            status_code=500,
            detail="An error occurred while resetting your password. Please try again.",
        )
