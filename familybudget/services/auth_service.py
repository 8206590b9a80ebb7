"""
auth_service.py: Accounts, sessions and password recovery
Access tokens are stateless JWTs. Refresh and password-reset tokens are random
secrets stored only as sha256 digests and deleted once redeemed.
"""

import logging
from datetime import datetime, timezone, timedelta

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from familybudget.auth import (
    create_access_token,
    generate_secret,
    hash_password,
    hash_secret,
    verify_password,
)
from familybudget.config import (
    PASSWORD_RESET_EXPIRE_MINUTES,
    REFRESH_TOKEN_EXPIRE_DAYS,
)
from familybudget.models.group import Group
from familybudget.models.token import Token
from familybudget.models.user import User
from familybudget.services import email_service
from familybudget.services.access import bad_request, conflict, get_group
from familybudget.services.activity_service import ActivityService
from familybudget.services.group_service import GroupService

logger = logging.getLogger(__name__)

REFRESH = "refresh_token"
PASSWORD_RESET = "password_reset"


def _invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


class AuthService:
    @staticmethod
    def register(
        db: Session,
        name: str,
        email: str,
        password: str,
        group_id: int | None = None,
        invite_token: str | None = None,
    ) -> User:
        """Create the account, then join the inviting group or open a personal one."""
        email = email.lower()
        if db.query(User).filter(User.email == email).first() is not None:
            raise conflict("A user with this email already exists. Try again with another email.")

        user = User(name=name, email=email, hashed_password=hash_password(password))
        db.add(user)
        db.flush()

        joined: Group | None = None
        if group_id is not None and invite_token:
            invitation = GroupService.find_invitation(db, group_id, invite_token, invited_email=email)
            if invitation is not None:
                joined = get_group(db, group_id)
                if joined is not None:
                    GroupService.add_member(db, joined, user)
                db.delete(invitation)
            else:
                logger.info(f"Ignoring invalid invitation for {email} to group {group_id}")

        personal: Group | None = None
        if joined is None:
            personal = Group(name=f"Grupo Pessoal de {name}", created_by=user.id)
            db.add(personal)
            db.flush()
            GroupService.add_member(db, personal, user, role="admin")

        db.commit()
        db.refresh(user)

        if joined is not None:
            ActivityService.record(
                db, joined.id, user, "member_joined",
                f"{user.name} joined the group.",
                {"user_id": user.id},
            )
        else:
            ActivityService.record(
                db, personal.id, user, "group_created",
                f"{user.name} created the group \"{personal.name}\".",
                {"group_id": personal.id},
            )
        return user

    @staticmethod
    def authenticate(db: Session, email: str, password: str) -> User:
        user = db.query(User).filter(User.email == email.lower()).first()
        if user is None or not user.is_active:
            raise _invalid_credentials()
        if not verify_password(password, user.hashed_password):
            raise _invalid_credentials()
        return user

    @staticmethod
    def issue_tokens(db: Session, user: User) -> dict:
        refresh_token = generate_secret()
        db.add(Token(
            token_hash=hash_secret(refresh_token),
            type=REFRESH,
            user_id=user.id,
            expires_at=datetime.now(timezone.utc) + timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS),
        ))
        db.commit()
        return {
            "access_token": create_access_token(user.id),
            "refresh_token": refresh_token,
            "token_type": "bearer",
        }

    @staticmethod
    def rotate_refresh_token(db: Session, refresh_token: str) -> tuple[User, dict]:
        """Redeem a refresh token for a new pair. The old one stops working."""
        stored = (
            db.query(Token)
            .filter(
                Token.token_hash == hash_secret(refresh_token),
                Token.type == REFRESH,
                Token.expires_at > datetime.now(timezone.utc),
            )
            .first()
        )
        if stored is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired refresh token",
            )
        user = db.get(User, stored.user_id)
        db.delete(stored)
        db.commit()
        if user is None or not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired refresh token",
            )
        return user, AuthService.issue_tokens(db, user)

    @staticmethod
    def revoke_refresh_token(db: Session, user: User, refresh_token: str) -> None:
        db.query(Token).filter(
            Token.token_hash == hash_secret(refresh_token),
            Token.type == REFRESH,
            Token.user_id == user.id,
        ).delete(synchronize_session=False)
        db.commit()

    @staticmethod
    def request_password_reset(db: Session, email: str) -> None:
        """Silently does nothing for unknown or inactive accounts."""
        user = db.query(User).filter(User.email == email.lower()).first()
        if user is None or not user.is_active:
            return

        reset_token = generate_secret()
        db.add(Token(
            token_hash=hash_secret(reset_token),
            type=PASSWORD_RESET,
            user_id=user.id,
            expires_at=datetime.now(timezone.utc) + timedelta(minutes=PASSWORD_RESET_EXPIRE_MINUTES),
        ))
        db.commit()

        try:
            email_service.send_password_reset_email(user.email, reset_token)
        except Exception:
            logger.exception(f"Failed to send password reset email to user {user.id}")

    @staticmethod
    def reset_password(db: Session, reset_token: str, new_password: str) -> None:
        stored = (
            db.query(Token)
            .filter(
                Token.token_hash == hash_secret(reset_token),
                Token.type == PASSWORD_RESET,
                Token.expires_at > datetime.now(timezone.utc),
            )
            .first()
        )
        if stored is None:
            raise bad_request("Invalid or expired password reset token. Please request a new one.")

        user = db.get(User, stored.user_id)
        if user is None:
            raise bad_request("Invalid or expired password reset token. Please request a new one.")

        user.hashed_password = hash_password(new_password)
        db.delete(stored)
        # Existing sessions end with the old password
        db.query(Token).filter(Token.user_id == user.id, Token.type == REFRESH).delete(
            synchronize_session=False
        )
        db.commit()
        logger.info(f"Password reset for user {user.id}")

    @staticmethod
    def update_profile(db: Session, user: User, changes: dict) -> User:
        """Renames are not carried into names already copied onto transactions and logs."""
        for field, value in changes.items():
            setattr(user, field, value)
        db.commit()
        db.refresh(user)
        return user
