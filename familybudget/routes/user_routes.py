import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from familybudget.auth import get_current_user
from familybudget.database import get_db
from familybudget.models.user import User
from familybudget.routes.auth_routes import serialize_user
from familybudget.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    preferred_start_day: Optional[int] = Field(default=None, ge=1, le=30)


@router.get("/me")
def get_profile(user: User = Depends(get_current_user)):
    return {"success": True, "data": serialize_user(user)}


@router.put("/me")
def update_profile(
    body: ProfileUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        changes = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
        user = AuthService.update_profile(db, user, changes)
        return {"success": True, "data": serialize_user(user), "message": "Profile updated."}
    except Exception:
        logger.exception("Error updating profile")
        raise HTTPException(status_code=500, detail="Server error updating profile.")
