import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from familybudget.auth import get_current_user
from familybudget.database import get_db
from familybudget.models.group import Group
from familybudget.models.user import User
from familybudget.services.group_service import GroupService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/groups", tags=["Groups"])


class GroupCreate(BaseModel):
    name: str = Field(min_length=3, max_length=100)


class InviteRequest(BaseModel):
    email: EmailStr


class DisplayNameUpdate(BaseModel):
    display_name: str = Field(min_length=1, max_length=100)


class AcceptInviteRequest(BaseModel):
    group_id: int
    token: str = Field(min_length=1)


def serialize_group(group: Group, display_name: str | None = None) -> dict:
    return {
        "id": group.id,
        "name": group.name,
        "display_name": display_name if display_name is not None else group.name,
        "created_by": group.created_by,
        "members": [
            {
                "user_id": m.user_id,
                "name": m.user.name if m.user else None,
                "role": m.role,
            }
            for m in group.members
        ],
        "created_at": group.created_at,
    }


@router.post("", status_code=201)
def create_group(body: GroupCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    try:
        group = GroupService.create_group(db, user, body.name.strip())
        return {"success": True, "data": serialize_group(group), "message": "Group created successfully."}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error creating group")
        raise HTTPException(status_code=500, detail="Server error creating group.")


@router.get("")
def list_groups(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Groups the current user belongs to, each with the user's own display name."""
    try:
        pairs = GroupService.list_user_groups(db, user)
        return {"success": True, "data": [serialize_group(g, name) for g, name in pairs]}
    except Exception:
        logger.exception("Error fetching user groups")
        raise HTTPException(status_code=500, detail="Server error fetching user groups.")


@router.post("/accept-invite")
def accept_invite(body: AcceptInviteRequest, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    try:
        group = GroupService.accept_invitation(db, user, body.group_id, body.token)
        return {
            "success": True,
            "data": serialize_group(group),
            "message": f"You are now a member of \"{group.name}\".",
        }
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error accepting group invitation")
        raise HTTPException(status_code=500, detail="Server error accepting the invitation.")


@router.get("/{group_id}")
def get_group(group_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    try:
        group = GroupService.get_group_for_member(db, user, group_id)
        return {"success": True, "data": serialize_group(group)}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching group")
        raise HTTPException(status_code=500, detail="Server error fetching group.")


@router.post("/{group_id}/invite")
def invite_member(
    group_id: int,
    body: InviteRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        registered = GroupService.invite(db, user, group_id, body.email)
        message = (
            "Invitation sent to the registered user."
            if registered
            else "Registration invitation sent to the new user."
        )
        return {"success": True, "message": message}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error inviting member to group")
        raise HTTPException(status_code=500, detail="Server error inviting member to the group.")


@router.put("/{group_id}/display-name")
def update_display_name(
    group_id: int,
    body: DisplayNameUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        link = GroupService.update_display_name(db, user, group_id, body.display_name.strip())
        return {
            "success": True,
            "data": {"group_id": link.group_id, "display_name": link.display_name},
            "message": "Group display name updated.",
        }
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error updating group display name")
        raise HTTPException(status_code=500, detail="Server error updating group display name.")


@router.delete("/{group_id}")
def delete_group(group_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    try:
        GroupService.delete_group(db, user, group_id)
        return {"success": True, "message": "Group deleted successfully."}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error deleting group")
        raise HTTPException(status_code=500, detail="Server error deleting group.")
