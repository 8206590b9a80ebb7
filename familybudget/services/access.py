"""
access.py: Group membership checks shared by every service.
Membership is a scan over the group's member list.
"""

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from familybudget.models.group import Group
from familybudget.models.user import User


def not_found(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def conflict(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)


def bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def get_group(db: Session, group_id: int) -> Group | None:
    return db.get(Group, group_id)


def require_member(db: Session, user: User, group_id: int, detail: str) -> Group:
    """Return the group, 404 if it does not exist, 403 if user is not in it."""
    group = get_group(db, group_id)
    if group is None:
        raise not_found("Group not found.")
    if not group.is_member(user.id):
        raise forbidden(detail)
    return group
