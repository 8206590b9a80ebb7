"""
group_service.py: Groups, membership and invitations
A group is a household sharing budgets and transactions. Each member also keeps
a personal display name for the group in their own group list.
"""

import logging
from datetime import datetime, timezone, timedelta

from sqlalchemy.orm import Session

from familybudget.auth import generate_secret, hash_secret
from familybudget.config import INVITATION_EXPIRE_HOURS
from familybudget.models.group import Group
from familybudget.models.group_member import GroupMember
from familybudget.models.token import Token
from familybudget.models.user import User
from familybudget.models.user_group import UserGroup
from familybudget.services import email_service
from familybudget.services.access import (
    bad_request,
    conflict,
    forbidden,
    get_group,
    not_found,
)
from familybudget.services.activity_service import ActivityService

logger = logging.getLogger(__name__)

INVITATION = "group_invitation"


class GroupService:
    @staticmethod
    def add_member(db: Session, group: Group, user: User, role: str = "member") -> None:
        """Stage membership on both sides; the caller commits."""
        group.members.append(GroupMember(user_id=user.id, role=role))
        db.add(UserGroup(user_id=user.id, group_id=group.id, display_name=group.name))

    @staticmethod
    def create_group(db: Session, user: User, name: str) -> Group:
        group = Group(name=name, created_by=user.id)
        db.add(group)
        db.flush()
        GroupService.add_member(db, group, user, role="admin")
        db.commit()
        db.refresh(group)

        ActivityService.record(
            db, group.id, user, "group_created",
            f"{user.name} created the group \"{group.name}\".",
            {"group_id": group.id},
        )
        return group

    @staticmethod
    def list_user_groups(db: Session, user: User) -> list[tuple[Group, str]]:
        """(group, display_name) pairs from the user's own group list."""
        links = (
            db.query(UserGroup)
            .filter(UserGroup.user_id == user.id)
            .order_by(UserGroup.id)
            .all()
        )
        return [(link.group, link.display_name) for link in links if link.group is not None]

    @staticmethod
    def get_group_for_member(db: Session, user: User, group_id: int) -> Group:
        group = get_group(db, group_id)
        if group is None:
            raise not_found("Group not found.")
        if not group.is_member(user.id):
            raise forbidden("You are not a member of this group.")
        return group

    @staticmethod
    def invite(db: Session, user: User, group_id: int, email: str) -> bool:
        """Mint an invitation token and mail it. Returns True if the invitee already has an account."""
        email = email.lower()
        group = get_group(db, group_id)
        if group is None:
            raise not_found("Group not found.")
        if not group.is_admin(user.id):
            raise forbidden("You are not allowed to invite members to this group.")

        invited_user = db.query(User).filter(User.email == email).first()
        if invited_user is not None and group.is_member(invited_user.id):
            raise conflict("This user is already a member of this group.")

        raw_token = generate_secret()
        token = Token(
            token_hash=hash_secret(raw_token),
            type=INVITATION,
            group_id=group.id,
            expires_at=datetime.now(timezone.utc) + timedelta(hours=INVITATION_EXPIRE_HOURS),
        )
        if invited_user is not None:
            token.user_id = invited_user.id
        else:
            token.invited_email = email
        db.add(token)
        db.commit()

        try:
            if invited_user is not None:
                email_service.send_group_invitation_email(email, group.name, group.id, raw_token)
            else:
                email_service.send_registration_invitation_email(email, group.name, group.id, raw_token)
        except Exception:
            logger.exception(f"Failed to send invitation email for group {group.id}")

        ActivityService.record(
            db, group.id, user, "member_invited",
            f"{user.name} invited {email} to the group.",
            {"email": email, "registered": invited_user is not None},
        )
        return invited_user is not None

    @staticmethod
    def find_invitation(db: Session, group_id: int, raw_token: str, **target) -> Token | None:
        """A live invitation for this group matching the given user_id or invited_email."""
        query = db.query(Token).filter(
            Token.token_hash == hash_secret(raw_token),
            Token.type == INVITATION,
            Token.group_id == group_id,
            Token.expires_at > datetime.now(timezone.utc),
        )
        for column, value in target.items():
            query = query.filter(getattr(Token, column) == value)
        return query.first()

    @staticmethod
    def accept_invitation(db: Session, user: User, group_id: int, raw_token: str) -> Group:
        invitation = GroupService.find_invitation(db, group_id, raw_token, user_id=user.id)
        if invitation is None:
            raise bad_request("Invalid or expired invitation.")

        group = get_group(db, group_id)
        if group is None:
            db.delete(invitation)
            db.commit()
            raise not_found("Group not found.")

        if group.is_member(user.id):
            db.delete(invitation)
            db.commit()
            raise bad_request("You are already a member of this group.")

        GroupService.add_member(db, group, user)
        db.delete(invitation)
        db.commit()
        db.refresh(group)

        ActivityService.record(
            db, group.id, user, "member_joined",
            f"{user.name} joined the group.",
            {"user_id": user.id},
        )
        return group

    @staticmethod
    def update_display_name(db: Session, user: User, group_id: int, display_name: str) -> UserGroup:
        link = (
            db.query(UserGroup)
            .filter(UserGroup.user_id == user.id, UserGroup.group_id == group_id)
            .first()
        )
        if link is None:
            raise not_found("Group not found in your groups.")
        link.display_name = display_name
        db.commit()
        db.refresh(link)
        return link

    @staticmethod
    def delete_group(db: Session, user: User, group_id: int) -> None:
        """Creator-only. Budgets, items, transactions and logs of the group are kept."""
        group = get_group(db, group_id)
        if group is None:
            raise not_found("Group not found.")
        if group.created_by != user.id:
            raise forbidden("You are not allowed to delete this group.")

        name = group.name
        db.query(UserGroup).filter(UserGroup.group_id == group_id).delete(synchronize_session=False)
        db.query(Token).filter(Token.group_id == group_id, Token.type == INVITATION).delete(
            synchronize_session=False
        )
        db.delete(group)
        db.commit()

        ActivityService.record(
            db, group_id, user, "group_deleted",
            f"{user.name} deleted the group \"{name}\".",
            {"group_id": group_id},
        )
