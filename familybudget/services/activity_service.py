"""
activity_service.py: Group activity log
Best-effort audit trail written after every mutating operation on groups,
budgets, planned items and transactions. A failed write is logged and
dropped; it never fails the request that triggered it.
"""

import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from familybudget.models.activity_log import ActivityLog
from familybudget.models.user import User
from familybudget.services.access import get_group, forbidden

logger = logging.getLogger(__name__)

BUDGET_ITEM_ACTIONS = ("budget_item_created", "budget_item_updated", "budget_item_deleted")


class ActivityService:
    @staticmethod
    def record(
        db: Session,
        group_id: int,
        actor: User,
        action_type: str,
        description: str,
        details: dict | None = None,
    ) -> ActivityLog | None:
        """Append one entry. Call only after the primary change is committed."""
        try:
            entry = ActivityLog(
                group_id=group_id,
                created_by=actor.id,
                created_by_name=actor.name,
                action_type=action_type,
                description=description,
                details=details or {},
            )
            db.add(entry)
            db.commit()
            return entry
        except Exception:
            db.rollback()
            logger.exception(f"Error creating activity log '{action_type}' for group {group_id}")
            return None

    @staticmethod
    def list_for_group(
        db: Session,
        user: User,
        group_id: int,
        limit: int = 20,
        skip: int = 0,
        budget_id: int | None = None,
    ) -> list[ActivityLog]:
        """Newest first. With budget_id, item entries of other budgets are left out."""
        group = get_group(db, group_id)
        if group is None or not group.is_member(user.id):
            raise forbidden("You are not allowed to view this group's activity.")

        query = db.query(ActivityLog).filter(ActivityLog.group_id == group_id)
        if budget_id is not None:
            query = query.filter(
                or_(
                    ActivityLog.action_type.notin_(BUDGET_ITEM_ACTIONS),
                    ActivityLog.details["budget_id"].as_integer() == budget_id,
                )
            )
        return (
            query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
