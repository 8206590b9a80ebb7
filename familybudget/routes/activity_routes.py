import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from familybudget.auth import get_current_user
from familybudget.database import get_db
from familybudget.models.activity_log import ActivityLog
from familybudget.models.user import User
from familybudget.services.activity_service import ActivityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/activities", tags=["Activities"])


def serialize_activity(entry: ActivityLog) -> dict:
    return {
        "id": entry.id,
        "group_id": entry.group_id,
        "created_by": entry.created_by,
        "created_by_name": entry.created_by_name,
        "action_type": entry.action_type,
        "description": entry.description,
        "details": entry.details or {},
        "created_at": entry.created_at,
    }


@router.get("/group/{group_id}")
def list_group_activities(
    group_id: int,
    limit: int = Query(20, ge=1, le=100),
    skip: int = Query(0, ge=0),
    budget_id: Optional[int] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Recent activity of a group, newest first."""
    try:
        entries = ActivityService.list_for_group(db, user, group_id, limit=limit, skip=skip, budget_id=budget_id)
        return {"success": True, "data": [serialize_activity(e) for e in entries]}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching group activities")
        raise HTTPException(status_code=500, detail="Server error fetching group activities.")
