import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from familybudget.auth import get_current_user
from familybudget.database import get_db
from familybudget.models.budget import Budget
from familybudget.models.user import User
from familybudget.services.budget_service import BudgetService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/budgets", tags=["Budgets"])


class BudgetRequest(BaseModel):
    group_id: int
    start_date: date
    end_date: date


def serialize_budget(budget: Budget) -> dict:
    return {
        "id": budget.id,
        "group_id": budget.group_id,
        "start_date": budget.start_date,
        "end_date": budget.end_date,
        "created_by": budget.created_by,
        "created_at": budget.created_at,
    }


@router.post("")
def open_budget(
    body: BudgetRequest,
    response: Response,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Return the group's budget for the period, creating it (and copying last month's plan) if needed."""
    try:
        budget, created, cloned = BudgetService.get_or_create(
            db, user, body.group_id, body.start_date, body.end_date
        )
        response.status_code = 201 if created else 200
        return {
            "success": True,
            "data": {**serialize_budget(budget), "created": created, "cloned_items": cloned},
            "message": "Budget created successfully." if created else "Budget found.",
        }
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error creating budget")
        raise HTTPException(status_code=500, detail="Server error creating budget.")


@router.get("/group/{group_id}")
def list_group_budgets(group_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    try:
        budgets = BudgetService.list_for_group(db, user, group_id)
        return {"success": True, "data": [serialize_budget(b) for b in budgets]}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching group budgets")
        raise HTTPException(status_code=500, detail="Server error fetching group budgets.")


@router.get("/{budget_id}")
def get_budget(budget_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    try:
        budget = BudgetService.get_for_member(db, user, budget_id)
        return {"success": True, "data": serialize_budget(budget)}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching budget")
        raise HTTPException(status_code=500, detail="Server error fetching budget.")


@router.get("/{budget_id}/summary")
def budget_summary(budget_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Planned vs actual per category for the budget's period."""
    try:
        summary = BudgetService.summary(db, user, budget_id)
        return {
            "success": True,
            "data": {
                "budget": serialize_budget(summary["budget"]),
                "categories": {
                    category: {key: float(value) for key, value in figures.items()}
                    for category, figures in summary["categories"].items()
                },
                "total_planned": float(summary["total_planned"]),
                "total_actual": float(summary["total_actual"]),
            },
        }
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error building budget summary")
        raise HTTPException(status_code=500, detail="Server error building budget summary.")


@router.delete("/{budget_id}")
def delete_budget(budget_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    try:
        BudgetService.delete(db, user, budget_id)
        return {"success": True, "message": "Budget and its planned items deleted successfully."}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error deleting budget")
        raise HTTPException(status_code=500, detail="Server error deleting budget.")
