import logging
from decimal import Decimal
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from familybudget.auth import get_current_user
from familybudget.database import get_db
from familybudget.models.planned_budget_item import PlannedBudgetItem
from familybudget.models.user import User
from familybudget.services.budget_item_service import PlannedItemService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/budget-items", tags=["Budget Items"])

Category = Literal["renda", "despesa", "conta", "poupanca"]


class PlannedItemCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    budget_id: int
    group_id: int
    category: Category
    name: str = Field(min_length=1, max_length=200)
    planned_amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)


class PlannedItemUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    category: Optional[Category] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    planned_amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)


def serialize_item(item: PlannedBudgetItem) -> dict:
    return {
        "id": item.id,
        "budget_id": item.budget_id,
        "group_id": item.group_id,
        "category": item.category,
        "name": item.name,
        "planned_amount": float(item.planned_amount),
        "created_by": item.created_by,
        "created_at": item.created_at,
    }


@router.post("", status_code=201)
def create_item(body: PlannedItemCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    try:
        item = PlannedItemService.create(db, user, body.model_dump())
        return {"success": True, "data": serialize_item(item), "message": "Planned budget item created successfully."}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error creating planned budget item")
        raise HTTPException(status_code=500, detail="Server error creating planned budget item.")


@router.get("/budget/{budget_id}")
def list_budget_items(budget_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """All planned items of a budget, grouped by category with per-category totals."""
    try:
        items, by_category = PlannedItemService.list_for_budget(db, user, budget_id)
        return {
            "success": True,
            "data": {
                "items": [serialize_item(i) for i in items],
                "categories": {
                    category: {
                        "items": [serialize_item(i) for i in bucket["items"]],
                        "total": float(bucket["total"]),
                    }
                    for category, bucket in by_category.items()
                },
                "totals": {category: float(bucket["total"]) for category, bucket in by_category.items()},
            },
        }
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching planned budget items")
        raise HTTPException(status_code=500, detail="Server error fetching planned budget items.")


@router.put("/{item_id}")
def update_item(
    item_id: int,
    body: PlannedItemUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        changes = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
        item = PlannedItemService.update(db, user, item_id, changes)
        return {"success": True, "data": serialize_item(item), "message": "Planned budget item updated successfully."}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error updating planned budget item")
        raise HTTPException(status_code=500, detail="Server error updating planned budget item.")


@router.delete("/{item_id}")
def delete_item(item_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    try:
        PlannedItemService.delete(db, user, item_id)
        return {"success": True, "message": "Planned budget item deleted successfully."}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error deleting planned budget item")
        raise HTTPException(status_code=500, detail="Server error deleting planned budget item.")
