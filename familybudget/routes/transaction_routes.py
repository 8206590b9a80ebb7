import logging
import datetime
from decimal import Decimal
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from familybudget.auth import get_current_user
from familybudget.database import get_db
from familybudget.models.transaction import Transaction
from familybudget.models.user import User
from familybudget.services.transaction_service import TransactionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/transactions", tags=["Transactions"])

Category = Literal["renda", "despesa", "conta", "poupanca"]


class TransactionCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    group_id: int
    date: datetime.date
    category: Category
    type: str = Field(min_length=1, max_length=200)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    description: Optional[str] = Field(default=None, max_length=140)


class TransactionUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    date: Optional[datetime.date] = None
    category: Optional[Category] = None
    type: Optional[str] = Field(default=None, min_length=1, max_length=200)
    amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    description: Optional[str] = Field(default=None, max_length=140)


def serialize_transaction(tx: Transaction) -> dict:
    return {
        "id": tx.id,
        "group_id": tx.group_id,
        "created_by": tx.created_by,
        "created_by_name": tx.created_by_name,
        "date": tx.date,
        "category": tx.category,
        "type": tx.type,
        "amount": float(tx.amount),
        "description": tx.description,
        "created_at": tx.created_at,
        "updated_at": tx.updated_at,
    }


@router.post("", status_code=201)
def create_transaction(body: TransactionCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    try:
        tx = TransactionService.create(db, user, body.model_dump())
        return {"success": True, "data": serialize_transaction(tx), "message": "Transaction created successfully."}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error creating transaction")
        raise HTTPException(status_code=500, detail="Server error creating transaction.")


@router.get("/group/{group_id}")
def list_group_transactions(
    group_id: int,
    start_date: Optional[datetime.date] = None,
    end_date: Optional[datetime.date] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Transactions of a group, newest first. Both date bounds are inclusive."""
    try:
        txs = TransactionService.list_for_group(db, user, group_id, start_date, end_date)
        return {"success": True, "data": [serialize_transaction(t) for t in txs]}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching transactions by group")
        raise HTTPException(status_code=500, detail="Server error fetching transactions.")


@router.get("/{tx_id}")
def get_transaction(tx_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    try:
        tx = TransactionService.get_for_member(db, user, tx_id)
        return {"success": True, "data": serialize_transaction(tx)}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching transaction")
        raise HTTPException(status_code=500, detail="Server error fetching transaction.")


@router.put("/{tx_id}")
def update_transaction(
    tx_id: int,
    body: TransactionUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        # description may be cleared with null; the other columns are required
        changes = {
            k: v for k, v in body.model_dump(exclude_unset=True).items()
            if v is not None or k == "description"
        }
        tx = TransactionService.update(db, user, tx_id, changes)
        return {"success": True, "data": serialize_transaction(tx), "message": "Transaction updated successfully."}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error updating transaction")
        raise HTTPException(status_code=500, detail="Server error updating transaction.")


@router.delete("/{tx_id}")
def delete_transaction(tx_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    try:
        TransactionService.delete(db, user, tx_id)
        return {"success": True, "message": "Transaction deleted successfully."}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error deleting transaction")
        raise HTTPException(status_code=500, detail="Server error deleting transaction.")
