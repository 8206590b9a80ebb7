"""
budget_service.py: Budget periods & planned-vs-actual
One budget per group per period. A new period starts with a copy of the
previous calendar month's planned items, re-attributed to whoever opened it.
"""

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from familybudget.models import CATEGORIES
from familybudget.models.budget import Budget
from familybudget.models.planned_budget_item import PlannedBudgetItem
from familybudget.models.transaction import Transaction
from familybudget.models.user import User
from familybudget.services.access import (
    bad_request,
    conflict,
    forbidden,
    get_group,
    not_found,
    require_member,
)
from familybudget.services.activity_service import ActivityService
from familybudget.services.periods import previous_period

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(value).quantize(CENTS)


def format_money(value) -> str:
    return f"{to_money(value)}"


def aggregate_planned(items: list[PlannedBudgetItem]) -> dict:
    """Partition items by category and sum each partition.

    Every category is present in the result, empty or not.
    """
    result = {category: {"items": [], "total": Decimal("0.00")} for category in CATEGORIES}
    for item in items:
        bucket = result.setdefault(item.category, {"items": [], "total": Decimal("0.00")})
        bucket["items"].append(item)
        bucket["total"] += Decimal(item.planned_amount)
    for bucket in result.values():
        bucket["total"] = to_money(bucket["total"])
    return result


class BudgetService:
    @staticmethod
    def find_period(db: Session, group_id: int, start_date: date, end_date: date) -> Budget | None:
        return (
            db.query(Budget)
            .filter(
                Budget.group_id == group_id,
                Budget.start_date == start_date,
                Budget.end_date == end_date,
            )
            .first()
        )

    @staticmethod
    def get_or_create(
        db: Session, user: User, group_id: int, start_date: date, end_date: date
    ) -> tuple[Budget, bool, int]:
        """Return (budget, created, cloned_item_count) for the period."""
        require_member(db, user, group_id, "You are not a member of this group.")
        if start_date > end_date:
            raise bad_request("Start date must not be after end date.")

        existing = BudgetService.find_period(db, group_id, start_date, end_date)
        if existing is not None:
            return existing, False, 0

        try:
            budget = Budget(
                group_id=group_id,
                start_date=start_date,
                end_date=end_date,
                created_by=user.id,
            )
            db.add(budget)
            db.flush()
            cloned = BudgetService._clone_previous_items(db, user, budget)
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(f"Concurrent creation of budget {group_id} {start_date}..{end_date}")
            raise conflict("A budget for this group and period already exists.")
        except Exception:
            # keep neither the budget nor a partial copy
            db.rollback()
            raise
        db.refresh(budget)

        ActivityService.record(
            db, group_id, user, "budget_created",
            f"{user.name} created the budget for {start_date:%m/%Y}.",
            {
                "budget_id": budget.id,
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "cloned_items": cloned,
            },
        )
        return budget, True, cloned

    @staticmethod
    def _clone_previous_items(db: Session, user: User, budget: Budget) -> int:
        prev_start, prev_end = previous_period(budget.start_date)
        previous = BudgetService.find_period(db, budget.group_id, prev_start, prev_end)
        if previous is None:
            return 0

        items = (
            db.query(PlannedBudgetItem)
            .filter(PlannedBudgetItem.budget_id == previous.id)
            .order_by(PlannedBudgetItem.id)
            .all()
        )
        for item in items:
            db.add(PlannedBudgetItem(
                budget_id=budget.id,
                group_id=budget.group_id,
                category=item.category,
                name=item.name,
                planned_amount=item.planned_amount,
                created_by=user.id,
            ))
        logger.info(f"Copied {len(items)} planned items from budget {previous.id} into {budget.id}")
        return len(items)

    @staticmethod
    def list_for_group(db: Session, user: User, group_id: int) -> list[Budget]:
        group = get_group(db, group_id)
        # A missing group answers 403 here, same as a group the user is not in
        if group is None or not group.is_member(user.id):
            raise forbidden("You are not allowed to access this group's budgets.")
        return (
            db.query(Budget)
            .filter(Budget.group_id == group_id)
            .order_by(Budget.start_date.desc())
            .all()
        )

    @staticmethod
    def get_for_member(db: Session, user: User, budget_id: int) -> Budget:
        budget = db.get(Budget, budget_id)
        if budget is None:
            raise not_found("Budget not found.")
        group = get_group(db, budget.group_id)
        if group is None or not group.is_member(user.id):
            raise forbidden("You are not allowed to access this budget.")
        return budget

    @staticmethod
    def delete(db: Session, user: User, budget_id: int) -> None:
        budget = db.get(Budget, budget_id)
        if budget is None:
            raise not_found("Budget not found.")
        if budget.created_by != user.id:
            raise forbidden("You are not allowed to delete this budget.")

        group_id, start_date = budget.group_id, budget.start_date
        db.query(PlannedBudgetItem).filter(PlannedBudgetItem.budget_id == budget.id).delete(
            synchronize_session=False
        )
        db.delete(budget)
        db.commit()

        ActivityService.record(
            db, group_id, user, "budget_deleted",
            f"{user.name} deleted the budget for {start_date:%m/%Y}.",
            {"budget_id": budget_id},
        )

    @staticmethod
    def summary(db: Session, user: User, budget_id: int) -> dict:
        """Planned vs actual per category for the budget's date range."""
        budget = BudgetService.get_for_member(db, user, budget_id)

        items = db.query(PlannedBudgetItem).filter(PlannedBudgetItem.budget_id == budget.id).all()
        planned = aggregate_planned(items)

        rows = (
            db.query(Transaction.category, func.sum(Transaction.amount))
            .filter(
                Transaction.group_id == budget.group_id,
                Transaction.date >= budget.start_date,
                Transaction.date <= budget.end_date,
            )
            .group_by(Transaction.category)
            .all()
        )
        actual = {category: to_money(total or 0) for category, total in rows}

        categories = {}
        for category in CATEGORIES:
            planned_total = planned[category]["total"]
            actual_total = actual.get(category, Decimal("0.00"))
            categories[category] = {
                "planned": planned_total,
                "actual": actual_total,
                "difference": planned_total - actual_total,
            }

        return {
            "budget": budget,
            "categories": categories,
            "total_planned": sum((c["planned"] for c in categories.values()), Decimal("0.00")),
            "total_actual": sum((c["actual"] for c in categories.values()), Decimal("0.00")),
        }
