"""
budget_item_service.py: Planned budget items
Named, categorized amounts inside a budget period. Only the member who created
an item may change or remove it.
"""

from sqlalchemy.orm import Session

from familybudget.models.budget import Budget
from familybudget.models.planned_budget_item import PlannedBudgetItem
from familybudget.models.user import User
from familybudget.services.access import conflict, forbidden, get_group, not_found
from familybudget.services.activity_service import ActivityService
from familybudget.services.budget_service import BudgetService, aggregate_planned, format_money


class PlannedItemService:
    @staticmethod
    def _duplicate_exists(
        db: Session, budget_id: int, category: str, name: str, exclude_id: int | None = None
    ) -> bool:
        # SQLite lower() only folds ASCII, so compare accented names here
        rows = (
            db.query(PlannedBudgetItem.id, PlannedBudgetItem.name)
            .filter(
                PlannedBudgetItem.budget_id == budget_id,
                PlannedBudgetItem.category == category,
            )
            .all()
        )
        wanted = name.casefold()
        return any(row_id != exclude_id and row_name.casefold() == wanted for row_id, row_name in rows)

    @staticmethod
    def create(db: Session, user: User, data: dict) -> PlannedBudgetItem:
        budget = db.get(Budget, data["budget_id"])
        if budget is None or budget.group_id != data["group_id"]:
            raise not_found("Budget not found or does not belong to the given group.")

        group = get_group(db, budget.group_id)
        if group is None or not group.is_member(user.id):
            raise forbidden("You are not allowed to add items to this budget.")

        if PlannedItemService._duplicate_exists(db, budget.id, data["category"], data["name"]):
            raise conflict("An item with the same category and name already exists in this budget.")

        item = PlannedBudgetItem(
            budget_id=budget.id,
            group_id=budget.group_id,
            category=data["category"],
            name=data["name"],
            planned_amount=data["planned_amount"],
            created_by=user.id,
        )
        db.add(item)
        db.commit()
        db.refresh(item)

        ActivityService.record(
            db, item.group_id, user, "budget_item_created",
            f"{user.name} planned \"{item.name}\" ({item.category}) at R$ {format_money(item.planned_amount)}.",
            {
                "budget_id": item.budget_id,
                "item_id": item.id,
                "category": item.category,
                "name": item.name,
                "planned_amount": format_money(item.planned_amount),
            },
        )
        return item

    @staticmethod
    def list_for_budget(db: Session, user: User, budget_id: int) -> tuple[list[PlannedBudgetItem], dict]:
        """Items sorted by category then name, plus the per-category aggregation."""
        budget = BudgetService.get_for_member(db, user, budget_id)
        items = (
            db.query(PlannedBudgetItem)
            .filter(PlannedBudgetItem.budget_id == budget.id)
            .order_by(PlannedBudgetItem.category, PlannedBudgetItem.name)
            .all()
        )
        return items, aggregate_planned(items)

    @staticmethod
    def _get_own_item(db: Session, user: User, item_id: int, action: str) -> PlannedBudgetItem:
        item = db.get(PlannedBudgetItem, item_id)
        if item is None:
            raise not_found("Planned budget item not found.")
        if item.created_by != user.id:
            raise forbidden(f"You are not allowed to {action} this item.")
        return item

    @staticmethod
    def update(db: Session, user: User, item_id: int, changes: dict) -> PlannedBudgetItem:
        item = PlannedItemService._get_own_item(db, user, item_id, "update")

        if "name" in changes or "category" in changes:
            name = changes.get("name", item.name)
            category = changes.get("category", item.category)
            if PlannedItemService._duplicate_exists(db, item.budget_id, category, name, exclude_id=item.id):
                raise conflict("Another item with the same category and name already exists in this budget.")

        before = {
            "category": item.category,
            "name": item.name,
            "planned_amount": format_money(item.planned_amount),
        }
        for field, value in changes.items():
            setattr(item, field, value)
        db.commit()
        db.refresh(item)
        after = {
            "category": item.category,
            "name": item.name,
            "planned_amount": format_money(item.planned_amount),
        }

        description = (
            f"{user.name} updated \"{item.name}\": "
            f"R$ {before['planned_amount']} -> R$ {after['planned_amount']}"
        )
        if before["category"] != after["category"]:
            description += f", category {before['category']} -> {after['category']}"
        if before["name"] != after["name"]:
            description += f", renamed from \"{before['name']}\""

        ActivityService.record(
            db, item.group_id, user, "budget_item_updated", description + ".",
            {"budget_id": item.budget_id, "item_id": item.id, "before": before, "after": after},
        )
        return item

    @staticmethod
    def delete(db: Session, user: User, item_id: int) -> None:
        item = PlannedItemService._get_own_item(db, user, item_id, "delete")
        snapshot = {
            "budget_id": item.budget_id,
            "item_id": item.id,
            "category": item.category,
            "name": item.name,
            "planned_amount": format_money(item.planned_amount),
        }
        group_id = item.group_id
        db.delete(item)
        db.commit()

        ActivityService.record(
            db, group_id, user, "budget_item_deleted",
            f"{user.name} removed \"{snapshot['name']}\" ({snapshot['category']}, "
            f"R$ {snapshot['planned_amount']}).",
            snapshot,
        )
