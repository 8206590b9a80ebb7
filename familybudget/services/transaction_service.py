"""
transaction_service.py: Actual income and spending
Transactions belong to a group, not a budget; a budget period sees them through
its date range. Authorship is copied onto the row for cheap list rendering.
"""

from datetime import date

from sqlalchemy.orm import Session

from familybudget.models.transaction import Transaction
from familybudget.models.user import User
from familybudget.services.access import forbidden, get_group, not_found, require_member
from familybudget.services.activity_service import ActivityService
from familybudget.services.budget_service import format_money


class TransactionService:
    @staticmethod
    def create(db: Session, user: User, data: dict) -> Transaction:
        group_id = data["group_id"]
        require_member(db, user, group_id, "You are not allowed to add transactions to this group.")

        tx = Transaction(
            group_id=group_id,
            created_by=user.id,
            created_by_name=user.name,
            date=data["date"],
            category=data["category"],
            type=data["type"],
            amount=data["amount"],
            description=data.get("description"),
        )
        db.add(tx)
        db.commit()
        db.refresh(tx)

        ActivityService.record(
            db, group_id, user, "transaction_created",
            f"{user.name} recorded \"{tx.type}\" ({tx.category}) of R$ {format_money(tx.amount)}.",
            {
                "transaction_id": tx.id,
                "category": tx.category,
                "type": tx.type,
                "amount": format_money(tx.amount),
                "date": tx.date.isoformat(),
            },
        )
        return tx

    @staticmethod
    def list_for_group(
        db: Session,
        user: User,
        group_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[Transaction]:
        """Both bounds inclusive and optional. An empty range is an empty list."""
        require_member(db, user, group_id, "You are not allowed to view this group's transactions.")

        query = db.query(Transaction).filter(Transaction.group_id == group_id)
        if start_date is not None:
            query = query.filter(Transaction.date >= start_date)
        if end_date is not None:
            query = query.filter(Transaction.date <= end_date)
        return query.order_by(Transaction.date.desc(), Transaction.id.desc()).all()

    @staticmethod
    def get_for_member(db: Session, user: User, tx_id: int) -> Transaction:
        tx = db.get(Transaction, tx_id)
        if tx is None:
            raise not_found("Transaction not found.")
        group = get_group(db, tx.group_id)
        if group is None or not group.is_member(user.id):
            raise forbidden("You are not allowed to view this transaction.")
        return tx

    @staticmethod
    def _get_own(db: Session, user: User, tx_id: int, action: str) -> Transaction:
        tx = db.get(Transaction, tx_id)
        if tx is None:
            raise not_found("Transaction not found.")
        # No admin override: only the author may change a transaction
        if tx.created_by != user.id:
            raise forbidden(f"You are not allowed to {action} this transaction.")
        return tx

    @staticmethod
    def update(db: Session, user: User, tx_id: int, changes: dict) -> Transaction:
        tx = TransactionService._get_own(db, user, tx_id, "update")

        old_amount, old_category = format_money(tx.amount), tx.category
        for field, value in changes.items():
            setattr(tx, field, value)
        db.commit()
        db.refresh(tx)
        new_amount = format_money(tx.amount)

        description = f"{user.name} updated \"{tx.type}\": R$ {old_amount} -> R$ {new_amount}"
        if old_category != tx.category:
            description += f", category {old_category} -> {tx.category}"

        ActivityService.record(
            db, tx.group_id, user, "transaction_updated", description + ".",
            {
                "transaction_id": tx.id,
                "old_amount": old_amount,
                "new_amount": new_amount,
                "old_category": old_category,
                "new_category": tx.category,
            },
        )
        return tx

    @staticmethod
    def delete(db: Session, user: User, tx_id: int) -> None:
        tx = TransactionService._get_own(db, user, tx_id, "delete")
        group_id, tx_type, category, amount = tx.group_id, tx.type, tx.category, format_money(tx.amount)
        db.delete(tx)
        db.commit()

        ActivityService.record(
            db, group_id, user, "transaction_deleted",
            f"{user.name} deleted \"{tx_type}\" ({category}) of R$ {amount}.",
            {"transaction_id": tx_id, "category": category, "type": tx_type, "amount": amount},
        )
