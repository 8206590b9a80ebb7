from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey
from familybudget.database import Base


class PlannedBudgetItem(Base):
    __tablename__ = "planned_budget_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    budget_id = Column(Integer, ForeignKey("budgets.id", ondelete="CASCADE"), nullable=False, index=True)
    group_id = Column(Integer, nullable=False, index=True)  # copy of the budget's group
    category = Column(String(20), nullable=False)  # renda/despesa/conta/poupanca
    name = Column(String(200), nullable=False)
    planned_amount = Column(Numeric(12, 2), nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
