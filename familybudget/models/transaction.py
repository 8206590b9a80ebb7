from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, ForeignKey
from familybudget.database import Base


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    group_id = Column(Integer, nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_by_name = Column(String(100), nullable=False)  # snapshot, not updated on rename
    date = Column(Date, nullable=False, index=True)
    category = Column(String(20), nullable=False)  # renda/despesa/conta/poupanca
    type = Column(String(200), nullable=False)  # free text, e.g. "Aluguel"
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(String(140), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
