# Import all models so they register with SQLAlchemy Base.metadata
# This ensures Base.metadata.create_all() creates all tables

from familybudget.models.user import User
from familybudget.models.user_group import UserGroup
from familybudget.models.group import Group
from familybudget.models.group_member import GroupMember
from familybudget.models.budget import Budget
from familybudget.models.planned_budget_item import PlannedBudgetItem
from familybudget.models.transaction import Transaction
from familybudget.models.activity_log import ActivityLog
from familybudget.models.token import Token

CATEGORIES = ("renda", "despesa", "conta", "poupanca")

__all__ = [
    "User",
    "UserGroup",
    "Group",
    "GroupMember",
    "Budget",
    "PlannedBudgetItem",
    "Transaction",
    "ActivityLog",
    "Token",
    "CATEGORIES",
]
