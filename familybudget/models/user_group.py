from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from familybudget.database import Base


class UserGroup(Base):
    """A user's personal link to a group, with a display name only that user sees."""

    __tablename__ = "user_groups"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    display_name = Column(String(100), nullable=False)

    user = relationship("User", back_populates="groups")
    group = relationship("Group")

    __table_args__ = (
        UniqueConstraint("user_id", "group_id", name="uq_user_group"),
    )
