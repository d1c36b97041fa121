from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base

PENDING = "pending"
ACCEPTED = "accepted"
DECLINED = "declined"
BLOCKED = "blocked"


class Friendship(Base):
    __tablename__ = "friendships"

    # Canonical ordering: user_id_1 < user_id_2 to prevent duplicates
    user_id_1: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id_2: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PENDING
    )  # pending, accepted, declined, blocked
    initiated_by: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id_1", "user_id_2", name="uq_friendships_pair"),
        CheckConstraint("user_id_1 < user_id_2", name="canonical_order"),
    )

    @property
    def recipient_id(self) -> int:
        return self.user_id_2 if self.initiated_by == self.user_id_1 else self.user_id_1

    def other_user_id(self, user_id: int) -> int:
        return self.user_id_2 if self.user_id_1 == user_id else self.user_id_1
