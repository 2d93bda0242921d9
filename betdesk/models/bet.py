from datetime import datetime
from enum import Enum
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, DateTime, BigInteger, Index
from betdesk.core.timeutil import utcnow
from betdesk.db.session import Base, BigIntPK


class BetStatus(str, Enum):
    PENDING = "pending"
    WON = "won"
    LOST = "lost"


class Bet(Base):
    __tablename__ = "bet"
    __table_args__ = (
        Index("ix_bet_game_status", "game_instance_id", "status"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    game_instance_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    prediction: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(String(16), default=BetStatus.PENDING.value, nullable=False)
    payout: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    settled_at: Mapped[datetime | None] = mapped_column(DateTime)
