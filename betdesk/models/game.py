from datetime import datetime
from enum import Enum
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, DateTime, BigInteger, JSON
from betdesk.core.timeutil import utcnow
from betdesk.db.session import Base, BigIntPK


class GameType(str, Enum):
    COIN_FLIP = "coin_flip"
    SATAMATKA = "satamatka"
    CRICKET_TOSS = "cricket_toss"
    TEAM_MATCH = "team_match"


class GameStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    RESULTED = "resulted"


class GameInstance(Base):
    __tablename__ = "game_instance"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    game_type: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    mode: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(String(16), default=GameStatus.OPEN.value, nullable=False, index=True)
    # {odds key: multiplier * 100}
    odds: Mapped[dict] = mapped_column(JSON, nullable=False)

    title: Mapped[str | None] = mapped_column(String(128))
    team_a: Mapped[str | None] = mapped_column(String(64))
    team_b: Mapped[str | None] = mapped_column(String(64))
    description: Mapped[str | None] = mapped_column(String(255))

    min_bet: Mapped[int] = mapped_column(BigInteger, nullable=False)
    max_bet: Mapped[int] = mapped_column(BigInteger, nullable=False)

    created_by: Mapped[int] = mapped_column(BigInteger, nullable=False)
    owner_role: Mapped[str] = mapped_column(String(16), nullable=False)

    result: Mapped[str | None] = mapped_column(String(16))
    close_at: Mapped[datetime | None] = mapped_column(DateTime, index=True)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime)
    result_declared_at: Mapped[datetime | None] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)
