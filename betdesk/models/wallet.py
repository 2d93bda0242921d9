from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, DateTime, BigInteger, SmallInteger
from betdesk.core.timeutil import utcnow
from betdesk.db.session import Base, BigIntPK

DIRECTION_IN = 1
DIRECTION_OUT = 2

BIZ_BET = 20
BIZ_PAYOUT = 30
BIZ_ADJUST = 40

class WalletLedger(Base):
    __tablename__ = "wallet_ledger"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    direction: Mapped[int] = mapped_column(SmallInteger, nullable=False)  # 1 in, 2 out
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    balance_after: Mapped[int] = mapped_column(BigInteger, nullable=False)
    biz_type: Mapped[int] = mapped_column(SmallInteger, nullable=False)  # 20 bet, 30 payout, 40 adjust
    ref_table: Mapped[str | None] = mapped_column(String(32))
    ref_id: Mapped[int | None] = mapped_column(BigInteger)
    remark: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
