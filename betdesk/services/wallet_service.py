import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from betdesk.core.errors import InsufficientBalance, NotFound, ValidationError
from betdesk.models.user import User
from betdesk.models.wallet import (
    WalletLedger, DIRECTION_IN, DIRECTION_OUT, BIZ_ADJUST,
)

logger = logging.getLogger(__name__)


def _check_amount(amount: int) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError("Amount must be a positive integer", field="amount")
    return amount


async def lock_account(session: AsyncSession, user_id: int) -> User:
    """Row lock on the account; every balance read-check-write goes through here."""
    # pending edits must reach the row before populate_existing reloads it
    await session.flush()
    u = await session.get(User, user_id, with_for_update=True, populate_existing=True)
    if u is None:
        raise NotFound("User not found", user_id=user_id)
    return u


async def _move(session: AsyncSession, u: User, delta: int) -> None:
    # balance is changed in SQL and the row never goes below zero
    rs = await session.execute(
        update(User)
        .where(User.id == u.id, User.balance + delta >= 0)
        .values(balance=User.balance + delta)
        .execution_options(synchronize_session=False)
    )
    await session.refresh(u, ["balance"])
    if rs.rowcount != 1:
        raise InsufficientBalance(balance=u.balance, amount=-delta)


async def debit(session: AsyncSession, user_id: int, amount: int, biz_type: int,
                ref_table: Optional[str] = None, ref_id: Optional[int] = None,
                remark: Optional[str] = None, account: Optional[User] = None) -> User:
    _check_amount(amount)
    u = account or await lock_account(session, user_id)
    if u.balance < amount:
        raise InsufficientBalance(balance=u.balance, amount=amount)

    await _move(session, u, -amount)
    session.add(WalletLedger(
        user_id=u.id,
        direction=DIRECTION_OUT,
        amount=amount,
        balance_after=u.balance,
        biz_type=biz_type,
        ref_table=ref_table,
        ref_id=ref_id,
        remark=remark,
    ))
    return u


async def credit(session: AsyncSession, user_id: int, amount: int, biz_type: int,
                 ref_table: Optional[str] = None, ref_id: Optional[int] = None,
                 remark: Optional[str] = None, account: Optional[User] = None) -> User:
    _check_amount(amount)
    u = account or await lock_account(session, user_id)

    await _move(session, u, amount)
    session.add(WalletLedger(
        user_id=u.id,
        direction=DIRECTION_IN,
        amount=amount,
        balance_after=u.balance,
        biz_type=biz_type,
        ref_table=ref_table,
        ref_id=ref_id,
        remark=remark,
    ))
    return u


async def adjust(session: AsyncSession, user_id: int, delta: int, operator_id: int) -> User:
    """Operator balance correction; positive credits, negative debits."""
    if isinstance(delta, bool) or not isinstance(delta, int) or delta == 0:
        raise ValidationError("Adjustment must be a non-zero integer", field="amount")
    remark = f"adjusted by operator {operator_id}"
    if delta > 0:
        u = await credit(session, user_id, delta, BIZ_ADJUST, ref_table="user", ref_id=operator_id, remark=remark)
    else:
        u = await debit(session, user_id, -delta, BIZ_ADJUST, ref_table="user", ref_id=operator_id, remark=remark)
    logger.info("balance adjust user=%s delta=%s balance=%s by=%s", user_id, delta, u.balance, operator_id)
    return u


async def set_blocked(session: AsyncSession, user_id: int, blocked: bool) -> User:
    # pending bets are untouched; only new placements look at the flag
    u = await lock_account(session, user_id)
    u.is_blocked = blocked
    return u


async def block(session: AsyncSession, user_id: int) -> User:
    return await set_blocked(session, user_id, True)


async def unblock(session: AsyncSession, user_id: int) -> User:
    return await set_blocked(session, user_id, False)
