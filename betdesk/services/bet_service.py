import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from betdesk.core.errors import (
    AccountBlocked, Forbidden, GameNotOpen, InsufficientBalance, NotFound, ValidationError,
)
from betdesk.models.bet import Bet, BetStatus
from betdesk.models.game import GameInstance, GameStatus
from betdesk.models.user import UserRole
from betdesk.models.wallet import BIZ_BET
from betdesk.services import wallet_service
from betdesk.services.game_registry import get_strategy

logger = logging.getLogger(__name__)


async def load_game(session: AsyncSession, game_id: int, lock: Optional[str] = None) -> GameInstance:
    """lock: None, "share" or "update"."""
    stmt = select(GameInstance).where(GameInstance.id == game_id)
    if lock == "share":
        stmt = stmt.with_for_update(read=True)
    elif lock == "update":
        stmt = stmt.with_for_update()
    if lock:
        await session.flush()
        stmt = stmt.execution_options(populate_existing=True)
    game = await session.scalar(stmt)
    if game is None:
        raise NotFound("Game not found", game_id=game_id)
    return game


async def place_bet(session: AsyncSession, user_id: int, game_id: int, amount: int, prediction) -> Bet:
    """
    Debit the stake and write the bet in the caller's transaction.

    Lock order is game (shared) then account, matching settlement which takes
    the game exclusively before touching accounts. Every check runs before the
    first write, and the caller rolls back on any error, so a failed placement
    never leaves an orphaned debit.
    """
    game = await load_game(session, game_id, lock="share")
    if game.status != GameStatus.OPEN.value:
        raise GameNotOpen(game_id=game.id, status=game.status)

    account = await wallet_service.lock_account(session, user_id)
    if account.is_blocked:
        raise AccountBlocked()
    if account.role != UserRole.PLAYER.value:
        raise Forbidden("Only players can place bets")

    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError("Amount must be an integer", field="amount")
    if not game.min_bet <= amount <= game.max_bet:
        raise ValidationError(
            f"Bet amount must be between {game.min_bet} and {game.max_bet}",
            field="amount", min=game.min_bet, max=game.max_bet,
        )

    pred = get_strategy(game.game_type).normalize_prediction(game.mode, prediction)

    if account.balance < amount:
        raise InsufficientBalance(balance=account.balance, amount=amount)

    bet = Bet(
        user_id=user_id,
        game_instance_id=game.id,
        amount=amount,
        prediction=pred,
        status=BetStatus.PENDING.value,
        payout=0,
    )
    session.add(bet)
    await session.flush()

    await wallet_service.debit(session, user_id, amount, BIZ_BET,
                               ref_table="bet", ref_id=bet.id, account=account)
    await session.flush()

    logger.info("bet placed id=%s user=%s game=%s amount=%s prediction=%s balance=%s",
                bet.id, user_id, game.id, amount, pred, account.balance)
    return bet


async def list_user_bets(session: AsyncSession, user_id: int, limit: int = 50) -> List[Bet]:
    rs = await session.execute(
        select(Bet).where(Bet.user_id == user_id).order_by(Bet.id.desc()).limit(limit)
    )
    return list(rs.scalars().all())


async def list_game_bets(session: AsyncSession, game_id: int) -> List[Bet]:
    await load_game(session, game_id)
    rs = await session.execute(
        select(Bet).where(Bet.game_instance_id == game_id).order_by(Bet.id.asc())
    )
    return list(rs.scalars().all())
