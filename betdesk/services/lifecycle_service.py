import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from betdesk.core.config import settings
from betdesk.core.errors import AlreadySettled, InvalidTransition, ValidationError
from betdesk.core.timeutil import utcnow
from betdesk.models.game import GameInstance, GameStatus
from betdesk.models.user import User
from betdesk.services.bet_service import load_game
from betdesk.services.game_registry import get_strategy
from betdesk.services.settlement_service import SettlementReport, settle

logger = logging.getLogger(__name__)


def _team(name: Optional[str], label: str) -> str:
    n = (name or "").strip()
    if len(n) < 2:
        raise ValidationError(f"{label} name must be at least 2 characters", field=label.lower().replace(" ", "_"))
    return n


async def open_game(
    session: AsyncSession,
    operator: User,
    game_type: str,
    mode: Optional[str] = None,
    odds: Optional[Dict[str, int]] = None,
    title: Optional[str] = None,
    team_a: Optional[str] = None,
    team_b: Optional[str] = None,
    description: Optional[str] = None,
    close_at: Optional[datetime] = None,
    min_bet: Optional[int] = None,
    max_bet: Optional[int] = None,
) -> GameInstance:
    strategy = get_strategy(game_type)
    m = strategy.check_mode(mode)
    table = strategy.build_odds(m, odds)

    if strategy.requires_teams:
        team_a = _team(team_a, "Team A")
        team_b = _team(team_b, "Team B")
    else:
        team_a = team_b = None

    lo = settings.BET_MIN_AMOUNT if min_bet is None else min_bet
    hi = settings.BET_MAX_AMOUNT if max_bet is None else max_bet
    if lo <= 0 or hi < lo:
        raise ValidationError("Require 0 < min_bet <= max_bet", field="min_bet")

    if close_at is not None and close_at <= utcnow():
        raise ValidationError("close_at must be in the future", field="close_at")

    if not title:
        title = f"{team_a} vs {team_b}" if team_a else f"{strategy.game_type.value} {m}"

    game = GameInstance(
        game_type=strategy.game_type.value,
        mode=m,
        status=GameStatus.OPEN.value,
        odds=table,
        title=title,
        team_a=team_a,
        team_b=team_b,
        description=description or "",
        min_bet=lo,
        max_bet=hi,
        created_by=operator.id,
        owner_role=operator.role,
        close_at=close_at,
    )
    session.add(game)
    await session.flush()
    logger.info("game opened id=%s type=%s mode=%s odds=%s by=%s",
                game.id, game.game_type, game.mode, table, operator.id)
    return game


async def close_game(session: AsyncSession, game_id: int) -> GameInstance:
    game = await load_game(session, game_id, lock="update")
    if game.status != GameStatus.OPEN.value:
        raise InvalidTransition("Only open games can be closed", game_id=game.id, status=game.status)
    game.status = GameStatus.CLOSED.value
    game.closed_at = utcnow()
    await session.flush()
    logger.info("game closed id=%s", game.id)
    return game


async def declare_result(session: AsyncSession, game_id: int, outcome) -> Tuple[GameInstance, SettlementReport]:
    """
    Closed -> Resulted. Declaring straight from Open is refused: betting has
    to be closed first so the settled bet set is final.
    """
    game = await load_game(session, game_id, lock="update")
    if game.status == GameStatus.RESULTED.value:
        raise AlreadySettled(game_id=game.id, result=game.result)
    if game.status != GameStatus.CLOSED.value:
        raise InvalidTransition("Close betting before declaring a result", game_id=game.id, status=game.status)

    report = await settle(session, game.id, outcome)

    game.status = GameStatus.RESULTED.value
    game.result_declared_at = utcnow()
    await session.flush()
    return game, report


async def list_games(session: AsyncSession, game_type: Optional[str] = None,
                     status: Optional[str] = None, limit: int = 100) -> List[GameInstance]:
    stmt = select(GameInstance)
    if game_type:
        stmt = stmt.where(GameInstance.game_type == get_strategy(game_type).game_type.value)
    if status:
        try:
            stmt = stmt.where(GameInstance.status == GameStatus(status.strip().lower()).value)
        except ValueError as e:
            raise ValidationError(f"Unknown status: {status}", field="status") from e
    rs = await session.execute(stmt.order_by(GameInstance.id.desc()).limit(limit))
    return list(rs.scalars().all())


async def due_for_close(session: AsyncSession, now: Optional[datetime] = None) -> List[int]:
    rs = await session.execute(
        select(GameInstance.id)
        .where(GameInstance.status == GameStatus.OPEN.value,
               GameInstance.close_at.is_not(None),
               GameInstance.close_at <= (now or utcnow()))
        .order_by(GameInstance.id.asc())
    )
    return [row[0] for row in rs.all()]
