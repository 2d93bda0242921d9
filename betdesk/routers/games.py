import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from betdesk.core.auth import require_operator, require_player
from betdesk.core.timeutil import to_naive_utc
from betdesk.db.session import get_session
from betdesk.models.game import GameStatus
from betdesk.models.user import User
from betdesk.schemas.bet import BetIn, BetOut, BetPlacedOut
from betdesk.schemas.game import GameCreateIn, GameOut, ResultIn, SettlementOut
from betdesk.services import bet_service, cache_service, lifecycle_service
from betdesk.services.game_registry import describe_all, get_strategy

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/games", tags=["games"])


@router.get("/registry")
async def registry():
    return list(describe_all())


@router.get("", response_model=List[GameOut])
async def list_games(
        game_type: Optional[str] = Query(None),
        status: Optional[str] = Query(None),
        limit: int = Query(100, ge=1, le=500),
        session: AsyncSession = Depends(get_session),
):
    games = await lifecycle_service.list_games(session, game_type, status, limit)
    return [GameOut.model_validate(g) for g in games]


@router.get("/active", response_model=List[GameOut])
async def active_games(
        game_type: Optional[str] = Query(None),
        session: AsyncSession = Depends(get_session),
):
    games = await lifecycle_service.list_games(session, game_type, GameStatus.OPEN.value)
    return [GameOut.model_validate(g) for g in games]


@router.get("/history")
async def history(game_type: str = Query(...), limit: int = Query(30, ge=1, le=200)):
    gt = get_strategy(game_type).game_type.value
    return {"game_type": gt, "list": await cache_service.read_history(gt, limit)}


@router.get("/last")
async def last_result(game_type: str = Query(...)):
    return await cache_service.read_last(get_strategy(game_type).game_type.value)


@router.get("/{game_id}", response_model=GameOut)
async def get_game(game_id: int, session: AsyncSession = Depends(get_session)):
    return GameOut.model_validate(await bet_service.load_game(session, game_id))


@router.post("", response_model=GameOut, status_code=201)
async def create_game(
        payload: GameCreateIn,
        session: AsyncSession = Depends(get_session),
        operator: User = Depends(require_operator),
):
    try:
        game = await lifecycle_service.open_game(
            session,
            operator,
            payload.game_type,
            mode=payload.mode,
            odds=payload.odds,
            title=payload.title,
            team_a=payload.team_a,
            team_b=payload.team_b,
            description=payload.description,
            close_at=to_naive_utc(payload.close_at) if payload.close_at else None,
            min_bet=payload.min_bet,
            max_bet=payload.max_bet,
        )
        await session.commit()
        return GameOut.model_validate(game)
    except Exception:
        await session.rollback(); raise


@router.post("/{game_id}/close", response_model=GameOut)
async def close_game(
        game_id: int,
        session: AsyncSession = Depends(get_session),
        operator: User = Depends(require_operator),
):
    try:
        game = await lifecycle_service.close_game(session, game_id)
        await session.commit()
        return GameOut.model_validate(game)
    except Exception:
        await session.rollback(); raise


@router.post("/{game_id}/result", response_model=SettlementOut)
async def declare_result(
        game_id: int,
        payload: ResultIn,
        session: AsyncSession = Depends(get_session),
        operator: User = Depends(require_operator),
):
    """Settle every pending bet and mark the game resulted, all in one transaction."""
    try:
        game, report = await lifecycle_service.declare_result(session, game_id, payload.outcome)
        await session.commit()
    except Exception:
        await session.rollback(); raise

    logger.info("result declared game=%s outcome=%s by=%s paid=%s",
                game.id, report.outcome, operator.id, report.total_payout)

    # cache is read-side only; the settlement above is already committed
    try:
        await cache_service.push_result(game)
    except Exception:
        logger.exception("result cache update failed game=%s", game.id)

    body = report.to_dict()
    body.pop("game_id")
    return SettlementOut(game=GameOut.model_validate(game), **body)


@router.post("/{game_id}/bets", response_model=BetPlacedOut, status_code=201)
async def place_bet(
        game_id: int,
        payload: BetIn,
        session: AsyncSession = Depends(get_session),
        player: User = Depends(require_player),
):
    try:
        bet = await bet_service.place_bet(session, player.id, game_id, payload.amount, payload.prediction)
        await session.commit()
    except Exception:
        await session.rollback(); raise
    return BetPlacedOut(bet=BetOut.model_validate(bet), balance=player.balance)


@router.get("/{game_id}/bets", response_model=List[BetOut])
async def game_bets(
        game_id: int,
        session: AsyncSession = Depends(get_session),
        operator: User = Depends(require_operator),
):
    bets = await bet_service.list_game_bets(session, game_id)
    return [BetOut.model_validate(b) for b in bets]
