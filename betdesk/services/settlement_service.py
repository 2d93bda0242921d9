from __future__ import annotations
import logging
from dataclasses import dataclass, field, asdict
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from betdesk.core.errors import AlreadySettled, InvalidTransition
from betdesk.core.timeutil import utcnow
from betdesk.models.bet import Bet, BetStatus
from betdesk.models.game import GameStatus
from betdesk.models.wallet import BIZ_PAYOUT
from betdesk.services import wallet_service
from betdesk.services.bet_service import load_game
from betdesk.services.game_registry import get_strategy

logger = logging.getLogger(__name__)


@dataclass
class SettledBet:
    bet_id: int
    user_id: int
    amount: int
    prediction: str
    status: str
    payout: int


@dataclass
class SettlementReport:
    game_id: int
    outcome: str
    won: int = 0
    lost: int = 0
    total_staked: int = 0
    total_payout: int = 0
    bets: List[SettledBet] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


async def settle(session: AsyncSession, game_id: int, outcome) -> SettlementReport:
    """
    Resolve every pending bet of a closed game against ``outcome``.

    Runs entirely inside the caller's transaction with the game row locked
    exclusively; an exception anywhere aborts the whole batch once the caller
    rolls back. The recorded ``game.result`` is the settle-once marker: a
    second call raises ``AlreadySettled`` without touching anything. The game
    status itself is left to the lifecycle code.
    """
    game = await load_game(session, game_id, lock="update")
    if game.result is not None or game.status == GameStatus.RESULTED.value:
        raise AlreadySettled(game_id=game.id, result=game.result)
    if game.status != GameStatus.CLOSED.value:
        raise InvalidTransition("Betting must be closed before settlement", game_id=game.id, status=game.status)

    strategy = get_strategy(game.game_type)
    result = strategy.normalize_outcome(outcome)

    rs = await session.execute(
        select(Bet)
        .where(Bet.game_instance_id == game.id, Bet.status == BetStatus.PENDING.value)
        .order_by(Bet.id.asc())
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    bets = rs.scalars().all()

    report = SettlementReport(game_id=game.id, outcome=result)
    winners: Dict[int, List[Bet]] = {}
    now = utcnow()

    for bet in bets:
        if strategy.is_hit(game.mode, bet.prediction, result):
            # a small crossing stake can win and still floor to 0
            payout = strategy.payout(game.mode, game.odds, bet.amount, bet.prediction, result)
            bet.status = BetStatus.WON.value
            bet.payout = payout
            if payout > 0:
                winners.setdefault(bet.user_id, []).append(bet)
            report.won += 1
            report.total_payout += payout
        else:
            bet.status = BetStatus.LOST.value
            bet.payout = 0
            report.lost += 1
        bet.settled_at = now
        report.total_staked += bet.amount
        report.bets.append(SettledBet(
            bet_id=bet.id, user_id=bet.user_id, amount=bet.amount,
            prediction=bet.prediction, status=bet.status, payout=bet.payout,
        ))

    # accounts in ascending id, same order as any other multi-account writer
    for uid in sorted(winners):
        account = await wallet_service.lock_account(session, uid)
        for bet in winners[uid]:
            await wallet_service.credit(
                session, uid, bet.payout, BIZ_PAYOUT,
                ref_table="bet", ref_id=bet.id,
                remark=f"game {game.id} result {result}",
                account=account,
            )

    game.result = result
    await session.flush()

    logger.info(
        "settled game=%s type=%s outcome=%s bets=%s won=%s staked=%s paid=%s",
        game.id, game.game_type, result, len(bets), report.won,
        report.total_staked, report.total_payout,
    )
    return report
