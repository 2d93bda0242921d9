import asyncio

import pytest
from sqlalchemy import func, select

from betdesk.core.errors import (
    AccountBlocked, Forbidden, GameNotOpen, InsufficientBalance, InvalidPrediction,
    NotFound, ValidationError,
)
from betdesk.models.bet import Bet, BetStatus
from betdesk.models.user import User, UserRole
from betdesk.models.wallet import BIZ_BET, WalletLedger
from betdesk.services import bet_service, lifecycle_service, wallet_service


@pytest.fixture
async def toss(session_factory, admin):
    async with session_factory() as s:
        game = await lifecycle_service.open_game(
            s, admin, "cricket_toss",
            odds={"team_a": 150, "team_b": 250},
            team_a="India", team_b="Australia",
        )
        await s.commit()
        return game


async def _balance(session_factory, user_id):
    async with session_factory() as s:
        return (await s.get(User, user_id)).balance


async def _bet_count(session_factory):
    async with session_factory() as s:
        return await s.scalar(select(func.count()).select_from(Bet))


async def test_place_bet_debits_and_records_pending(session, session_factory, player, toss):
    bet = await bet_service.place_bet(session, player.id, toss.id, 1000, "team_a")
    await session.commit()

    assert bet.status == BetStatus.PENDING.value
    assert bet.payout == 0
    assert bet.prediction == "team_a"
    assert await _balance(session_factory, player.id) == 4000

    ledger = (await session.execute(select(WalletLedger))).scalars().one()
    assert (ledger.biz_type, ledger.amount, ledger.ref_table, ledger.ref_id) == (BIZ_BET, 1000, "bet", bet.id)


async def test_bet_of_entire_balance(session, session_factory, player, toss):
    await bet_service.place_bet(session, player.id, toss.id, 5000, "team_b")
    await session.commit()
    assert await _balance(session_factory, player.id) == 0


async def test_one_unit_over_balance_fails_without_mutation(session, session_factory, player, toss):
    with pytest.raises(InsufficientBalance):
        await bet_service.place_bet(session, player.id, toss.id, 5001, "team_b")
    await session.rollback()
    assert await _balance(session_factory, player.id) == 5000
    assert await _bet_count(session_factory) == 0


async def test_closed_game_rejects_bets(session, session_factory, player, toss):
    await lifecycle_service.close_game(session, toss.id)
    await session.commit()

    with pytest.raises(GameNotOpen):
        await bet_service.place_bet(session, player.id, toss.id, 100, "team_a")
    await session.rollback()
    assert await _balance(session_factory, player.id) == 5000
    assert await _bet_count(session_factory) == 0


async def test_blocked_account_cannot_bet(session, make_user, toss):
    bob = await make_user("bob", balance=1000, blocked=True)
    with pytest.raises(AccountBlocked):
        await bet_service.place_bet(session, bob.id, toss.id, 100, "team_a")


async def test_operators_cannot_bet(session, admin, toss):
    with pytest.raises(Forbidden):
        await bet_service.place_bet(session, admin.id, toss.id, 100, "team_a")


async def test_invalid_prediction(session, player, toss):
    with pytest.raises(InvalidPrediction):
        await bet_service.place_bet(session, player.id, toss.id, 100, "draw")


@pytest.mark.parametrize("amount", [9, 0, -100])
async def test_amount_below_minimum(session, player, toss, amount):
    with pytest.raises(ValidationError):
        await bet_service.place_bet(session, player.id, toss.id, amount, "team_a")


async def test_amount_above_game_maximum(session, session_factory, admin, player):
    async with session_factory() as s:
        game = await lifecycle_service.open_game(s, admin, "coin_flip", min_bet=50, max_bet=500)
        await s.commit()
    with pytest.raises(ValidationError):
        await bet_service.place_bet(session, player.id, game.id, 501, "heads")
    bet = await bet_service.place_bet(session, player.id, game.id, 500, "heads")
    assert bet.amount == 500


async def test_unknown_game_or_user(session, player, toss):
    with pytest.raises(NotFound):
        await bet_service.place_bet(session, player.id, 999, 100, "team_a")
    with pytest.raises(NotFound):
        await bet_service.place_bet(session, 999, toss.id, 100, "team_a")


async def test_list_bets(session, player, make_user, toss):
    carol = await make_user("carol", role=UserRole.PLAYER, balance=300)
    await bet_service.place_bet(session, player.id, toss.id, 100, "team_a")
    await bet_service.place_bet(session, carol.id, toss.id, 200, "team_b")
    await bet_service.place_bet(session, player.id, toss.id, 300, "team_b")
    await session.commit()

    mine = await bet_service.list_user_bets(session, player.id)
    assert [b.amount for b in mine] == [300, 100]
    everyone = await bet_service.list_game_bets(session, toss.id)
    assert [b.user_id for b in everyone] == [player.id, carol.id, player.id]


async def _attempt(session_factory, fn):
    async with session_factory() as s:
        try:
            out = await fn(s)
            await s.commit()
            return out
        except InsufficientBalance as e:
            await s.rollback()
            return e


async def test_concurrent_bets_on_one_account_never_overdraw(session_factory, player, toss):
    results = await asyncio.gather(
        _attempt(session_factory, lambda s: bet_service.place_bet(s, player.id, toss.id, 3000, "team_a")),
        _attempt(session_factory, lambda s: bet_service.place_bet(s, player.id, toss.id, 3000, "team_b")),
    )

    assert sum(isinstance(r, Bet) for r in results) == 1
    assert sum(isinstance(r, InsufficientBalance) for r in results) == 1
    assert await _balance(session_factory, player.id) == 2000
    assert await _bet_count(session_factory) == 1


async def test_concurrent_bet_and_operator_debit(session_factory, admin, player, toss):
    results = await asyncio.gather(
        _attempt(session_factory, lambda s: bet_service.place_bet(s, player.id, toss.id, 4000, "team_a")),
        _attempt(session_factory, lambda s: wallet_service.adjust(s, player.id, -4000, admin.id)),
    )

    assert sum(isinstance(r, InsufficientBalance) for r in results) == 1
    balance = await _balance(session_factory, player.id)
    assert balance == 1000
    async with session_factory() as s:
        rows = (await s.execute(select(WalletLedger))).scalars().all()
    assert [r.balance_after for r in rows] == [1000]
