import pytest
from sqlalchemy import select

from betdesk.core.errors import AlreadySettled, InvalidTransition, ValidationError
from betdesk.models.bet import Bet, BetStatus
from betdesk.models.game import GameInstance, GameStatus
from betdesk.models.user import User
from betdesk.models.wallet import BIZ_PAYOUT, WalletLedger
from betdesk.services import bet_service, lifecycle_service, settlement_service, wallet_service
from betdesk.services.game_registry import ODDS_SCALE


async def _open(session_factory, admin, game_type, **kw):
    async with session_factory() as s:
        game = await lifecycle_service.open_game(s, admin, game_type, **kw)
        await s.commit()
        return game


async def _bet(session_factory, user, game, amount, prediction):
    async with session_factory() as s:
        bet = await bet_service.place_bet(s, user.id, game.id, amount, prediction)
        await s.commit()
        return bet


async def _close(session_factory, game):
    async with session_factory() as s:
        await lifecycle_service.close_game(s, game.id)
        await s.commit()


async def _snapshot(session_factory):
    async with session_factory() as s:
        users = {u.id: u.balance for u in (await s.execute(select(User))).scalars()}
        bets = {b.id: (b.status, b.payout) for b in (await s.execute(select(Bet))).scalars()}
        games = {g.id: (g.status, g.result) for g in (await s.execute(select(GameInstance))).scalars()}
        return users, bets, games


@pytest.fixture
async def toss(session_factory, admin):
    return await _open(session_factory, admin, "cricket_toss",
                       odds={"team_a": 150, "team_b": 250}, team_a="India", team_b="England")


async def test_winning_bet_net_gain(session_factory, player, toss):
    await _bet(session_factory, player, toss, 1000, "team_a")
    await _close(session_factory, toss)

    async with session_factory() as s:
        game, report = await lifecycle_service.declare_result(s, toss.id, "team_a")
        await s.commit()

    assert game.status == GameStatus.RESULTED.value
    assert game.result == "team_a"
    assert game.result_declared_at is not None
    assert (report.won, report.lost, report.total_payout) == (1, 0, 1500)

    users, bets, _ = await _snapshot(session_factory)
    assert users[player.id] == 5000 - 1000 + 1500
    assert list(bets.values()) == [(BetStatus.WON.value, 1500)]


async def test_losers_get_nothing(session_factory, player, make_user, toss):
    bob = await make_user("bob", balance=800)
    await _bet(session_factory, player, toss, 1000, "team_a")
    await _bet(session_factory, bob, toss, 800, "team_b")
    await _close(session_factory, toss)

    async with session_factory() as s:
        _, report = await lifecycle_service.declare_result(s, toss.id, "team_b")
        await s.commit()

    users, bets, _ = await _snapshot(session_factory)
    assert users[player.id] == 4000
    assert users[bob.id] == 800 * 250 // ODDS_SCALE
    assert sorted(bets.values()) == [(BetStatus.LOST.value, 0), (BetStatus.WON.value, 2000)]
    assert report.total_staked == 1800


async def test_payouts_are_conserved(session_factory, make_user, admin):
    game = await _open(session_factory, admin, "team_match",
                       odds={"team_a": 137, "team_b": 211, "draw": 333}, team_a="Reds", team_b="Blues")
    players = [await make_user(f"p{i}", balance=10_000) for i in range(5)]
    stakes = [(0, 777, "draw"), (1, 1001, "draw"), (2, 999, "team_a"), (3, 13, "draw"), (4, 4321, "team_b"),
              (0, 55, "draw")]
    for idx, amount, pred in stakes:
        await _bet(session_factory, players[idx], game, amount, pred)
    await _close(session_factory, game)

    async with session_factory() as s:
        _, report = await lifecycle_service.declare_result(s, game.id, "draw")
        await s.commit()

    async with session_factory() as s:
        won = (await s.execute(select(Bet).where(Bet.status == BetStatus.WON.value))).scalars().all()
        expected = sum(b.amount * 333 // ODDS_SCALE for b in won)
        assert sum(b.payout for b in won) == expected == report.total_payout
        credited = (await s.execute(select(WalletLedger).where(WalletLedger.biz_type == BIZ_PAYOUT))).scalars().all()
        assert sum(r.amount for r in credited) == expected
    assert report.won == 4


async def test_second_declaration_is_refused_and_changes_nothing(session_factory, player, toss):
    await _bet(session_factory, player, toss, 1000, "team_a")
    await _close(session_factory, toss)
    async with session_factory() as s:
        await lifecycle_service.declare_result(s, toss.id, "team_a")
        await s.commit()
    before = await _snapshot(session_factory)

    async with session_factory() as s:
        with pytest.raises(AlreadySettled):
            await lifecycle_service.declare_result(s, toss.id, "team_b")
        await s.rollback()
    async with session_factory() as s:
        with pytest.raises(AlreadySettled):
            await settlement_service.settle(s, toss.id, "team_a")
        await s.rollback()

    assert await _snapshot(session_factory) == before


async def test_settle_twice_without_status_change(session_factory, player, toss):
    await _bet(session_factory, player, toss, 1000, "team_a")
    await _close(session_factory, toss)
    async with session_factory() as s:
        await settlement_service.settle(s, toss.id, "team_a")
        await s.commit()
    after_first = await _snapshot(session_factory)

    async with session_factory() as s:
        with pytest.raises(AlreadySettled):
            await settlement_service.settle(s, toss.id, "team_a")
    assert await _snapshot(session_factory) == after_first
    assert after_first[0][player.id] == 5500


async def test_cannot_declare_while_open(session_factory, player, toss):
    await _bet(session_factory, player, toss, 1000, "team_a")
    async with session_factory() as s:
        with pytest.raises(InvalidTransition):
            await lifecycle_service.declare_result(s, toss.id, "team_a")
    users, bets, games = await _snapshot(session_factory)
    assert games[toss.id] == (GameStatus.OPEN.value, None)
    assert list(bets.values()) == [(BetStatus.PENDING.value, 0)]


async def test_invalid_outcome_rejected(session_factory, toss):
    await _close(session_factory, toss)
    async with session_factory() as s:
        with pytest.raises(ValidationError):
            await lifecycle_service.declare_result(s, toss.id, "draw")


async def test_failure_mid_batch_rolls_everything_back(session_factory, make_user, toss, monkeypatch):
    a = await make_user("a1", balance=1000)
    b = await make_user("b1", balance=1000)
    await _bet(session_factory, a, toss, 500, "team_a")
    await _bet(session_factory, b, toss, 500, "team_a")
    await _close(session_factory, toss)
    before = await _snapshot(session_factory)

    real_credit = wallet_service.credit
    calls = []

    async def flaky_credit(session, user_id, amount, biz_type, **kw):
        calls.append(user_id)
        if len(calls) == 2:
            raise RuntimeError("db went away")
        return await real_credit(session, user_id, amount, biz_type, **kw)

    monkeypatch.setattr(wallet_service, "credit", flaky_credit)

    async with session_factory() as s:
        with pytest.raises(RuntimeError):
            await lifecycle_service.declare_result(s, toss.id, "team_a")
        await s.rollback()

    assert await _snapshot(session_factory) == before


async def test_satamatka_crossing_and_harf(session_factory, admin, make_user):
    crossing = await _open(session_factory, admin, "satamatka", mode="crossing")
    harf = await _open(session_factory, admin, "satamatka", mode="harf", odds={"harf": 950})
    p = await make_user("matka", balance=10_000)

    await _bet(session_factory, p, crossing, 900, "317")
    await _bet(session_factory, p, harf, 100, "B1")
    await _bet(session_factory, p, harf, 100, "A1")
    for g in (crossing, harf):
        await _close(session_factory, g)

    async with session_factory() as s:
        _, r1 = await lifecycle_service.declare_result(s, crossing.id, "71")
        _, r2 = await lifecycle_service.declare_result(s, harf.id, 71)
        await s.commit()

    assert r1.total_payout == 900 * 9000 // (ODDS_SCALE * 9)
    assert r2.outcome == "71"
    assert (r2.won, r2.lost, r2.total_payout) == (1, 1, 950)
    users, _, _ = await _snapshot(session_factory)
    assert users[p.id] == 10_000 - 1100 + 9000 + 950


async def test_matching_bet_is_won_even_when_payout_floors_to_zero(session_factory, admin, make_user):
    game = await _open(session_factory, admin, "satamatka", mode="crossing", odds={"crossing": 100})
    p = await make_user("tiny", balance=10_000)
    await _bet(session_factory, p, game, 10, "123456")
    await _close(session_factory, game)

    async with session_factory() as s:
        _, report = await lifecycle_service.declare_result(s, game.id, "12")
        await s.commit()

    # 10 * 100 / (100 * 36) floors to 0
    assert (report.won, report.lost, report.total_payout) == (1, 0, 0)
    users, bets, _ = await _snapshot(session_factory)
    assert list(bets.values()) == [(BetStatus.WON.value, 0)]
    assert users[p.id] == 10_000 - 10
    async with session_factory() as s:
        credited = (await s.execute(select(WalletLedger).where(WalletLedger.biz_type == BIZ_PAYOUT))).scalars().all()
    assert credited == []
