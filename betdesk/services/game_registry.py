"""
Game registry: one strategy per game type.

A strategy owns everything that differs between games: the modes it offers,
which predictions a bet may carry, which outcomes an operator may declare,
the odds table keys with their defaults and bounds, and the rule deciding
whether a prediction wins and for how much. Settlement, placement and the
lifecycle code never branch on game type; they ask the strategy.

Odds are fixed point with ``ODDS_SCALE`` as the base, so 150 means 1.5x.
All payouts floor.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from betdesk.core.errors import InvalidPrediction, ValidationError
from betdesk.models.game import GameType

ODDS_SCALE = 100

JODI_OUTCOMES = tuple(f"{n:02d}" for n in range(100))


def _digits(value: str) -> bool:
    # str.isdigit also accepts fullwidth and superscript digits
    return value.isascii() and value.isdigit()


def _clean(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


@dataclass(frozen=True)
class OddsRule:
    default: int
    low: int = 100
    high: int = 2000


class GameStrategy(ABC):
    game_type: GameType
    modes: Tuple[str, ...] = ()
    requires_teams = False

    # ---- modes / odds ----
    def default_mode(self) -> str:
        return self.modes[0]

    def check_mode(self, mode: Optional[str]) -> str:
        m = _clean(mode).lower() or self.default_mode()
        if m not in self.modes:
            raise ValidationError(
                f"Unknown mode for {self.game_type.value}: {m}",
                field="mode", allowed=list(self.modes),
            )
        return m

    @abstractmethod
    def odds_rules(self, mode: str) -> Dict[str, OddsRule]:
        ...

    def build_odds(self, mode: str, odds: Optional[Dict[str, int]]) -> Dict[str, int]:
        """Merge operator odds over the defaults and bound-check every key."""
        rules = self.odds_rules(mode)
        given = {str(k).strip().lower(): v for k, v in (odds or {}).items()}
        unknown = sorted(set(given) - set(rules))
        if unknown:
            raise ValidationError("Unknown odds keys", field="odds", keys=unknown, allowed=sorted(rules))

        out: Dict[str, int] = {}
        for key, rule in rules.items():
            value = given.get(key, rule.default)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError("Odds must be integers", field="odds", key=key)
            if not rule.low <= value <= rule.high:
                raise ValidationError(
                    f"Odds for {key} must be between {rule.low} and {rule.high}",
                    field="odds", key=key,
                )
            out[key] = value
        return out

    # ---- predictions / outcomes ----
    @abstractmethod
    def predictions(self, mode: str) -> List[str]:
        """Enumerable prediction domain; used by the registry endpoint."""
        ...

    @abstractmethod
    def outcomes(self) -> Tuple[str, ...]:
        ...

    def normalize_prediction(self, mode: str, prediction) -> str:
        p = _clean(prediction).lower()
        if p not in self.predictions(mode):
            raise InvalidPrediction(
                f"Prediction must be one of: {', '.join(self.predictions(mode))}",
                prediction=_clean(prediction),
            )
        return p

    def normalize_outcome(self, outcome) -> str:
        o = _clean(outcome).lower()
        if o not in self.outcomes():
            raise ValidationError("Invalid result for this game", field="outcome", outcome=_clean(outcome))
        return o

    # ---- settlement ----
    def is_hit(self, mode: str, prediction: str, outcome: str) -> bool:
        return prediction == outcome

    def odds_key(self, mode: str, prediction: str) -> str:
        return prediction

    def payout(self, mode: str, odds: Dict[str, int], amount: int, prediction: str, outcome: str) -> int:
        if not self.is_hit(mode, prediction, outcome):
            return 0
        return amount * int(odds[self.odds_key(mode, prediction)]) // ODDS_SCALE

    def describe(self) -> dict:
        return {
            "game_type": self.game_type.value,
            "requires_teams": self.requires_teams,
            "outcomes": list(self.outcomes()) if len(self.outcomes()) <= 10 else ["00-99"],
            "modes": {
                m: {
                    "predictions": self.predictions(m),
                    "odds": {k: {"default": r.default, "min": r.low, "max": r.high}
                             for k, r in self.odds_rules(m).items()},
                }
                for m in self.modes
            },
        }


class CoinFlip(GameStrategy):
    game_type = GameType.COIN_FLIP
    modes = ("standard",)

    def odds_rules(self, mode):
        return {"heads": OddsRule(195), "tails": OddsRule(195)}

    def predictions(self, mode):
        return ["heads", "tails"]

    def outcomes(self):
        return ("heads", "tails")


class CricketToss(GameStrategy):
    game_type = GameType.CRICKET_TOSS
    modes = ("toss",)
    requires_teams = True

    def odds_rules(self, mode):
        return {"team_a": OddsRule(190), "team_b": OddsRule(190)}

    def predictions(self, mode):
        return ["team_a", "team_b"]

    def outcomes(self):
        return ("team_a", "team_b")


class TeamMatch(GameStrategy):
    game_type = GameType.TEAM_MATCH
    modes = ("match",)
    requires_teams = True

    def odds_rules(self, mode):
        return {"team_a": OddsRule(190), "team_b": OddsRule(190), "draw": OddsRule(300)}

    def predictions(self, mode):
        return ["team_a", "team_b", "draw"]

    def outcomes(self):
        return ("team_a", "team_b", "draw")


class Satamatka(GameStrategy):
    """
    The declared result is always a two digit jodi ("00".."99").

    jodi      exact two digit match
    harf      "A<d>" bets on the left digit, "B<d>" on the right one
    crossing  a set of 1-6 distinct digits; wins when both result digits are
              in the set. The stake covers every ordered pair, so the payout
              is divided by n*n.
    odd_even  parity of the jodi
    """
    game_type = GameType.SATAMATKA
    modes = ("jodi", "harf", "crossing", "odd_even")

    MAX_CROSSING_DIGITS = 6

    _RULES = {
        "jodi": OddsRule(9000, 100, 20000),
        "harf": OddsRule(900, 100, 20000),
        "crossing": OddsRule(9000, 100, 20000),
        "odd_even": OddsRule(190),
    }

    def odds_rules(self, mode):
        return {mode: self._RULES[mode]}

    def predictions(self, mode):
        if mode == "jodi":
            return list(JODI_OUTCOMES)
        if mode == "harf":
            return [f"{side}{d}" for side in "AB" for d in range(10)]
        if mode == "crossing":
            return [f"1-{self.MAX_CROSSING_DIGITS} distinct digits"]
        return ["odd", "even"]

    def outcomes(self):
        return JODI_OUTCOMES

    def normalize_prediction(self, mode, prediction):
        raw = _clean(prediction)
        if mode == "jodi":
            if _digits(raw) and len(raw) <= 2:
                return raw.zfill(2)
        elif mode == "harf":
            p = raw.upper()
            if len(p) == 2 and p[0] in "AB" and _digits(p[1]):
                return p
        elif mode == "crossing":
            if (_digits(raw) and 0 < len(raw) <= self.MAX_CROSSING_DIGITS
                    and len(set(raw)) == len(raw)):
                return "".join(sorted(raw))
        elif raw.lower() in ("odd", "even"):
            return raw.lower()
        raise InvalidPrediction(f"Invalid {mode} prediction", prediction=raw)

    def normalize_outcome(self, outcome):
        o = _clean(outcome)
        if _digits(o) and len(o) <= 2:
            return o.zfill(2)
        raise ValidationError("Satamatka result must be a two digit number", field="outcome", outcome=o)

    def is_hit(self, mode, prediction, outcome):
        if mode == "jodi":
            return prediction == outcome
        if mode == "harf":
            digit = outcome[0] if prediction[0] == "A" else outcome[1]
            return prediction[1] == digit
        if mode == "crossing":
            return outcome[0] in prediction and outcome[1] in prediction
        parity = "odd" if int(outcome) % 2 else "even"
        return prediction == parity

    def odds_key(self, mode, prediction):
        return mode

    def payout(self, mode, odds, amount, prediction, outcome):
        if not self.is_hit(mode, prediction, outcome):
            return 0
        combos = len(prediction) ** 2 if mode == "crossing" else 1
        return amount * int(odds[mode]) // (ODDS_SCALE * combos)


REGISTRY: Dict[str, GameStrategy] = {
    s.game_type.value: s for s in (CoinFlip(), CricketToss(), TeamMatch(), Satamatka())
}


def get_strategy(game_type) -> GameStrategy:
    key = game_type.value if isinstance(game_type, GameType) else _clean(game_type).lower()
    strategy = REGISTRY.get(key)
    if strategy is None:
        raise ValidationError(f"Unknown game type: {key}", field="game_type", allowed=sorted(REGISTRY))
    return strategy


def describe_all() -> Iterable[dict]:
    return [s.describe() for s in REGISTRY.values()]
