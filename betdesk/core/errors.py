"""
Domain errors.

Every error a service raises is a ``BetdeskError``; the API layer renders it as
``{"error": <message>, "details": {"code": <kind>, ...}}`` with the class's
HTTP status. Services raise before any write, so a caught error never leaves
partial state behind once the router rolls the session back.
"""
from typing import Any, Optional


class BetdeskError(Exception):
    status_code = 400
    code = "Error"
    default_detail = "Request failed"

    def __init__(self, detail: Optional[str] = None, **details: Any):
        self.detail = detail or self.default_detail
        self.details = details
        super().__init__(self.detail)

    def to_body(self) -> dict:
        return {"error": self.detail, "details": {"code": self.code, **self.details}}


class NotFound(BetdeskError):
    status_code = 404
    code = "NotFound"
    default_detail = "Not found"


class InvalidTransition(BetdeskError):
    status_code = 409
    code = "InvalidTransition"
    default_detail = "Invalid game status transition"


class AlreadySettled(BetdeskError):
    status_code = 409
    code = "AlreadySettled"
    default_detail = "Game result already declared"


class GameNotOpen(BetdeskError):
    status_code = 409
    code = "GameNotOpen"
    default_detail = "Game is not open for betting"


class InvalidPrediction(BetdeskError):
    code = "InvalidPrediction"
    default_detail = "Invalid prediction for this game"


class InsufficientBalance(BetdeskError):
    code = "InsufficientBalance"
    default_detail = "Insufficient balance"


class AccountBlocked(BetdeskError):
    status_code = 403
    code = "AccountBlocked"
    default_detail = "Your account is blocked"


class ValidationError(BetdeskError):
    code = "ValidationError"
    default_detail = "Invalid data"


class Unauthorized(BetdeskError):
    status_code = 401
    code = "Unauthorized"
    default_detail = "Unauthorized"


class Forbidden(BetdeskError):
    status_code = 403
    code = "Forbidden"
    default_detail = "Forbidden"


class Conflict(BetdeskError):
    status_code = 409
    code = "Conflict"
    default_detail = "Conflict"
