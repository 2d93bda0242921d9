from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

class GameCreateIn(BaseModel):
    game_type: str
    mode: Optional[str] = None
    odds: Optional[Dict[str, int]] = None   # missing keys take the registry default
    title: Optional[str] = Field(default=None, max_length=128)
    team_a: Optional[str] = Field(default=None, max_length=64)
    team_b: Optional[str] = Field(default=None, max_length=64)
    description: Optional[str] = Field(default=None, max_length=255)
    close_at: Optional[datetime] = None
    min_bet: Optional[int] = Field(default=None, gt=0)
    max_bet: Optional[int] = Field(default=None, gt=0)

class ResultIn(BaseModel):
    outcome: str | int

class GameOut(BaseModel):
    id: int
    game_type: str
    mode: str
    status: str
    odds: Dict[str, int]
    title: Optional[str] = None
    team_a: Optional[str] = None
    team_b: Optional[str] = None
    description: Optional[str] = None
    min_bet: int
    max_bet: int
    owner_role: str
    result: Optional[str] = None
    close_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    result_declared_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class SettledBetOut(BaseModel):
    bet_id: int
    user_id: int
    amount: int
    prediction: str
    status: str
    payout: int

class SettlementOut(BaseModel):
    game: GameOut
    outcome: str
    won: int
    lost: int
    total_staked: int
    total_payout: int
    bets: List[SettledBetOut]
