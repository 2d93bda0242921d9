from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

# amount in smallest currency unit; prediction format depends on game/mode
class BetIn(BaseModel):
    amount: int = Field(gt=0)
    prediction: str | int

class BetOut(BaseModel):
    id: int
    user_id: int
    game_instance_id: int
    amount: int
    prediction: str
    status: str
    payout: int
    created_at: datetime
    settled_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class BetPlacedOut(BaseModel):
    bet: BetOut
    balance: int
