from typing import Literal
from pydantic import BaseModel, Field, ConfigDict

class RegisterIn(BaseModel):
    username: str = Field(min_length=3, max_length=32)
    password: str = Field(min_length=6, max_length=64)
    nickname: str | None = None

class UserCreateIn(RegisterIn):
    role: Literal["admin", "subadmin", "player"] = "player"

class LoginIn(BaseModel):
    username: str
    password: str

class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"

class UserOut(BaseModel):
    id: int
    username: str
    nickname: str | None = None
    role: str
    is_blocked: bool
    balance: int = 0   # smallest currency unit

    model_config = ConfigDict(from_attributes=True)

class BalanceAdjustIn(BaseModel):
    amount: int  # signed, smallest currency unit
