from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from betdesk.core.auth import get_current_user
from betdesk.db.session import get_session
from betdesk.models.user import User
from betdesk.schemas.bet import BetOut
from betdesk.services import bet_service

router = APIRouter(prefix="/api/bets", tags=["bets"])

@router.get("", response_model=List[BetOut])
async def my_bets(
        limit: int = Query(50, ge=1, le=500),
        session: AsyncSession = Depends(get_session),
        current_user: User = Depends(get_current_user),
):
    bets = await bet_service.list_user_bets(session, current_user.id, limit)
    return [BetOut.model_validate(b) for b in bets]
