from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from betdesk.core.auth import require_admin, require_operator
from betdesk.core.errors import Conflict, Forbidden, NotFound
from betdesk.core.security import hash_password
from betdesk.db.session import get_session
from betdesk.models.user import User, UserRole
from betdesk.schemas.user import BalanceAdjustIn, UserCreateIn, UserOut
from betdesk.services import wallet_service

router = APIRouter(prefix="/api/users", tags=["users"])


async def _target(session: AsyncSession, operator: User, user_id: int) -> User:
    u = await session.get(User, user_id)
    if u is None:
        raise NotFound("User not found", user_id=user_id)
    if u.role == UserRole.ADMIN.value and operator.role != UserRole.ADMIN.value:
        raise Forbidden("Subadmins cannot manage admin accounts")
    return u


@router.get("", response_model=List[UserOut])
async def list_users(
        session: AsyncSession = Depends(get_session),
        operator: User = Depends(require_operator),
):
    rs = await session.execute(select(User).order_by(User.id.asc()))
    return [UserOut.model_validate(u) for u in rs.scalars().all()]


@router.post("", response_model=UserOut, status_code=201)
async def create_user(
        data: UserCreateIn,
        session: AsyncSession = Depends(get_session),
        operator: User = Depends(require_admin),
):
    exists = await session.scalar(select(User).where(User.username == data.username))
    if exists:
        raise Conflict("Username already exists", field="username")
    u = User(
        username=data.username,
        password_hash=hash_password(data.password),
        nickname=data.nickname or data.username,
        role=data.role,
        is_blocked=False,
        balance=0,
    )
    session.add(u)
    await session.commit()
    return UserOut.model_validate(u)


@router.patch("/{user_id}/block", response_model=UserOut)
async def block_user(
        user_id: int,
        session: AsyncSession = Depends(get_session),
        operator: User = Depends(require_operator),
):
    try:
        await _target(session, operator, user_id)
        if user_id == operator.id:
            raise Forbidden("Cannot block yourself")
        u = await wallet_service.block(session, user_id)
        await session.commit()
        return UserOut.model_validate(u)
    except Exception:
        await session.rollback(); raise


@router.patch("/{user_id}/unblock", response_model=UserOut)
async def unblock_user(
        user_id: int,
        session: AsyncSession = Depends(get_session),
        operator: User = Depends(require_operator),
):
    try:
        await _target(session, operator, user_id)
        u = await wallet_service.unblock(session, user_id)
        await session.commit()
        return UserOut.model_validate(u)
    except Exception:
        await session.rollback(); raise


@router.patch("/{user_id}/balance", response_model=UserOut)
async def adjust_balance(
        user_id: int,
        payload: BalanceAdjustIn,
        session: AsyncSession = Depends(get_session),
        operator: User = Depends(require_operator),
):
    try:
        await _target(session, operator, user_id)
        u = await wallet_service.adjust(session, user_id, payload.amount, operator.id)
        await session.commit()
        return UserOut.model_validate(u)
    except Exception:
        await session.rollback(); raise
