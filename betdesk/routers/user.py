from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from betdesk.core.auth import get_current_user
from betdesk.core.errors import Conflict, Unauthorized
from betdesk.core.security import hash_password, verify_password, create_access_token
from betdesk.core.timeutil import utcnow
from betdesk.db.session import get_session
from betdesk.models.user import User, UserRole
from betdesk.schemas.user import RegisterIn, LoginIn, TokenOut, UserOut


router = APIRouter(prefix="/api/user", tags=["user"])


@router.post("/register", response_model=UserOut, status_code=201)
async def register(data: RegisterIn, session: AsyncSession = Depends(get_session)):
    exists = await session.scalar(select(User).where(User.username == data.username))
    if exists:
        raise Conflict("Username already exists", field="username")

    u = User(
        username=data.username,
        password_hash=hash_password(data.password),
        nickname=data.nickname or data.username,
        role=UserRole.PLAYER.value,
        is_blocked=False,
        balance=0,
    )
    session.add(u)
    await session.commit()

    return UserOut.model_validate(u)


@router.post("/login", response_model=TokenOut)
async def login(data: LoginIn, session: AsyncSession = Depends(get_session)):
    u = await session.scalar(select(User).where(User.username == data.username))
    if not u or not verify_password(data.password, u.password_hash):
        raise Unauthorized("Invalid username or password")

    # blocked accounts may still sign in to see their history
    u.last_login_time = utcnow()
    await session.commit()

    token = create_access_token(subject=u.id, role=u.role)
    return TokenOut(access_token=token)


@router.get("/profile", response_model=UserOut)
async def profile(current_user: User = Depends(get_current_user)):
    return UserOut.model_validate(current_user)
