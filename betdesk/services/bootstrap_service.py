import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from betdesk.core.config import settings
from betdesk.core.security import hash_password
from betdesk.db.session import engine, Base
from betdesk.models.game import GameInstance, GameStatus, GameType
from betdesk.models.user import User, UserRole
from betdesk.services import cache_service

logger = logging.getLogger(__name__)

async def init_db():
    # importing the models registers every table on Base.metadata
    import betdesk.models.bet  # noqa: F401
    import betdesk.models.wallet  # noqa: F401
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

async def ensure_default_admin(session: AsyncSession) -> User:
    u = await session.scalar(select(User).where(User.username == settings.ADMIN_USERNAME))
    if u is None:
        u = User(
            username=settings.ADMIN_USERNAME,
            password_hash=hash_password(settings.ADMIN_PASSWORD),
            nickname="Administrator",
            role=UserRole.ADMIN.value,
            is_blocked=False,
            balance=0,
        )
        session.add(u)
        await session.commit()
        logger.warning("created default admin account %r", settings.ADMIN_USERNAME)
    return u

async def warmup_redis_from_db(session: AsyncSession, limit: int = settings.HISTORY_LIMIT):
    for gt in GameType:
        rs = await session.execute(
            select(GameInstance)
            .where(GameInstance.game_type == gt.value, GameInstance.status == GameStatus.RESULTED.value)
            .order_by(GameInstance.result_declared_at.desc(), GameInstance.id.desc())
            .limit(limit)
        )
        games = list(rs.scalars().all())
        games.reverse()
        await cache_service.rebuild_history(gt.value, games)
