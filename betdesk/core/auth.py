from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from betdesk.core.errors import AccountBlocked, Forbidden, Unauthorized
from betdesk.core.security import decode_access_token
from betdesk.db.session import get_session
from betdesk.models.user import User, UserRole

security = HTTPBearer(auto_error=False)

async def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_session),
) -> User:
    if creds is None or creds.scheme.lower() != "bearer":
        raise Unauthorized()
    try:
        uid = decode_access_token(creds.credentials)
    except (jwt.PyJWTError, ValueError) as e:
        raise Unauthorized("Invalid token") from e

    u = await session.get(User, uid)
    if not u:
        raise Unauthorized("User not found")
    return u

async def get_active_user(current_user: User = Depends(get_current_user)) -> User:
    """Authenticated and not blocked."""
    if current_user.is_blocked:
        raise AccountBlocked()
    return current_user

def require_roles(*roles: UserRole):
    allowed = {r.value for r in roles}

    async def _guard(current_user: User = Depends(get_active_user)) -> User:
        if current_user.role not in allowed:
            raise Forbidden(f"Requires role: {', '.join(sorted(allowed))}")
        return current_user

    return _guard

require_operator = require_roles(UserRole.ADMIN, UserRole.SUBADMIN)
require_admin = require_roles(UserRole.ADMIN)
require_player = require_roles(UserRole.PLAYER)
