from datetime import datetime, timedelta, timezone
from typing import Optional
from passlib.context import CryptContext
import jwt

from betdesk.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def hash_password(raw: str) -> str:
    salted = f"{raw}:{settings.PASSWORD_SALT}"
    return pwd_context.hash(salted)

def verify_password(raw: str, hashed: str) -> bool:
    salted = f"{raw}:{settings.PASSWORD_SALT}"
    return pwd_context.verify(salted, hashed)

def create_access_token(subject: str | int, role: str, expires_minutes: Optional[int] = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=expires_minutes or settings.JWT_EXPIRE_MINUTES)
    payload = {
        "sub": str(subject),
        "role": role,
        "exp": int(expire.timestamp()),
        "iat": int(now.timestamp()),
        "iss": settings.APP_NAME,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")

def decode_access_token(token: str) -> int:
    payload = jwt.decode(
        token,
        settings.JWT_SECRET,
        algorithms=["HS256"],
        issuer=settings.APP_NAME,
        options={"require": ["exp", "iat", "sub"]},
    )
    return int(payload["sub"])
