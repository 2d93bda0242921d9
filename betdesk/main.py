# betdesk/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from betdesk.core.config import settings
from betdesk.core import handlers
from betdesk.db.session import AsyncSessionLocal

from betdesk.routers.user import router as user_router
from betdesk.routers.users import router as users_router
from betdesk.routers.games import router as games_router
from betdesk.routers.bets import router as bets_router
import logging, sys

from betdesk.tasks.scheduler import start_scheduler, shutdown_scheduler
from betdesk.services.bootstrap_service import (
    init_db,
    ensure_default_admin,
    warmup_redis_from_db,
)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.WARNING),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logging.getLogger("uvicorn").setLevel(logging.WARNING)
logging.getLogger("uvicorn.error").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.CRITICAL)

logging.getLogger("apscheduler").setLevel(logging.ERROR)

# money-moving paths always log
logging.getLogger("betdesk.services.settlement_service").setLevel(logging.INFO)
logging.getLogger("betdesk.services.lifecycle_service").setLevel(logging.INFO)
logging.getLogger("betdesk.services.wallet_service").setLevel(logging.INFO)
logging.getLogger("betdesk.tasks.closing").setLevel(logging.INFO)

handlers.install(app)

app.include_router(user_router)
app.include_router(users_router)
app.include_router(games_router)
app.include_router(bets_router)

@app.on_event("startup")
async def on_startup() -> None:
    await init_db()
    async with AsyncSessionLocal() as session:
        await ensure_default_admin(session)
        await warmup_redis_from_db(session)
    start_scheduler()

@app.on_event("shutdown")
async def on_shutdown() -> None:
    shutdown_scheduler()

@app.get("/ping")
async def ping():
    return {"ok": True, "env": settings.APP_ENV}

@app.get("/healthz")
async def healthz():
    return {"status": "healthy"}
