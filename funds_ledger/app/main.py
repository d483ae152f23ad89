import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api.exceptions import register_exception_handlers
from .api.routes import accounts_router, router as account_router
from .core.config import get_settings
from .core.db import get_engine, init_db
from .core.rate_limit import RateLimiter

settings = get_settings()
logging.basicConfig(level=settings.log_level)

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    app.state.rate_limiter = RateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    yield
    app.state.rate_limiter.reset()
    app.state.rate_limiter = None
    get_engine().dispose()

app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.include_router(account_router)
app.include_router(accounts_router)
register_exception_handlers(app)

@app.get("/health")
def read_health() -> dict[str, str]:
    return {"status": "ok"}
