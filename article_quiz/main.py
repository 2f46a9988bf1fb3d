from contextlib import asynccontextmanager

from fastapi import FastAPI
from .core.config import settings
from .core.cors import setup_cors
from .core.http_client import close_http_client
from .core.logging import setup_logging
from .core.redis_manager import close_redis
from .api.v1.errors import setup_error_handlers
from .api.v1.routers import quizzes as quizzes_router
from .api.v1.routers import sessions as sessions_router
from .api.v1.routers import users as users_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    yield
    await close_http_client()
    await close_redis()


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
setup_cors(app)
setup_error_handlers(app)

app.include_router(quizzes_router.router, prefix=settings.API_V1_PREFIX)
app.include_router(sessions_router.router, prefix=settings.API_V1_PREFIX)
app.include_router(users_router.router, prefix=settings.API_V1_PREFIX)

@app.get("/healthz")
async def healthz():
    return {"status": "ok"}
