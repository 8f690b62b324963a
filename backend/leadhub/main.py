import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .db.pool import init_pool, close_pool
from .routers import auth as auth_router
from .routers import dashboard as dashboard_router
from .routers import leads as leads_router
from .routers import handle_customers as handle_customers_router
from .routers import analytics as analytics_router
from .routers import settings as settings_router
from .routers import intake as intake_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings.check()
    await init_pool()
    logger.info("Lead console API started")
    yield
    await close_pool()
    logger.info("Lead console API stopped")

app = FastAPI(title="Lead Console API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health():
    return {"status": "ok"}


app.include_router(auth_router.router)
app.include_router(dashboard_router.router)
app.include_router(leads_router.router)
app.include_router(handle_customers_router.router)
app.include_router(analytics_router.router)
app.include_router(settings_router.router)
# Public "/{slug}" form must come after every fixed path
app.include_router(intake_router.router)


def run():
    import uvicorn

    uvicorn.run("leadhub.main:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
