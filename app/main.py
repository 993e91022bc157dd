import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.errors import register_exception_handlers
from app.logger import setup_logging
from app.routers.auth import router as auth_router
from app.routers.me import router as me_router

logger = logging.getLogger(__name__)

settings = get_settings()
setup_logging(settings.log_level, json=settings.log_json)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s (%s)", settings.app_name, settings.env)
    yield
    logger.info("Shutting down %s", settings.app_name)


# Create FastAPI app FIRST
app = FastAPI(title=settings.app_name, lifespan=lifespan)

# Credentials are required for the auth cookies
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Register routers
app.include_router(auth_router)
app.include_router(me_router)


# Health check
@app.get("/")
def health_check():
    return {"status": "ok"}
