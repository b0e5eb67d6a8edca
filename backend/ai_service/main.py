from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from .api.routes import api_router
from .config import TranslatorConfig
import logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan: startup and shutdown events.
    """
    # Startup
    logging.basicConfig(
        level=TranslatorConfig.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting blueprint translator service")

    yield

    # Shutdown
    logger.info("Shutting down blueprint translator service")

app = FastAPI(
    title="RP9 AI Service",
    description="Translates natural-language automation requests into n8n workflows via an intermediate Blueprint.",
    lifespan=lifespan
)

# Allow Vercel preview deployments and localhost by default
app.add_middleware(
    CORSMiddleware,
    allow_origins=[],  # Empty list - use regex instead
    allow_origin_regex=TranslatorConfig.CORS_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["*"],
)

app.include_router(api_router)
