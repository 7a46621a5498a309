"""
league_engine/main.py
FastAPI application for the bracket engine and roster-change ledger.
"""
import os
import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from league_engine import __version__
from league_engine.config.feature_flags import feature_flags
from league_engine.database import init_db, close_db
from league_engine.errors import register_exception_handlers
from league_engine.realtime.match_feed import match_feed
from league_engine.routes import router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting league engine...")
    logger.info(f"Feature flags: {feature_flags.get_all_flags()}")
    try:
        await init_db()
        logger.info("Database connected successfully")
    except Exception as e:
        logger.error(f"Failed to connect to database: {str(e)}")
        raise

    yield

    logger.info("Shutting down league engine...")
    await match_feed.close()
    try:
        await close_db()
    except Exception as e:
        logger.error(f"Error closing database connection: {str(e)}")


app = FastAPI(
    title="League Engine API",
    description="Tournament brackets and roster-change approvals",
    version=__version__,
    lifespan=lifespan
)

origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

allowed_origins = os.getenv("CORS_ORIGINS", "").split(",")
if allowed_origins and allowed_origins[0]:
    origins.extend(origin.strip() for origin in allowed_origins if origin.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(router, prefix="/api")


@app.get("/health")
async def health():
    return {"status": "ok", "version": __version__}
