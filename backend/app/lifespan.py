"""
Application lifespan management for startup and shutdown events
"""
import logging
from contextlib import asynccontextmanager
from sqlalchemy import text

from app.core.config import settings, validate_config
from app.core.env import is_local_env
from app.db import Base, get_engine
from app.jobs.otp_sweeper import OTPSweeper
from app import models  # noqa: F401  registers tables on Base.metadata

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    """Manage application lifespan events"""
    logger.info(f"Starting {settings.PROJECT_NAME} backend (ENV={settings.ENV})...")

    try:
        validate_config()

        engine = get_engine()
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Database connection verified")
        except Exception as e:
            if is_local_env():
                logger.warning(f"Database connection failed in local/dev environment: {e}")
            else:
                logger.error(f"Database connection failed: {e}")
                raise

        if settings.AUTO_CREATE_TABLES:
            Base.metadata.create_all(bind=engine)
            logger.info("Database tables ensured (AUTO_CREATE_TABLES=true)")

    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

    sweeper = OTPSweeper(interval=settings.OTP_SWEEP_INTERVAL_SECONDS)
    await sweeper.start()
    app.state.otp_sweeper = sweeper
    logger.info("Application startup completed successfully")

    yield

    logger.info(f"Shutting down {settings.PROJECT_NAME} backend...")
    try:
        await sweeper.stop()
        get_engine().dispose()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error(f"Shutdown error: {e}")


__all__ = ['lifespan']
