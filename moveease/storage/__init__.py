import logging

from fastapi import Request

from .base import Storage
from .db import DatabaseStorage
from .memory import MemoryStorage

logger = logging.getLogger(__name__)


def build_storage(settings) -> Storage:
    """Pick the storage implementation named by ``settings.STORAGE_BACKEND``."""
    if settings.STORAGE_BACKEND == "database":
        from ..database import create_engine_for, make_session_maker

        engine = create_engine_for(settings.async_database_url)
        logger.info("Using database storage")
        return DatabaseStorage(make_session_maker(engine), engine=engine)
    logger.info("Using in-memory storage; data is lost on restart")
    return MemoryStorage()


# -------------------------
# Storage Dependency
# -------------------------
async def get_storage(request: Request) -> Storage:
    return request.app.state.storage


__all__ = ["Storage", "MemoryStorage", "DatabaseStorage", "build_storage", "get_storage"]
