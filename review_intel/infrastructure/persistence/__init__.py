import logging

from ..config import Settings
from .store import Store, MemoryStore, matches_filter
from .sqlite_store import SQLiteStore

logger = logging.getLogger(__name__)


def create_store(settings: Settings) -> Store:
    """Build the configured store backend."""
    if settings.store.backend == "memory":
        logger.info("Using in-memory store"
                    + (f" with snapshot {settings.store.snapshot_file}" if settings.store.snapshot_file else ""))
        return MemoryStore(snapshot_path=settings.store.snapshot_file)
    return SQLiteStore(str(settings.store.database_file)).init()
