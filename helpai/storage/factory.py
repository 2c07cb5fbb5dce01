import logging
from typing import Optional

from helpai.core.config import Settings
from helpai.database import create_db_engine, create_db_and_tables
from helpai.storage.base import ConversationStorage
from helpai.storage.memory import MemoryStorage
from helpai.storage.sql import DatabaseStorage

logger = logging.getLogger(__name__)

_storage: Optional[ConversationStorage] = None


def build_storage(settings: Settings) -> ConversationStorage:
    """Crea el backend indicado por ``storage_backend`` ("database" o "memory")."""
    backend = settings.storage_backend.strip().lower()
    if backend == "memory":
        logger.info("Using in-memory conversation storage")
        return MemoryStorage()
    if backend == "database":
        engine = create_db_engine(settings)
        create_db_and_tables(engine)
        logger.info("Using database conversation storage")
        return DatabaseStorage(engine)
    raise ValueError(f"Unknown storage backend: {settings.storage_backend!r}")


def configure_storage(storage: ConversationStorage) -> None:
    global _storage
    _storage = storage


def get_storage() -> ConversationStorage:
    if _storage is None:
        raise RuntimeError("Storage has not been configured")
    return _storage
