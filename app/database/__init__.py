from .session import Base, engine, AsyncSessionLocal, get_db, init_db, enable_sqlite_savepoints

__all__ = [
    "Base",
    "engine",
    "AsyncSessionLocal",
    "get_db",
    "init_db",
    "enable_sqlite_savepoints"
]
