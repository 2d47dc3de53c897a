from projecthub.db.base import Base
from projecthub.db.session import async_session_maker, engine, get_db, init_db

__all__ = ["Base", "async_session_maker", "engine", "get_db", "init_db"]
