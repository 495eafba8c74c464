from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from cloudvault.core.config import settings


def create_db_engine(uri: str, **kwargs) -> Engine:
    # SQLite connections are shared across the request threadpool
    if uri.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(uri, pool_pre_ping=True, **kwargs)


engine = create_db_engine(settings.SQLALCHEMY_DATABASE_URI)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
