from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from typing import Optional
from study_engine.config import settings

Base = declarative_base()

def build_engine(database_url: Optional[str] = None, timeout: Optional[float] = None, **kwargs):
    """Create an engine whose connections give up after `timeout` seconds"""
    database_url = database_url or settings.database_url
    timeout = timeout if timeout is not None else settings.store_timeout_seconds

    if database_url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("timeout", timeout)
        connect_args.setdefault("check_same_thread", False)
        return create_engine(database_url, connect_args=connect_args, **kwargs)

    return create_engine(database_url, pool_timeout=timeout, pool_pre_ping=True, **kwargs)

engine = build_engine()
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

def init_db(bind=None):
    """Create all tables"""
    import study_engine.models  # noqa: F401  registers the tables on Base
    Base.metadata.create_all(bind=bind or engine)
