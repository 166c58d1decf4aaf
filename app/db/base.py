"""
Engine, session factory and declarative base.

The engine is picked from the database URL and environment: SQLite for
local runs and tests, a NullPool against the Postgres pooler in
production, and a small pool elsewhere.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import NullPool

from app.core.config import settings


def build_engine(database_url: str, env: str):
    if database_url.startswith("sqlite"):
        # sessions are handed across FastAPI's threadpool
        return create_engine(database_url, connect_args={"check_same_thread": False})

    if env == "production":
        # the pooler multiplexes connections; keep none open per instance
        return create_engine(
            database_url,
            poolclass=NullPool,
            pool_pre_ping=True,
            connect_args={"options": "-c statement_timeout=30000"},
        )

    return create_engine(
        database_url,
        pool_size=5,
        max_overflow=0,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


engine = build_engine(settings.DATABASE_URL, settings.ENV)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()
