"""
Async engine, session factory and the request-scoped session dependency.

PostgreSQL runs on psycopg 3; SQLite (aiosqlite) is used for local runs
and the test suite and gets no pool settings.
"""
import json
from datetime import date, datetime
from decimal import Decimal
from typing import AsyncGenerator
from uuid import UUID

from psycopg.types.json import set_json_dumps
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import settings


class DocumentJSONEncoder(json.JSONEncoder):
    """Encoder for line items and other JSON columns."""

    def default(self, obj):
        # Money stays exact: "12.50", never 12.5
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, UUID):
            return str(obj)
        return super().default(obj)


def json_dumps(obj) -> str:
    return json.dumps(obj, cls=DocumentJSONEncoder)


set_json_dumps(json_dumps)


def async_database_url(url: str) -> str:
    """Point plain and asyncpg PostgreSQL URLs at the psycopg driver."""
    for scheme in ("postgresql+asyncpg://", "postgresql://", "postgres://"):
        if url.startswith(scheme):
            return "postgresql+psycopg://" + url[len(scheme):]
    return url


def build_engine(url: str):
    if url.startswith("sqlite"):
        # timeout: writers wait for the database lock instead of failing
        return create_async_engine(
            url,
            echo=settings.DEBUG,
            json_serializer=json_dumps,
            connect_args={"check_same_thread": False, "timeout": 30},
        )

    return create_async_engine(
        async_database_url(url),
        echo=settings.DEBUG,
        json_serializer=json_dumps,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        connect_args={"connect_timeout": 30},
    )


engine = build_engine(settings.DATABASE_URL)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    One session per request.

    Everything the handler writes is committed together when it returns,
    or rolled back together if it raises.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
