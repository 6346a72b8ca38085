"""
Configuração do SQLAlchemy e gerenciamento de sessões.
Suporta operações assíncronas com asyncpg.
"""

from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from shared.infrastructure.config.settings import settings
from shared.core.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Base class para todos os modelos SQLAlchemy."""
    pass


def get_async_database_url() -> str:
    """
    Converte DATABASE_URL para formato async (asyncpg).
    postgresql:// -> postgresql+asyncpg://
    Remove parametros incompativeis com asyncpg (sslmode).
    """
    url = settings.database_url

    if "?" in url:
        base, params = url.split("?", 1)
        filtered_params = [p for p in params.split("&") if not p.startswith("sslmode=")]
        url = f"{base}?{'&'.join(filtered_params)}" if filtered_params else base

    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    return url


@lru_cache()
def get_engine() -> AsyncEngine:
    """Cria a engine assíncrona na primeira utilização."""
    logger.info("Criando engine do banco de dados", environment=settings.environment)
    return create_async_engine(
        get_async_database_url(),
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_recycle=settings.database_pool_recycle,
        pool_timeout=settings.database_pool_timeout,
        pool_pre_ping=True,
        echo=settings.database_echo or settings.debug,
    )


@lru_cache()
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Session factory assíncrona."""
    return async_sessionmaker(
        get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """
    Fornece uma sessão do banco de dados com commit/rollback automático.

    Yields:
        AsyncSession: Sessão do banco de dados
    """
    async with get_session_maker()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
