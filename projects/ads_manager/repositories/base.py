"""Repository genérico sobre SQLAlchemy async."""

import asyncio
from typing import Any, Generic, Mapping, Optional, Sequence, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.core.exceptions import ValidationException
from shared.db.session import Base
from shared.domain.interfaces.repository import Repository

ModelT = TypeVar("ModelT", bound=Base)

# AsyncSession não aceita operações concorrentes; repositories da mesma
# sessão compartilham este lock (operações em lote usam asyncio.gather).
SESSION_LOCK_KEY = "ads_manager_session_lock"


class SQLAlchemyRepository(Repository[ModelT, str], Generic[ModelT]):
    """CRUD e consultas com filtros de igualdade exata."""

    model: type[ModelT]

    def __init__(self, session: AsyncSession):
        self.session = session
        self._lock: asyncio.Lock = session.info.setdefault(SESSION_LOCK_KEY, asyncio.Lock())

    def _column(self, name: str, field: str):
        if name not in self.model.__table__.columns:
            raise ValidationException(field, f"campo desconhecido: {name}")
        return getattr(self.model, name)

    def _filtered(self, stmt, filters: Mapping[str, Any]):
        for name, value in filters.items():
            stmt = stmt.where(self._column(name, "filters") == value)
        return stmt

    async def get_by_id(self, id: str) -> Optional[ModelT]:
        async with self._lock:
            return await self.session.get(self.model, id)

    async def find_one(self, filters: Mapping[str, Any]) -> Optional[ModelT]:
        stmt = self._filtered(select(self.model), filters).limit(1)
        async with self._lock:
            result = await self.session.execute(stmt)
            return result.scalars().first()

    async def find(
        self,
        filters: Mapping[str, Any],
        sort_by: Optional[str] = None,
        descending: bool = True,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[ModelT]:
        stmt = self._filtered(select(self.model), filters)
        if sort_by:
            column = self._column(sort_by, "sort_by")
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        async with self._lock:
            result = await self.session.execute(stmt)
            return result.scalars().all()

    async def count(self, filters: Mapping[str, Any]) -> int:
        stmt = self._filtered(select(func.count()).select_from(self.model), filters)
        async with self._lock:
            result = await self.session.execute(stmt)
            return int(result.scalar_one())

    async def add(self, entity: ModelT) -> ModelT:
        async with self._lock:
            self.session.add(entity)
            await self.session.flush()
        return entity

    async def update(self, entity: ModelT) -> ModelT:
        async with self._lock:
            merged = await self.session.merge(entity)
            await self.session.flush()
        return merged

    async def delete(self, id: str) -> bool:
        async with self._lock:
            entity = await self.session.get(self.model, id)
            if entity is None:
                return False
            await self.session.delete(entity)
            await self.session.flush()
        return True
