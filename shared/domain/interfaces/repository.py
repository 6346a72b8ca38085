"""Base repository interface."""
from abc import ABC, abstractmethod
from typing import Any, Generic, Mapping, Optional, Sequence, TypeVar

T = TypeVar('T')
ID = TypeVar('ID')


class Repository(ABC, Generic[T, ID]):
    """Interface base para todos os repositories.

    O armazenamento é tratado como um document store: CRUD por ID e
    consultas com filtros de igualdade exata.
    """

    @abstractmethod
    async def get_by_id(self, id: ID) -> Optional[T]:
        """Busca uma entidade pelo ID."""
        pass

    @abstractmethod
    async def find_one(self, filters: Mapping[str, Any]) -> Optional[T]:
        """Busca a primeira entidade que satisfaz os filtros."""
        pass

    @abstractmethod
    async def find(
        self,
        filters: Mapping[str, Any],
        sort_by: Optional[str] = None,
        descending: bool = True,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[T]:
        """Lista entidades filtradas, ordenadas por um único campo."""
        pass

    @abstractmethod
    async def count(self, filters: Mapping[str, Any]) -> int:
        """Conta entidades que satisfazem os filtros."""
        pass

    @abstractmethod
    async def add(self, entity: T) -> T:
        """Adiciona uma nova entidade."""
        pass

    @abstractmethod
    async def update(self, entity: T) -> T:
        """Atualiza uma entidade existente."""
        pass

    @abstractmethod
    async def delete(self, id: ID) -> bool:
        """Remove uma entidade pelo ID."""
        pass
