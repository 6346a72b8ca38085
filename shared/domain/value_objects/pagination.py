"""Pagination value objects."""
from dataclasses import dataclass
from typing import TypeVar, Generic, Optional, Sequence

T = TypeVar('T')

SORT_ASC = "asc"
SORT_DESC = "desc"


@dataclass(frozen=True)
class PageRequest:
    """Requisição de paginação por offset, com ordenação por um campo."""
    page: int = 1
    limit: int = 10
    sort_by: Optional[str] = None
    sort_order: str = SORT_DESC
    max_limit: int = 100

    def __post_init__(self):
        if self.page < 1:
            raise ValueError("Page must be >= 1")
        if self.limit < 1 or self.limit > self.max_limit:
            raise ValueError(f"Limit must be between 1 and {self.max_limit}")
        if self.sort_order not in (SORT_ASC, SORT_DESC):
            raise ValueError("Sort order must be 'asc' or 'desc'")

    @property
    def offset(self) -> int:
        """Calcula offset para a query."""
        return (self.page - 1) * self.limit

    @property
    def descending(self) -> bool:
        return self.sort_order == SORT_DESC


@dataclass(frozen=True)
class PageResponse(Generic[T]):
    """Resposta paginada."""
    items: Sequence[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        """Calcula número total de páginas."""
        if self.limit == 0:
            return 0
        return (self.total + self.limit - 1) // self.limit
