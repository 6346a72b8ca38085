"""Schemas comuns: paginação, resultados de operações e lotes."""

from typing import Any, Generic, Literal, Optional, TypeVar

from pydantic import Field

from projects.ads_manager.schemas.base import CamelCaseModel

T = TypeVar("T")


class PaginationParams(CamelCaseModel):
    """Paginação por offset com ordenação por um único campo."""
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1)
    sort_by: str = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"


class PaginationInfo(CamelCaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class PaginatedResponse(CamelCaseModel, Generic[T]):
    """Lista paginada."""
    data: list[T]
    pagination: PaginationInfo


class BulkItemResult(CamelCaseModel):
    """Resultado individual de um item de lote."""
    id: str
    status: Literal["fulfilled", "rejected"]
    data: Optional[Any] = None
    error: Optional[str] = None


class BulkOperationResult(CamelCaseModel):
    """Agregado de uma operação em lote; a ordem dos IDs é preservada."""
    success_count: int = 0
    failure_count: int = 0
    results: list[BulkItemResult] = Field(default_factory=list)


class OperationResult(CamelCaseModel):
    """Resultado estruturado devolvido por todos os comandos."""
    success: bool
    message: str
    data: Optional[Any] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
