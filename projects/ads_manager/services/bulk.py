"""Execução concorrente de operações em lote com isolamento de falhas."""

import asyncio
from typing import Any, Awaitable, Callable, Sequence

from shared.core.exceptions import AdsManagerException
from shared.core.logging import get_logger
from projects.ads_manager.schemas.common import BulkItemResult, BulkOperationResult

logger = get_logger(__name__)

ItemOperation = Callable[[str], Awaitable[Any]]


class BulkOperationRunner:
    """
    Executa uma operação por ID concorrentemente.

    A falha de um item nunca cancela os demais; cada resultado é registrado
    individualmente, na ordem dos IDs de entrada.
    """

    def __init__(self, operation_name: str = "bulk"):
        self.operation_name = operation_name

    async def run(self, ids: Sequence[str], operation: ItemOperation) -> BulkOperationResult:
        outcomes = await asyncio.gather(
            *(operation(item_id) for item_id in ids),
            return_exceptions=True,
        )

        results: list[BulkItemResult] = []
        for item_id, outcome in zip(ids, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                results.append(
                    BulkItemResult(id=item_id, status="rejected", error=_error_message(outcome))
                )
                logger.warning(
                    "Item de lote falhou",
                    operation=self.operation_name,
                    item_id=item_id,
                    error=_error_message(outcome),
                )
            else:
                results.append(BulkItemResult(id=item_id, status="fulfilled", data=outcome))

        success_count = sum(1 for r in results if r.status == "fulfilled")
        result = BulkOperationResult(
            success_count=success_count,
            failure_count=len(results) - success_count,
            results=results,
        )
        logger.info(
            "Operação em lote concluída",
            operation=self.operation_name,
            total=len(ids),
            success_count=result.success_count,
            failure_count=result.failure_count,
        )
        return result


def _error_message(error: Exception) -> str:
    if isinstance(error, AdsManagerException):
        return error.message
    return str(error) or type(error).__name__
