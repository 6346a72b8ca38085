"""
Conversão de valores monetários entre unidades locais e a Graph API.

A Graph API trabalha com a menor unidade da moeda (centavos): 12.34 -> 1234.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

MINOR_UNITS_PER_MAJOR = Decimal(100)


def to_minor_units(value: int | float | Decimal | str) -> int:
    """Converte para centavos arredondando para o inteiro mais próximo."""
    amount = Decimal(str(value)) * MINOR_UNITS_PER_MAJOR
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(value: Any) -> Optional[Decimal]:
    """Parse budget value from Facebook (centavos string -> Decimal em unidades)."""
    if value is None or value == "":
        return None
    try:
        return (Decimal(str(value)) / MINOR_UNITS_PER_MAJOR).quantize(Decimal("0.01"))
    except (InvalidOperation, ValueError, TypeError):
        return None
