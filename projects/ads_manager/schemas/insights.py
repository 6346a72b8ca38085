"""Schemas Pydantic para consultas de insights."""

from datetime import date
from typing import Any, Optional

from pydantic import model_validator

from projects.ads_manager.schemas.base import CamelCaseModel


class DateRange(CamelCaseModel):
    """Intervalo fechado de datas (YYYY-MM-DD) enviado como ``time_range``."""
    since: date
    until: date

    @model_validator(mode="after")
    def check_order(self) -> "DateRange":
        if self.since > self.until:
            raise ValueError("since deve ser anterior ou igual a until")
        return self

    def to_wire(self) -> dict[str, str]:
        return {"since": self.since.isoformat(), "until": self.until.isoformat()}


class InsightsRequest(CamelCaseModel):
    """Parâmetros de consulta ao edge ``/insights``."""
    fields: Optional[list[str]] = None
    time_range: Optional[DateRange] = None
    date_preset: Optional[str] = None
    level: Optional[str] = None
    breakdowns: Optional[list[str]] = None
    filtering: Optional[list[dict[str, Any]]] = None
    sort: Optional[list[str]] = None
    time_increment: Optional[str] = None
    limit: Optional[int] = None
    after: Optional[str] = None
