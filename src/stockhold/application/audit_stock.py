"""Application service: Audit Stock use case (query).

Checks the counter invariants of every variant:

- ``0 <= stock_reserved <= stock_total``
- ``stock_reserved`` equals the sum of its ACTIVE reservation quantities
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from stockhold.domain.repository.unit_of_work import UnitOfWorkFactory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockDiscrepancyDTO:
    variant_id: int
    sku: str
    stock_total: int
    stock_reserved: int
    active_reserved: int
    problem: str


class AuditStockHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self) -> list[StockDiscrepancyDTO]:
        problems: list[StockDiscrepancyDTO] = []
        with self._uow_factory() as uow:
            for variant in uow.variants.list_all():
                held = uow.reservations.active_quantity(variant.id)  # type: ignore[arg-type]
                problem = None
                if not 0 <= variant.stock_reserved <= variant.stock_total:
                    problem = "reserved stock outside [0, total]"
                elif held != variant.stock_reserved:
                    problem = "reserved stock differs from active reservations"
                if problem:
                    problems.append(
                        StockDiscrepancyDTO(
                            variant_id=variant.id,  # type: ignore[arg-type]
                            sku=variant.sku,
                            stock_total=variant.stock_total,
                            stock_reserved=variant.stock_reserved,
                            active_reserved=held,
                            problem=problem,
                        )
                    )

        for p in problems:
            logger.error(
                "Stock discrepancy on %s: %s (total=%d, reserved=%d, active holds=%d)",
                p.sku, p.problem, p.stock_total, p.stock_reserved, p.active_reserved,
            )
        return problems
