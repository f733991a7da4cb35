"""Application service: Show Order use cases (queries)."""

from __future__ import annotations

from stockhold.application.dto import OrderDTO
from stockhold.application.mapping import order_to_dto
from stockhold.domain.exceptions import EntityNotFoundError
from stockhold.domain.repository.unit_of_work import UnitOfWorkFactory


class ShowOrderHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, order_id: int) -> OrderDTO:
        with self._uow_factory() as uow:
            order = uow.orders.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return order_to_dto(order)


class ListReviewQueueHandler:
    """Orders an operator has to look at (late or contradictory payments)."""

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self) -> list[OrderDTO]:
        with self._uow_factory() as uow:
            orders = uow.orders.list_for_review()
        return [order_to_dto(order) for order in orders]
