"""Transactional behaviour of the in-process store."""

import threading

import pytest

from stockhold.infrastructure.persistence.memory import (
    ConstraintViolationError,
    InMemoryStore,
    InMemoryUnitOfWork,
    LockTimeoutError,
)
from tests.fakes import Checkout, load_variant, seed_variant


@pytest.fixture
def store():
    return InMemoryStore()


def test_row_lock_blocks_until_commit(store):
    factory = lambda: InMemoryUnitOfWork(store)  # noqa: E731
    variant_id = seed_variant(factory, stock_total=5)
    seen = []

    first = factory().__enter__()
    variant = first.variants.get_for_update(variant_id)

    def second_writer():
        with factory() as uow:
            seen.append(uow.variants.get_for_update(variant_id).stock_reserved)

    thread = threading.Thread(target=second_writer)
    thread.start()
    thread.join(timeout=0.2)
    assert thread.is_alive()

    variant.hold(2)
    first.variants.save(variant)
    first.commit()
    thread.join(timeout=5)
    assert seen == [2]


def test_lock_timeout(store):
    factory = lambda: InMemoryUnitOfWork(store, lock_timeout=0.05)  # noqa: E731
    variant_id = seed_variant(factory)
    with factory() as holder:
        holder.variants.get_for_update(variant_id)
        result = []

        def contender():
            with factory() as uow:
                try:
                    uow.variants.get_for_update(variant_id)
                except LockTimeoutError as exc:
                    result.append(exc)

        thread = threading.Thread(target=contender)
        thread.start()
        thread.join(timeout=5)
    assert len(result) == 1


def test_commit_enforces_counter_range(store):
    factory = lambda: InMemoryUnitOfWork(store)  # noqa: E731
    variant_id = seed_variant(factory, stock_total=1)
    with factory() as uow:
        variant = uow.variants.get_for_update(variant_id)
        variant.stock_reserved = 2
        uow.variants.save(variant)
        with pytest.raises(ConstraintViolationError):
            uow.commit()
    assert load_variant(factory, variant_id).stock_reserved == 0


def test_commit_enforces_one_order_per_reservation(store):
    factory = lambda: InMemoryUnitOfWork(store)  # noqa: E731
    checkout = Checkout(uow_factory=factory)
    with factory() as uow:
        duplicate = uow.orders.get_by_id(checkout.order_id)
        duplicate.id = None
        uow.orders.add(duplicate)
        with pytest.raises(ConstraintViolationError):
            uow.commit()


def test_reads_return_copies(store):
    factory = lambda: InMemoryUnitOfWork(store)  # noqa: E731
    variant_id = seed_variant(factory, stock_total=3)
    with factory() as uow:
        uow.variants.get(variant_id).stock_reserved = 3
    assert load_variant(factory, variant_id).stock_reserved == 0
