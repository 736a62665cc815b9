import asyncio
from datetime import datetime, timezone

import pytest

import database
from errors import InsufficientStock, NotFound, ValidationFailed
from schemas import OrderCreate, ProductUpdate
from tests.conftest import FakeSocket, make_product

CUSTOMER = {"name": "Asha", "phone": "9876543210", "address": "12 Forest Lane, Pune"}


def order_request(*lines, customer=None):
    return OrderCreate(
        products=[{"productId": pid, "quantity": qty} for pid, qty in lines],
        customer=customer or CUSTOMER,
    )


def place(processor, *lines):
    return asyncio.run(processor.place(order_request(*lines)))


def test_total_is_sum_of_line_items(processor, catalog, dogs):
    puppy = make_product(catalog, dogs.id, price=25000, stock=2)
    food = make_product(catalog, dogs.id, name="Dog Food", type="food", price=1200, stock=15)

    order = place(processor, (puppy.id, 1), (food.id, 3))

    assert order.status == "pending"
    assert order.total_amount_inr == 25000 + 3 * 1200
    assert [(i.name, i.price_in_inr, i.quantity) for i in order.products] == [
        ("Golden Retriever Puppy", 25000, 1),
        ("Dog Food", 1200, 3),
    ]
    assert order.customer.alt_phone is None
    assert catalog.get_product(puppy.id).stock == 1
    assert catalog.get_product(food.id).stock == 12


def test_order_keeps_price_snapshot(processor, catalog, order_store, dogs):
    puppy = make_product(catalog, dogs.id, price=25000, stock=5)
    order = place(processor, (puppy.id, 2))

    catalog.update_product(puppy.id, ProductUpdate(priceInINR=99999, name="Renamed Puppy"))

    stored = order_store.get(order.id)
    assert stored.total_amount_inr == 50000
    assert stored.products[0].price_in_inr == 25000
    assert stored.products[0].name == "Golden Retriever Puppy"


def test_stock_scenario(processor, catalog, notifier, dogs):
    sock = FakeSocket()
    notifier.add(sock)
    puppy = make_product(catalog, dogs.id, stock=2)

    order = place(processor, (puppy.id, 2))

    assert catalog.get_product(puppy.id).stock == 0
    assert sock.events() == ["order:created", "product:updated"]
    assert sock.sent[0]["data"]["id"] == order.id
    assert sock.sent[0]["data"]["totalAmountINR"] == 50000
    assert sock.sent[1]["data"]["stock"] == 0

    with pytest.raises(InsufficientStock) as exc:
        place(processor, (puppy.id, 1))
    assert exc.value.product_name == "Golden Retriever Puppy"
    assert catalog.get_product(puppy.id).stock == 0


def test_rejected_order_commits_nothing(processor, catalog, order_store, notifier, dogs):
    sock = FakeSocket()
    notifier.add(sock)
    plenty = make_product(catalog, dogs.id, name="Dog Food", stock=10)
    scarce = make_product(catalog, dogs.id, name="Leash", stock=1)

    with pytest.raises(InsufficientStock):
        place(processor, (plenty.id, 4), (scarce.id, 2))

    assert catalog.get_product(plenty.id).stock == 10
    assert order_store.list() == []
    assert sock.sent == []


def test_missing_product(processor, catalog, order_store, dogs):
    puppy = make_product(catalog, dogs.id)
    with pytest.raises(NotFound):
        place(processor, (puppy.id, 1), ("64b7f0c2a1b2c3d4e5f60718", 1))
    assert catalog.get_product(puppy.id).stock == 2
    assert order_store.list() == []


def test_repeated_lines_checked_together(processor, catalog, dogs):
    puppy = make_product(catalog, dogs.id, stock=3)
    with pytest.raises(InsufficientStock):
        place(processor, (puppy.id, 2), (puppy.id, 2))
    assert catalog.get_product(puppy.id).stock == 3

    order = place(processor, (puppy.id, 1), (puppy.id, 2))
    assert len(order.products) == 2
    assert catalog.get_product(puppy.id).stock == 0


def test_concurrent_orders_cannot_oversell(processor, catalog, order_store, dogs):
    puppy = make_product(catalog, dogs.id, stock=1)

    async def race():
        return await asyncio.gather(
            processor.place(order_request((puppy.id, 1))),
            processor.place(order_request((puppy.id, 1))),
            return_exceptions=True,
        )

    results = asyncio.run(race())

    assert sum(isinstance(r, InsufficientStock) for r in results) == 1
    assert len(order_store.list()) == 1
    assert catalog.get_product(puppy.id).stock == 0


def test_status_transitions(processor, catalog, notifier, dogs):
    puppy = make_product(catalog, dogs.id, stock=5)
    first = place(processor, (puppy.id, 1))
    second = place(processor, (puppy.id, 1))
    sock = FakeSocket()
    notifier.add(sock)

    done = asyncio.run(processor.set_status(first.id, "completed"))
    assert done.status == "completed"
    assert sock.events() == ["order:updated"]

    with pytest.raises(ValidationFailed):
        asyncio.run(processor.set_status(first.id, "cancelled"))
    with pytest.raises(ValidationFailed):
        asyncio.run(processor.set_status(second.id, "pending"))

    cancelled = asyncio.run(processor.set_status(second.id, "cancelled"))
    assert cancelled.status == "cancelled"
    assert cancelled.products == second.products
    # Cancelling does not restock.
    assert catalog.get_product(puppy.id).stock == 3

    with pytest.raises(NotFound):
        asyncio.run(processor.set_status("64b7f0c2a1b2c3d4e5f60718", "completed"))


def test_orders_listed_newest_first(processor, catalog, order_store, dogs):
    puppy = make_product(catalog, dogs.id, stock=5)
    first = place(processor, (puppy.id, 1))
    second = place(processor, (puppy.id, 1))
    assert [o.id for o in order_store.list()] == [second.id, first.id]


def test_orders_with_same_timestamp_listed_newest_first(processor, catalog, order_store, dogs, monkeypatch):
    fixed = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)
    monkeypatch.setattr(database, "now", lambda: fixed)
    puppy = make_product(catalog, dogs.id, stock=5)
    first = place(processor, (puppy.id, 1))
    second = place(processor, (puppy.id, 1))
    third = place(processor, (puppy.id, 1))
    assert [o.id for o in order_store.list()] == [third.id, second.id, first.id]


def test_contended_order_waits_for_lock(processor, catalog, dogs):
    puppy = make_product(catalog, dogs.id, stock=1)

    async def contended():
        async with processor._lock:
            pending = asyncio.create_task(processor.place(order_request((puppy.id, 1))))
            await asyncio.sleep(0)
            assert not pending.done()
            assert catalog.get_product(puppy.id).stock == 1
        return await pending

    order = asyncio.run(contended())
    assert order.status == "pending"
    assert catalog.get_product(puppy.id).stock == 0
