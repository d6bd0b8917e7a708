"""
Unit tests for KDS ticket dispatch
"""

import pytest
import uuid

from kitchenflow.core.events import TicketCreated
from kitchenflow.core.exceptions import StoreError
from kitchenflow.models import MenuItem, OrderItem, OrderStatus
from kitchenflow.models.ticket import Station, TicketStatus
from kitchenflow.services.dispatcher import TicketDispatcher


@pytest.fixture
def dispatcher(store, bus):
    return TicketDispatcher(store, bus=bus)


@pytest.fixture
def full_order(make_order, menu):
    """Accepted order with one item for every station"""
    return make_order(
        [menu["bar"], menu["hot"], menu["default"], menu["cold"]],
        status=OrderStatus.ACCEPTED,
    )


def test_dispatch_creates_one_ticket_per_station(dispatcher, full_order, store):
    tickets = dispatcher.dispatch(full_order.id)

    assert [ticket.station for ticket in tickets] == [
        Station.HOT, Station.COLD, Station.BAR, Station.DEFAULT
    ]
    for ticket in tickets:
        assert ticket.status == TicketStatus.QUEUED
        assert ticket.priority is False
        assert ticket.order_id == full_order.id
        assert ticket.tenant_id == full_order.tenant_id
        assert len(ticket.ticket_items) == 1
    assert len(store.list("kdsTicket", {"order_id": full_order.id})) == 4


def test_ticket_items_are_snapshots(dispatcher, make_order, menu):
    order = make_order([menu["hot"]], status=OrderStatus.ACCEPTED)

    ticket = dispatcher.dispatch(order)[0]

    assert ticket.ticket_items == [{
        "menuItemId": str(menu["hot"].id),
        "name": "Butter Chicken",
        "quantity": 1,
        "options": [{"name": "Spice", "value": "medium"}],
        "unitPrice": 14.5,
        "comment": "no onions",
        "station": "hot",
    }]


def test_menu_edits_do_not_change_dispatched_tickets(dispatcher, make_order, menu, store):
    order = make_order([menu["hot"]], status=OrderStatus.ACCEPTED)
    ticket = dispatcher.dispatch(order)[0]

    store.update("menuItem", menu["hot"].id, {"name": "Butter Chicken (new recipe)"})

    assert store.get("kdsTicket", ticket.id).ticket_items[0]["name"] == "Butter Chicken"


def test_items_of_one_station_share_a_ticket(dispatcher, make_order, menu):
    order = make_order([menu["hot"], menu["hot"]], status=OrderStatus.ACCEPTED)

    tickets = dispatcher.dispatch(order)

    assert len(tickets) == 1
    assert [item["quantity"] for item in tickets[0].ticket_items] == [1, 2]


def test_single_mode_creates_one_default_ticket(store, bus, full_order):
    dispatcher = TicketDispatcher(store, bus=bus, routing_mode="single")

    tickets = dispatcher.dispatch(full_order)

    assert len(tickets) == 1
    assert tickets[0].station == Station.DEFAULT
    assert [item["station"] for item in tickets[0].ticket_items] == ["bar", "hot", "default", "cold"]


def test_dispatch_enqueues_ticket_created(dispatcher, full_order, bus):
    tickets = dispatcher.dispatch(full_order)

    events = [event for event in bus.pending if isinstance(event, TicketCreated)]
    assert [event.ticket_id for event in events] == [ticket.id for ticket in tickets]
    assert events[0].station == "hot"


def test_dispatch_is_idempotent(dispatcher, full_order, store):
    dispatcher.dispatch(full_order)

    assert dispatcher.dispatch(full_order) == []
    assert len(store.list("kdsTicket", {"order_id": full_order.id})) == 4


def test_redelivery_fills_only_missing_stations(dispatcher, full_order, store):
    store.create("kdsTicket", {
        "tenant_id": full_order.tenant_id,
        "order_id": full_order.id,
        "station": Station.HOT,
        "status": TicketStatus.QUEUED,
        "ticket_items": [],
    })

    tickets = dispatcher.dispatch(full_order)

    assert [ticket.station for ticket in tickets] == [Station.COLD, Station.BAR, Station.DEFAULT]


def test_single_mode_skips_order_with_tickets(store, bus, full_order):
    dispatcher = TicketDispatcher(store, bus=bus, routing_mode="single")
    dispatcher.dispatch(full_order)

    assert dispatcher.dispatch(full_order) == []


@pytest.mark.parametrize("status", [OrderStatus.PLACED, OrderStatus.READY, OrderStatus.CANCELED])
def test_orders_outside_the_kitchen_are_not_dispatched(dispatcher, make_order, menu, status, store):
    order = make_order([menu["hot"]], status=status)

    assert dispatcher.dispatch(order) == []
    assert store.list("kdsTicket", {"order_id": order.id}) == []


def test_order_already_in_kitchen_is_dispatched(dispatcher, make_order, menu):
    order = make_order([menu["hot"]], status=OrderStatus.IN_KITCHEN)

    tickets = dispatcher.dispatch(order)

    assert [ticket.station for ticket in tickets] == [Station.HOT]


def test_order_without_items_gets_no_tickets(dispatcher, make_order):
    order = make_order(status=OrderStatus.ACCEPTED)

    assert dispatcher.dispatch(order) == []


def test_missing_menu_item_routes_to_default(dispatcher, make_order, db, store):
    order = make_order(status=OrderStatus.ACCEPTED)
    db.add(OrderItem(
        tenant_id=order.tenant_id,
        order_id=order.id,
        menu_item_id=uuid.uuid4(),
        name_snapshot="Discontinued Dish",
        unit_price=0,
    ))
    db.commit()

    tickets = dispatcher.dispatch(order.id)

    assert [ticket.station for ticket in tickets] == [Station.DEFAULT]
    assert tickets[0].ticket_items[0]["name"] == "Discontinued Dish"


def test_uncategorized_menu_item_routes_to_default(dispatcher, make_order, db, test_tenant):
    item = MenuItem(tenant_id=test_tenant.id, name="Bread Basket", price=3)
    db.add(item)
    db.commit()
    db.refresh(item)
    order = make_order([item], status=OrderStatus.ACCEPTED)

    tickets = dispatcher.dispatch(order)

    assert tickets[0].station == Station.DEFAULT


def test_failed_ticket_does_not_block_other_stations(dispatcher, full_order, store, monkeypatch):
    create = store.create

    def flaky_create(collection, fields):
        if fields.get("station") == Station.BAR:
            raise StoreError("Failed to create kdsTicket record")
        return create(collection, fields)

    monkeypatch.setattr(store, "create", flaky_create)

    with pytest.raises(StoreError):
        dispatcher.dispatch(full_order)

    stations = {ticket.station for ticket in store.list("kdsTicket", {"order_id": full_order.id})}
    assert stations == {Station.HOT, Station.COLD, Station.DEFAULT}

    monkeypatch.setattr(store, "create", create)
    assert [ticket.station for ticket in dispatcher.dispatch(full_order)] == [Station.BAR]


def test_unknown_routing_mode(store):
    with pytest.raises(ValueError):
        TicketDispatcher(store, routing_mode="round_robin")
