"""
Ticket dispatcher

Materializes kitchen tickets for an order that has just been accepted.

Rules:
- Item stations come from the station router using the item's category name
- A missing menu item or category routes the item to the default station
- "per_station" mode creates one ticket per station that has items
- "single" mode creates one default-station ticket; items keep their routed
  station as metadata
- Tickets start QUEUED with priority off and hold a snapshot of the items
- Orders that reached in_kitchen before dispatch ran are still dispatched
- Dispatch is idempotent: stations that already have a ticket for the order
  are skipped, so redelivery only fills in what is missing
"""

from collections import OrderedDict
from typing import Dict, List, Optional, Union
import uuid

import structlog

from kitchenflow.core.events import EventBus, TicketCreated
from kitchenflow.core.exceptions import NotFound, StoreError
from kitchenflow.core.store import RecordStore
from kitchenflow.models.order import Order, OrderItem, OrderStatus
from kitchenflow.models.ticket import KdsTicket, Station, TicketStatus
from kitchenflow.services.stations import route_station

logger = structlog.get_logger(__name__)

ROUTING_PER_STATION = "per_station"
ROUTING_SINGLE = "single"

# Ticket creation order when items are split across stations
STATION_ORDER = (Station.HOT, Station.COLD, Station.BAR, Station.DEFAULT)

# An accepted order may already be in the kitchen by the time its dispatch runs
DISPATCHABLE_STATUSES = (OrderStatus.ACCEPTED, OrderStatus.IN_KITCHEN)


class TicketDispatcher:
    """Creates KDS tickets from accepted orders"""

    def __init__(
        self,
        store: RecordStore,
        bus: Optional[EventBus] = None,
        routing_mode: str = ROUTING_PER_STATION,
    ):
        if routing_mode not in (ROUTING_PER_STATION, ROUTING_SINGLE):
            raise ValueError(f"Unknown KDS routing mode: {routing_mode}")
        self.store = store
        self.bus = bus
        self.routing_mode = routing_mode
        self._category_names: Dict[uuid.UUID, str] = {}

    def station_for(self, item: OrderItem) -> Station:
        """Resolve the station of one order item through its menu category"""
        try:
            menu_item = self.store.get("menuItem", item.menu_item_id)
        except NotFound:
            logger.warning(f"Menu item {item.menu_item_id} not found, routing to default station")
            return Station.DEFAULT

        if not menu_item.category_id:
            return Station.DEFAULT

        category_name = self._category_names.get(menu_item.category_id)
        if category_name is None:
            try:
                category_name = self.store.get("menuCategory", menu_item.category_id).name
            except NotFound:
                logger.warning(f"Category {menu_item.category_id} not found for menu item {menu_item.name}")
                category_name = ""
            self._category_names[menu_item.category_id] = category_name

        return route_station(category_name)

    @staticmethod
    def snapshot(item: OrderItem, station: Station) -> dict:
        """Freeze an order item into ticket form"""
        return {
            "menuItemId": str(item.menu_item_id),
            "name": item.name_snapshot,
            "quantity": item.quantity,
            "options": list(item.options_snapshot or []),
            "unitPrice": float(item.unit_price),
            "comment": (item.comment or "").strip(),
            "station": station.value,
        }

    def group_items(self, items: List[OrderItem]) -> "OrderedDict[Station, List[dict]]":
        """Group item snapshots into the tickets they belong on"""
        routed = [(self.station_for(item), item) for item in items]

        groups: "OrderedDict[Station, List[dict]]" = OrderedDict()
        if self.routing_mode == ROUTING_SINGLE:
            groups[Station.DEFAULT] = [self.snapshot(item, station) for station, item in routed]
            return groups

        for station in STATION_ORDER:
            snapshots = [self.snapshot(item, s) for s, item in routed if s == station]
            if snapshots:
                groups[station] = snapshots
        return groups

    def dispatch(self, order: Union[Order, uuid.UUID, str]) -> List[KdsTicket]:
        """Create the tickets for an accepted order

        Orders already moved on to in_kitchen are still dispatched; orders at
        ready or beyond, and orders never accepted, get no tickets.

        Returns the tickets created by this call. Tickets that could not be
        created are logged; a StoreError is raised afterwards so the delivery
        is retried for the missing stations only.
        """
        if not isinstance(order, Order):
            order = self.store.get("orders", order)

        if order.status not in DISPATCHABLE_STATUSES:
            logger.warning(f"Order {order.id} is {order.status.value}, not dispatching tickets")
            return []

        existing = self.store.list("kdsTicket", {"order_id": order.id})
        if existing and self.routing_mode == ROUTING_SINGLE:
            logger.info(f"KDS tickets already exist for order {order.id} ({len(existing)} found)")
            return []
        existing_stations = {ticket.station for ticket in existing}

        items = self.store.list("orderItem", {"order_id": order.id}, sort=["sort_order", "created_at"])
        if not items:
            logger.warning(f"Order {order.id} has no items, no KDS tickets created")
            return []

        created: List[KdsTicket] = []
        failed: List[Station] = []
        for station, snapshots in self.group_items(items).items():
            if station in existing_stations:
                logger.info(f"KDS ticket for order {order.id} at {station.value} station already exists")
                continue
            try:
                ticket = self.store.create("kdsTicket", {
                    "tenant_id": order.tenant_id,
                    "location_id": order.location_id,
                    "order_id": order.id,
                    "station": station,
                    "status": TicketStatus.QUEUED,
                    "ticket_items": snapshots,
                    "priority": False,
                })
            except StoreError as e:
                logger.error(f"Error creating KDS ticket for {station.value} station of order {order.id}: {e}")
                failed.append(station)
                continue

            created.append(ticket)
            logger.info(
                f"Created KDS ticket {ticket.id} for order {order.id} "
                f"at {station.value} station with {len(snapshots)} items"
            )
            if self.bus is not None:
                self.bus.enqueue(TicketCreated(
                    ticket_id=ticket.id,
                    order_id=order.id,
                    tenant_id=order.tenant_id,
                    station=station.value,
                ))

        if failed:
            raise StoreError(
                f"Failed to create KDS tickets for order {order.id} at stations "
                f"{', '.join(station.value for station in failed)}"
            )
        return created
