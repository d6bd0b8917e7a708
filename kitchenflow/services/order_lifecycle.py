"""
Order lifecycle service

Validates order status changes against the transition table, stamps the
entry timestamp, and enqueues the side effects a change implies. Side effects
run after the status write has committed and can never revert it.
"""

from datetime import datetime
from typing import Callable, Optional, Union
import uuid

import structlog

from kitchenflow.core.clock import utcnow
from kitchenflow.core.events import EventBus, OrderAccepted, OrderCompleted, OrderStatusChanged
from kitchenflow.core.exceptions import InvalidTransition
from kitchenflow.core.store import RecordStore
from kitchenflow.models.order import Order, OrderStatus
from kitchenflow.services.transitions import can_transition, parse_status, timestamp_field_for

logger = structlog.get_logger(__name__)

# Statuses from which a ticket becoming ready has nothing left to do
_AT_OR_PAST_READY = (OrderStatus.READY, OrderStatus.SERVED, OrderStatus.COMPLETED)


class OrderLifecycle:
    """Order status state machine over the record store"""

    def __init__(
        self,
        store: RecordStore,
        bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.bus = bus
        self.clock = clock

    def _load(self, order: Union[Order, uuid.UUID, str], tenant_id: Optional[uuid.UUID]) -> Order:
        if isinstance(order, Order):
            if tenant_id is not None and order.tenant_id != tenant_id:
                return self.store.get("orders", order.id, tenant_id=tenant_id)
            return order
        return self.store.get("orders", order, tenant_id=tenant_id)

    def request_transition(
        self,
        order: Union[Order, uuid.UUID, str],
        new_status: Union[OrderStatus, str],
        expected_version: Optional[int] = None,
        tenant_id: Optional[uuid.UUID] = None,
    ) -> Order:
        """Move an order to new_status

        Re-requesting the current status is a successful no-op. The write is a
        compare-and-set on the version the transition was validated against.

        Raises:
            InvalidTransition: new_status is not a successor of the current status
            VersionConflict: the order changed since it was read
            StoreError: the status write failed
        """
        order = self._load(order, tenant_id)
        current = order.status
        target = parse_status(new_status)
        if target is None:
            raise InvalidTransition(current.value, str(new_status))

        if current == target:
            logger.debug(f"Order {order.id} already {target.value}, nothing to do")
            return order

        if not can_transition(current, target):
            raise InvalidTransition(current.value, target.value)

        timestamps = dict(order.timestamps or {})
        field = timestamp_field_for(target)
        if field and field not in timestamps:
            timestamps[field] = self.clock().isoformat()

        version = expected_version if expected_version is not None else order.version
        updated = self.store.update(
            "orders",
            order.id,
            {"status": target, "timestamps": timestamps},
            expected_version=version,
        )
        logger.info(f"Order {updated.id} moved {current.value} -> {target.value}")

        self._enqueue_side_effects(updated, current)
        return updated

    def _enqueue_side_effects(self, order: Order, previous: OrderStatus):
        if self.bus is None:
            return

        self.bus.enqueue(OrderStatusChanged(
            order_id=order.id,
            tenant_id=order.tenant_id,
            previous_status=previous.value,
            status=order.status.value,
        ))
        if order.status == OrderStatus.ACCEPTED:
            self.bus.enqueue(OrderAccepted(order_id=order.id, tenant_id=order.tenant_id))
        elif order.status == OrderStatus.COMPLETED:
            self.bus.enqueue(OrderCompleted(order_id=order.id, tenant_id=order.tenant_id))

    def advance_to_ready(self, order_id: Union[uuid.UUID, str]) -> Order:
        """Advance an order to READY because one of its tickets is ready

        An order still in ACCEPTED goes through IN_KITCHEN first so it only
        ever moves along declared edges. Orders already at or past READY are
        left alone, which makes repeated ticket-ready deliveries harmless.
        """
        order = self.store.get("orders", order_id)
        if order.status in _AT_OR_PAST_READY:
            logger.debug(f"Order {order.id} already {order.status.value}, skipping ready advance")
            return order

        if order.status == OrderStatus.ACCEPTED:
            order = self.request_transition(order, OrderStatus.IN_KITCHEN)
        return self.request_transition(order, OrderStatus.READY)
