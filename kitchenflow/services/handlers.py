"""
Side-effect handlers wired onto the event bus

Each handler opens its own session, so it runs independently of the request
that enqueued the event. Failures that a retry cannot fix are logged and
dropped; store failures and version conflicts propagate so the bus retries
them.
"""

from typing import Callable, Optional

import structlog
from sqlmodel import Session

from kitchenflow.core.config import Settings, get_settings
from kitchenflow.core.events import EventBus, OrderAccepted, OrderCompleted, TicketReady
from kitchenflow.core.exceptions import InvalidTransition, NotFound
from kitchenflow.core.store import RecordStore
from kitchenflow.services.dispatcher import TicketDispatcher
from kitchenflow.services.order_lifecycle import OrderLifecycle
from kitchenflow.services.ticket_lifecycle import TicketLifecycle

logger = structlog.get_logger(__name__)


def register_handlers(
    bus: EventBus,
    session_factory: Callable[[], Session],
    settings: Optional[Settings] = None,
):
    """Subscribe the order pipeline side effects to bus"""
    settings = settings or get_settings()

    def dispatch_tickets(event: OrderAccepted):
        with session_factory() as session:
            dispatcher = TicketDispatcher(
                RecordStore(session),
                bus=bus,
                routing_mode=settings.KDS_ROUTING_MODE,
            )
            try:
                dispatcher.dispatch(event.order_id)
            except NotFound:
                logger.error(f"Order {event.order_id} vanished before its tickets were dispatched", exc_info=True)

    def advance_order(event: TicketReady):
        with session_factory() as session:
            lifecycle = OrderLifecycle(RecordStore(session), bus=bus)
            try:
                lifecycle.advance_to_ready(event.order_id)
            except (InvalidTransition, NotFound) as e:
                logger.error(
                    f"Could not advance order {event.order_id} after ticket {event.ticket_id} "
                    f"became ready: {e.message}",
                    exc_info=True,
                )

    def bump_tickets(event: OrderCompleted):
        with session_factory() as session:
            lifecycle = TicketLifecycle(RecordStore(session), bus=bus)
            try:
                lifecycle.bump_order_tickets(event.order_id)
            except NotFound:
                logger.error(f"Order {event.order_id} vanished before its tickets were bumped", exc_info=True)

    bus.subscribe(OrderAccepted.__name__, dispatch_tickets)
    bus.subscribe(TicketReady.__name__, advance_order)
    bus.subscribe(OrderCompleted.__name__, bump_tickets)
    logger.info("Registered order pipeline event handlers")
