"""
Domain events system

Domain events represent important business events that can be published
and subscribed to by multiple parts of the system. Services enqueue events
once their primary write has committed; the queue is drained after the
response, so side effects never hold up or revert the request that caused
them.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple
import asyncio
import inspect
import uuid
import structlog

from kitchenflow.core.clock import utcnow

logger = structlog.get_logger(__name__)


class DomainEvent:
    """Base class for domain events"""

    def __init__(self, event_id: uuid.UUID = None):
        self.event_id = event_id or uuid.uuid4()
        self.occurred_at = utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary"""
        return {
            "event_id": str(self.event_id),
            "occurred_at": self.occurred_at.isoformat(),
            "event_type": self.__class__.__name__
        }


class OrderStatusChanged(DomainEvent):
    """Event fired after any committed order status change"""

    def __init__(
        self,
        order_id: uuid.UUID,
        tenant_id: uuid.UUID,
        previous_status: str,
        status: str,
        event_id: uuid.UUID = None
    ):
        super().__init__(event_id)
        self.order_id = order_id
        self.tenant_id = tenant_id
        self.previous_status = previous_status
        self.status = status

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "order_id": str(self.order_id),
            "tenant_id": str(self.tenant_id),
            "previous_status": self.previous_status,
            "status": self.status
        })
        return data


class OrderAccepted(DomainEvent):
    """Event fired when an order enters ACCEPTED; triggers ticket dispatch"""

    def __init__(self, order_id: uuid.UUID, tenant_id: uuid.UUID, event_id: uuid.UUID = None):
        super().__init__(event_id)
        self.order_id = order_id
        self.tenant_id = tenant_id

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "order_id": str(self.order_id),
            "tenant_id": str(self.tenant_id)
        })
        return data


class OrderCompleted(DomainEvent):
    """Event fired when an order enters COMPLETED; clears its tickets"""

    def __init__(self, order_id: uuid.UUID, tenant_id: uuid.UUID, event_id: uuid.UUID = None):
        super().__init__(event_id)
        self.order_id = order_id
        self.tenant_id = tenant_id

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "order_id": str(self.order_id),
            "tenant_id": str(self.tenant_id)
        })
        return data


class TicketCreated(DomainEvent):
    """Event fired when the dispatcher creates a ticket"""

    def __init__(
        self,
        ticket_id: uuid.UUID,
        order_id: uuid.UUID,
        tenant_id: uuid.UUID,
        station: str,
        event_id: uuid.UUID = None
    ):
        super().__init__(event_id)
        self.ticket_id = ticket_id
        self.order_id = order_id
        self.tenant_id = tenant_id
        self.station = station

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "ticket_id": str(self.ticket_id),
            "order_id": str(self.order_id),
            "tenant_id": str(self.tenant_id),
            "station": self.station
        })
        return data


class TicketStatusChanged(DomainEvent):
    """Event fired after any committed ticket status change"""

    def __init__(
        self,
        ticket_id: uuid.UUID,
        order_id: uuid.UUID,
        tenant_id: uuid.UUID,
        previous_status: str,
        status: str,
        event_id: uuid.UUID = None
    ):
        super().__init__(event_id)
        self.ticket_id = ticket_id
        self.order_id = order_id
        self.tenant_id = tenant_id
        self.previous_status = previous_status
        self.status = status

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "ticket_id": str(self.ticket_id),
            "order_id": str(self.order_id),
            "tenant_id": str(self.tenant_id),
            "previous_status": self.previous_status,
            "status": self.status
        })
        return data


class TicketReady(DomainEvent):
    """Event fired when a ticket reaches READY; advances its order"""

    def __init__(
        self,
        ticket_id: uuid.UUID,
        order_id: uuid.UUID,
        tenant_id: uuid.UUID,
        event_id: uuid.UUID = None
    ):
        super().__init__(event_id)
        self.ticket_id = ticket_id
        self.order_id = order_id
        self.tenant_id = tenant_id

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "ticket_id": str(self.ticket_id),
            "order_id": str(self.order_id),
            "tenant_id": str(self.tenant_id)
        })
        return data


class EventBus:
    """In-memory event bus with an outbox and bounded redelivery

    Handlers may be plain functions or coroutines. A handler that raises is
    retried up to max_attempts times; deliveries that never succeed are
    logged and kept in dead_letters. Handlers must be idempotent.
    """

    def __init__(self, max_attempts: int = 3, retry_backoff_base: float = 0.5):
        self._subscribers: Dict[str, List[Callable]] = {}
        self._pending: List[DomainEvent] = []
        self.max_attempts = max(1, max_attempts)
        self.retry_backoff_base = retry_backoff_base
        self.dead_letters: List[Tuple[DomainEvent, str, Exception]] = []

    def subscribe(self, event_type: str, handler: Callable):
        """Subscribe to a specific event type"""
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []
        self._subscribers[event_type].append(handler)
        logger.debug(f"Subscribed handler to event type: {event_type}")

    def unsubscribe(self, event_type: str, handler: Callable):
        """Unsubscribe from an event type"""
        if event_type in self._subscribers:
            self._subscribers[event_type].remove(handler)
            logger.debug(f"Unsubscribed handler from event type: {event_type}")

    def enqueue(self, event: DomainEvent):
        """Queue an event for delivery on the next drain"""
        self._pending.append(event)

    @property
    def pending(self) -> List[DomainEvent]:
        return list(self._pending)

    async def drain(self):
        """Deliver queued events, including ones enqueued by handlers"""
        while self._pending:
            event = self._pending.pop(0)
            await self.publish(event)

    async def publish(self, event: DomainEvent):
        """Publish an event to all subscribers"""
        event_type = event.__class__.__name__
        handlers = self._subscribers.get(event_type, [])

        if not handlers:
            logger.debug(f"No subscribers for event type: {event_type}")
            return

        logger.info(f"Publishing event {event_type}: {event.event_id}")

        for handler in list(handlers):
            await self._deliver(event, handler)

    async def _deliver(self, event: DomainEvent, handler: Callable):
        event_type = event.__class__.__name__
        handler_name = getattr(handler, "__name__", repr(handler))
        last_error: Optional[Exception] = None

        for attempt in range(self.max_attempts):
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
                return
            except Exception as e:
                last_error = e
                if attempt < self.max_attempts - 1:
                    backoff = self.retry_backoff_base * (2 ** attempt)
                    logger.warning(
                        f"Handler {handler_name} failed for {event_type} "
                        f"(attempt {attempt + 1}/{self.max_attempts}), retry in {backoff:.1f}s: {e}"
                    )
                    if backoff:
                        await asyncio.sleep(backoff)

        logger.error(
            f"Error in event handler {handler_name} for {event_type} "
            f"after {self.max_attempts} attempts: {last_error}",
            exc_info=last_error
        )
        self.dead_letters.append((event, handler_name, last_error))

    def clear_subscribers(self):
        """Clear all subscribers (useful for testing)"""
        self._subscribers.clear()
        logger.debug("Cleared all event subscribers")
