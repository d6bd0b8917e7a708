"""
Ticket lifecycle service

Kitchen tickets move strictly queued -> cooking -> ready -> bumped. A ticket
reaching READY asks its order to advance; that request is an enqueued side
effect and never blocks or reverts the ticket write.
"""

from datetime import datetime, timedelta
from typing import Callable, List, Optional, Union
import uuid

import structlog

from kitchenflow.core.clock import utcnow
from kitchenflow.core.events import EventBus, TicketReady, TicketStatusChanged
from kitchenflow.core.exceptions import InvalidTicketTransition, TicketClosed, VersionConflict
from kitchenflow.core.store import RecordStore
from kitchenflow.models.order import OrderStatus
from kitchenflow.models.ticket import KdsTicket, Station, TicketStatus

logger = structlog.get_logger(__name__)

TICKET_FLOW = (TicketStatus.QUEUED, TicketStatus.COOKING, TicketStatus.READY, TicketStatus.BUMPED)

TICKET_TIMESTAMP_FIELDS = {
    TicketStatus.COOKING: "started_at",
    TicketStatus.READY: "ready_at",
    TicketStatus.BUMPED: "bumped_at",
}

# Statuses shown on the kitchen display
BOARD_STATUSES = (TicketStatus.QUEUED, TicketStatus.COOKING, TicketStatus.READY)


def next_ticket_status(status: Union[TicketStatus, str]) -> Optional[TicketStatus]:
    """Immediate successor of a ticket status, None for bumped"""
    status = TicketStatus(status)
    index = TICKET_FLOW.index(status)
    if index + 1 < len(TICKET_FLOW):
        return TICKET_FLOW[index + 1]
    return None


def can_advance_ticket(from_status: Union[TicketStatus, str], to_status: Union[TicketStatus, str]) -> bool:
    try:
        target = TicketStatus(to_status)
        return next_ticket_status(from_status) == target
    except ValueError:
        return False


class TicketLifecycle:
    """Ticket status state machine over the record store"""

    def __init__(
        self,
        store: RecordStore,
        bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.bus = bus
        self.clock = clock

    def _load(self, ticket: Union[KdsTicket, uuid.UUID, str], tenant_id: Optional[uuid.UUID]) -> KdsTicket:
        if isinstance(ticket, KdsTicket) and (tenant_id is None or ticket.tenant_id == tenant_id):
            return ticket
        ticket_id = ticket.id if isinstance(ticket, KdsTicket) else ticket
        return self.store.get("kdsTicket", ticket_id, tenant_id=tenant_id)

    def advance_ticket(
        self,
        ticket: Union[KdsTicket, uuid.UUID, str],
        new_status: Union[TicketStatus, str],
        expected_version: Optional[int] = None,
        tenant_id: Optional[uuid.UUID] = None,
    ) -> KdsTicket:
        """Move a ticket to the immediate successor of its status

        Raises:
            TicketClosed: the ticket is already bumped
            InvalidTicketTransition: new_status is not the immediate successor
            VersionConflict: the ticket changed since it was read
        """
        ticket = self._load(ticket, tenant_id)
        current = ticket.status

        if current == TicketStatus.BUMPED:
            raise TicketClosed(ticket.id, str(getattr(new_status, "value", new_status)))

        if not can_advance_ticket(current, new_status):
            raise InvalidTicketTransition(current.value, str(getattr(new_status, "value", new_status)))
        target = TicketStatus(new_status)

        version = expected_version if expected_version is not None else ticket.version
        updated = self.store.update(
            "kdsTicket",
            ticket.id,
            {"status": target, TICKET_TIMESTAMP_FIELDS[target]: self.clock()},
            expected_version=version,
        )
        logger.info(f"KDS ticket {updated.id} moved {current.value} -> {target.value}")

        if self.bus is not None:
            self.bus.enqueue(TicketStatusChanged(
                ticket_id=updated.id,
                order_id=updated.order_id,
                tenant_id=updated.tenant_id,
                previous_status=current.value,
                status=target.value,
            ))
            if target == TicketStatus.READY:
                self.bus.enqueue(TicketReady(
                    ticket_id=updated.id,
                    order_id=updated.order_id,
                    tenant_id=updated.tenant_id,
                ))
        return updated

    def set_priority(
        self,
        ticket: Union[KdsTicket, uuid.UUID, str],
        priority: bool,
        expected_version: Optional[int] = None,
        tenant_id: Optional[uuid.UUID] = None,
    ) -> KdsTicket:
        """Flag or unflag a ticket as urgent; status is untouched"""
        ticket = self._load(ticket, tenant_id)
        if ticket.status == TicketStatus.BUMPED:
            raise TicketClosed(ticket.id, ticket.status.value)

        version = expected_version if expected_version is not None else ticket.version
        updated = self.store.update(
            "kdsTicket",
            ticket.id,
            {"priority": bool(priority)},
            expected_version=version,
        )
        logger.info(f"KDS ticket {updated.id} priority set to {updated.priority}")
        return updated

    def bump_order_tickets(self, order_id: Union[uuid.UUID, str]) -> List[KdsTicket]:
        """Close every open ticket of a completed order

        This is an administrative close and skips the linear ticket flow.
        Tickets that change underneath are re-read and retried once.
        """
        order = self.store.get("orders", order_id)
        open_tickets = self.store.list(
            "kdsTicket",
            {"order_id": order.id, "status": list(BOARD_STATUSES)},
        )

        bumped = []
        for ticket in open_tickets:
            try:
                updated = self._close(ticket)
            except VersionConflict:
                ticket = self.store.get("kdsTicket", ticket.id)
                if ticket.status == TicketStatus.BUMPED:
                    continue
                updated = self._close(ticket)
            bumped.append(updated)

        if bumped:
            logger.info(f"Bumped {len(bumped)} KDS tickets for completed order {order.id}")
        return bumped

    def _close(self, ticket: KdsTicket) -> KdsTicket:
        previous = ticket.status
        updated = self.store.update(
            "kdsTicket",
            ticket.id,
            {"status": TicketStatus.BUMPED, "bumped_at": self.clock()},
            expected_version=ticket.version,
        )
        if self.bus is not None:
            self.bus.enqueue(TicketStatusChanged(
                ticket_id=updated.id,
                order_id=updated.order_id,
                tenant_id=updated.tenant_id,
                previous_status=previous.value,
                status=TicketStatus.BUMPED.value,
            ))
        return updated

    def list_board(
        self,
        tenant_id: uuid.UUID,
        station: Union[Station, str, None] = None,
        status: Union[TicketStatus, str, None] = None,
        window_hours: int = 24,
        now: Optional[datetime] = None,
    ) -> List[KdsTicket]:
        """Tickets the kitchen display should show

        Bumped tickets, tickets of completed orders and tickets older than the
        window are left out. Urgent tickets come first, then oldest first.
        """
        filters = {"tenant_id": tenant_id}
        if status is not None:
            status = TicketStatus(status)
            if status not in BOARD_STATUSES:
                return []
            filters["status"] = status
        else:
            filters["status"] = list(BOARD_STATUSES)
        if station is not None:
            filters["station"] = Station(station)

        cutoff = (now or self.clock()) - timedelta(hours=window_hours)
        tickets = [
            ticket for ticket in self.store.list("kdsTicket", filters, sort=["-priority", "created_at"])
            if ticket.created_at >= cutoff
        ]
        if not tickets:
            return []

        order_ids = list({ticket.order_id for ticket in tickets})
        completed = {
            order.id for order in self.store.list(
                "orders", {"id": order_ids, "status": OrderStatus.COMPLETED}
            )
        }
        return [ticket for ticket in tickets if ticket.order_id not in completed]
