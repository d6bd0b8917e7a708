"""
Order status transition table

REFUNDED has no incoming edge: refunds happen outside this state machine.
"""

from typing import Dict, List, Optional, Union

from kitchenflow.models.order import OrderStatus

StatusLike = Union[OrderStatus, str]

ALLOWED_TRANSITIONS: Dict[OrderStatus, List[OrderStatus]] = {
    OrderStatus.PLACED: [OrderStatus.ACCEPTED, OrderStatus.CANCELED],
    OrderStatus.ACCEPTED: [OrderStatus.IN_KITCHEN, OrderStatus.CANCELED],
    OrderStatus.IN_KITCHEN: [OrderStatus.READY, OrderStatus.CANCELED],
    OrderStatus.READY: [OrderStatus.SERVED, OrderStatus.CANCELED],
    OrderStatus.SERVED: [OrderStatus.COMPLETED],
    OrderStatus.COMPLETED: [],  # Final state, no transitions
    OrderStatus.CANCELED: [],   # Final state, no transitions
    OrderStatus.REFUNDED: [],   # Final state, no transitions
}

TIMESTAMP_FIELDS: Dict[OrderStatus, str] = {
    OrderStatus.PLACED: "placedAt",
    OrderStatus.ACCEPTED: "acceptedAt",
    OrderStatus.IN_KITCHEN: "inKitchenAt",
    OrderStatus.READY: "readyAt",
    OrderStatus.SERVED: "servedAt",
    OrderStatus.COMPLETED: "completedAt",
    OrderStatus.CANCELED: "canceledAt",
    OrderStatus.REFUNDED: "refundedAt",
}


def parse_status(status: StatusLike) -> Optional[OrderStatus]:
    """Return the OrderStatus for a raw value, or None if it is not a status"""
    if isinstance(status, OrderStatus):
        return status
    try:
        return OrderStatus(status)
    except ValueError:
        return None


def can_transition(from_status: StatusLike, to_status: StatusLike) -> bool:
    """True iff to_status is a declared successor of from_status"""
    source = parse_status(from_status)
    target = parse_status(to_status)
    if source is None or target is None:
        return False
    return target in ALLOWED_TRANSITIONS.get(source, [])


def timestamp_field_for(status: StatusLike) -> Optional[str]:
    """Name of the timestamps slot stamped on entry, or None if unmapped"""
    parsed = parse_status(status)
    if parsed is None:
        return None
    return TIMESTAMP_FIELDS.get(parsed)


def successors(status: StatusLike) -> List[OrderStatus]:
    parsed = parse_status(status)
    if parsed is None:
        return []
    return list(ALLOWED_TRANSITIONS.get(parsed, []))


def is_terminal(status: StatusLike) -> bool:
    return not successors(status)
