"""Order pipeline exceptions."""

from typing import Optional


class KitchenFlowError(Exception):
    """Base exception for order pipeline errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidTransition(KitchenFlowError):
    """Order status change not allowed by the transition table."""

    def __init__(self, from_status: str, to_status: str) -> None:
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Invalid status transition from {from_status} to {to_status}")


class InvalidTicketTransition(KitchenFlowError):
    """Ticket status change is not the immediate successor."""

    def __init__(self, from_status: str, to_status: str) -> None:
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Invalid ticket transition from {from_status} to {to_status}")


class TicketClosed(InvalidTicketTransition):
    """Bumped tickets accept no further changes."""

    def __init__(self, ticket_id: object, to_status: str) -> None:
        self.ticket_id = ticket_id
        KitchenFlowError.__init__(self, f"Ticket {ticket_id} is bumped and accepts no further changes")
        self.from_status = "bumped"
        self.to_status = to_status


class NotFound(KitchenFlowError):
    """Referenced record does not exist."""

    def __init__(self, collection: str, record_id: object) -> None:
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection} record {record_id} not found")


class StoreError(KitchenFlowError):
    """Record store failure."""


class VersionConflict(KitchenFlowError):
    """Record was modified since it was read."""

    def __init__(
        self,
        collection: str,
        record_id: object,
        expected_version: Optional[int] = None,
    ) -> None:
        self.collection = collection
        self.record_id = record_id
        self.expected_version = expected_version
        super().__init__(
            f"{collection} record {record_id} was modified by another request "
            f"(expected version {expected_version})"
        )


class ConfigError(KitchenFlowError):
    """Required configuration or request context is missing."""
