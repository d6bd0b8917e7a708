"""
Translation of order pipeline errors into HTTP responses
"""

from fastapi import HTTPException, status

from kitchenflow.core.exceptions import (
    ConfigError, InvalidTicketTransition, InvalidTransition, KitchenFlowError,
    NotFound, StoreError, VersionConflict,
)

STATUS_CODES = (
    (InvalidTransition, status.HTTP_409_CONFLICT),
    (InvalidTicketTransition, status.HTTP_409_CONFLICT),
    (VersionConflict, status.HTTP_409_CONFLICT),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (StoreError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (ConfigError, status.HTTP_400_BAD_REQUEST),
)


def to_http_exception(error: KitchenFlowError) -> HTTPException:
    for error_type, status_code in STATUS_CODES:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=error.message)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=error.message,
    )
