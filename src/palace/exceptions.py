"""Exception hierarchy for the Palace engine."""

from typing import Any, Dict, Optional


class PalaceException(Exception):
    """Base exception for the engine."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationException(PalaceException):
    """Invalid input for a single operation (empty batch, bad price, ...)."""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, str]] = None,
    ):
        super().__init__(
            message=message,
            details={"field_errors": field_errors or {}},
        )


class NotFoundError(PalaceException):
    """Exception for unknown positions, portfolios and other entities."""

    def __init__(self, resource: str, identifier: str):
        message = f"{resource} with identifier '{identifier}' not found"
        super().__init__(
            message=message,
            details={"resource": resource, "identifier": identifier},
        )
        self.resource = resource
        self.identifier = identifier


class OperationFailedError(PalaceException):
    """A collaborator (store, provider) failed while serving an operation.

    The underlying exception is kept on ``cause`` and chained with ``raise from``
    so it stays available for logging.
    """

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        super().__init__(
            message=f"Failed to {operation}",
            details={
                "operation": operation,
                "cause_type": type(cause).__name__ if cause else None,
            },
        )
        self.operation = operation
        self.cause = cause


class PositionStateError(PalaceException):
    """Attempt to change a position that is already closed or stopped."""

    def __init__(self, position_id: str, status: str):
        super().__init__(
            message=f"Position '{position_id}' is {status} and cannot be modified",
            details={"position_id": position_id, "status": status},
        )


class AlertStateError(PalaceException):
    """Attempt to trigger an alert that has already fired."""

    def __init__(self, alert_id: str):
        super().__init__(
            message=f"Alert '{alert_id}' has already been triggered",
            details={"alert_id": alert_id},
        )


class TradeIdeaStateError(PalaceException):
    """Attempt to change a trade idea that is no longer active."""

    def __init__(self, idea_id: str, status: str):
        super().__init__(
            message=f"Trade idea '{idea_id}' is {status} and cannot be modified",
            details={"trade_idea_id": idea_id, "status": status},
        )
