"""
Custom exception classes for the application.

Every error carries a machine-readable code and an HTTP status so routers
can turn it into the standard error payload.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "LOT_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DuplicateError(ConflictError):
    """Duplicate resource (409)."""

    def __init__(
        self,
        resource: str,
        field: str,
        value: str
    ):
        super().__init__(
            code=f"{resource.upper()}_{field.upper()}_EXISTS",
            message=f"{resource} with this {field} already exists",
            details={field: value}
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# STORE ERRORS
# ===================

class RecordNotFoundError(DatabaseError):
    """Document missing from the store during an update."""

    def __init__(self, collection: str, doc_id: str):
        super().__init__(
            operation="update",
            message=f"{collection}/{doc_id} does not exist",
            details={"collection": collection, "id": doc_id}
        )
        self.status_code = 404


class DuplicateRecordError(DuplicateError):
    """Document already exists in the store during a create."""

    def __init__(self, collection: str, doc_id: str):
        super().__init__(
            resource=collection,
            field="id",
            value=doc_id
        )


class RemoteWriteError(ExternalServiceError):
    """
    A write to the shared store failed (network, permission, timeout).

    Retryable by re-submitting the same action. Never retried automatically.
    """

    def __init__(self, collection: str, doc_id: str, message: str):
        super().__init__(
            service="store",
            message=f"Write to {collection} failed: {message}",
            details={"collection": collection, "id": doc_id, "retryable": True}
        )
        self.code = "REMOTE_WRITE_ERROR"


# ===================
# ORDER ERRORS
# ===================

class OrderNotFoundError(NotFoundError):
    """Planning order not found."""

    def __init__(self, order_id: str):
        super().__init__(
            resource="Order",
            identifier=order_id,
            code="ORDER_NOT_FOUND"
        )


# ===================
# LOT ERRORS
# ===================

class LotNotFoundError(NotFoundError, LookupError):
    """Scanned or typed code does not resolve to a known lot."""

    def __init__(self, code: str):
        super().__init__(
            resource="Lot",
            identifier=code,
            code="LOT_NOT_FOUND"
        )


class LotNumberExistsError(DuplicateError):
    """Lot number already claimed by another lot."""

    def __init__(self, lot_number: str):
        super().__init__(
            resource="Lot",
            field="lot_number",
            value=lot_number
        )


class InvalidLotNumberError(ValidationError):
    """Manually entered lot number is too short."""

    def __init__(self, lot_number: str, min_length: int):
        super().__init__(
            code="INVALID_LOT_NUMBER",
            message=f"Manual lot number must be at least {min_length} characters",
            details={"provided": lot_number, "min_length": min_length}
        )


class InvalidLotTransitionError(ValidationError):
    """Requested step change is not part of the lifecycle."""

    def __init__(self, lot_number: str, current_step: str, action: str):
        super().__init__(
            code="INVALID_LOT_TRANSITION",
            message=f"Cannot {action} lot in step {current_step}",
            details={
                "lot_number": lot_number,
                "current_step": current_step,
                "action": action,
            }
        )


# ===================
# QUALITY GATE ERRORS
# ===================

class MissingReasonError(ValidationError):
    """Reject or temporary reject submitted without a valid reason."""

    def __init__(self, disposition: str, provided: Optional[str], valid: list[str]):
        super().__init__(
            code="MISSING_REJECTION_REASON",
            message=f"A rejection reason is required for disposition {disposition}",
            details={"disposition": disposition, "provided": provided, "valid": valid}
        )


class MissingMeasurementError(ValidationError):
    """Required measurements for the product classification are missing."""

    def __init__(self, classification: str, missing: list[str]):
        super().__init__(
            code="MISSING_MEASUREMENTS",
            message=f"Missing required measurements: {', '.join(missing)}",
            details={"classification": classification, "missing": missing}
        )


class InvalidRouteOverrideError(ValidationError):
    """Operator override is not an allowed post-processing destination."""

    def __init__(self, override: str, valid: list[str]):
        super().__init__(
            code="INVALID_ROUTE_OVERRIDE",
            message=f"Cannot route a lot to {override}",
            details={"provided": override, "valid": valid}
        )
