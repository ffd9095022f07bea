"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DuplicateError,
    ExternalServiceError,
    DatabaseError,

    # Store
    RecordNotFoundError,
    DuplicateRecordError,
    RemoteWriteError,

    # Orders
    OrderNotFoundError,

    # Lots
    LotNotFoundError,
    LotNumberExistsError,
    InvalidLotNumberError,
    InvalidLotTransitionError,

    # Quality gate
    MissingReasonError,
    MissingMeasurementError,
    InvalidRouteOverrideError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DuplicateError",
    "ExternalServiceError",
    "DatabaseError",

    # Store
    "RecordNotFoundError",
    "DuplicateRecordError",
    "RemoteWriteError",

    # Orders
    "OrderNotFoundError",

    # Lots
    "LotNotFoundError",
    "LotNumberExistsError",
    "InvalidLotNumberError",
    "InvalidLotTransitionError",

    # Quality gate
    "MissingReasonError",
    "MissingMeasurementError",
    "InvalidRouteOverrideError",
]
