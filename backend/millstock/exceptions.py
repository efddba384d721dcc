"""
MillStock - Custom Exception Hierarchy

Provides structured, typed exceptions with error codes for consistent
error handling across the purchase, production, stock and ledger workflows.

Usage:
    from millstock.exceptions import NotFoundError, ValidationError

    # In a service
    raise NotFoundError("Purchase order", purchase_order_id)

    # With custom message
    raise ValidationError("Bag weight required for item 2", field="items[1].bag_weight")
"""
from typing import Any, Dict, Optional


class MillStockException(Exception):
    """
    Base exception for all MillStock errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code (e.g., "NOT_FOUND", "VALIDATION_ERROR")
        status_code: HTTP status code to return
        details: Additional context for debugging
    """

    error_code: str = "MILLSTOCK_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
        result = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


# ===================
# 400 Bad Request Errors
# ===================


class ValidationError(MillStockException):
    """Raised when input validation fails. Nothing has been written."""

    error_code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        *,
        field: Optional[str] = None,
        value: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, details=details)


# ===================
# 404 Not Found Errors
# ===================


class NotFoundError(MillStockException):
    """Raised when a referenced order, item, client, product or warehouse is missing."""

    error_code = "NOT_FOUND"
    status_code = 404

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Any = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        details["resource"] = resource
        if resource_id is not None:
            details["resource_id"] = str(resource_id)
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(message, details=details)


# ===================
# 409 Conflict Errors
# ===================


class AlreadyProcessedError(MillStockException):
    """Raised when production is requested for an item or order that is already complete."""

    error_code = "ALREADY_PROCESSED"
    status_code = 409

    def __init__(
        self,
        message: str = "Production already completed",
        *,
        resource: Optional[str] = None,
        resource_id: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        if resource:
            details["resource"] = resource
        if resource_id is not None:
            details["resource_id"] = str(resource_id)
        super().__init__(message, details=details)


class InvalidStateError(MillStockException):
    """Raised when an operation is invalid for the current lifecycle state."""

    error_code = "INVALID_STATE"
    status_code = 409

    def __init__(
        self,
        message: str = "Operation not allowed in current state",
        *,
        current_state: Optional[str] = None,
        allowed_states: Optional[list] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        if current_state:
            details["current_state"] = current_state
        if allowed_states:
            details["allowed_states"] = allowed_states
        super().__init__(message, details=details)


# ===================
# 422 Unprocessable Entity Errors
# ===================


class InsufficientStockError(MillStockException):
    """Raised when a decrement or transfer exceeds the available quantity."""

    error_code = "INSUFFICIENT_STOCK"
    status_code = 422

    def __init__(
        self,
        product_id: Any,
        warehouse_id: Any,
        *,
        requested: Any,
        available: Any,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        details["product_id"] = str(product_id)
        details["warehouse_id"] = str(warehouse_id)
        details["requested"] = str(requested)
        details["available"] = str(available)
        message = (
            f"Insufficient stock for product {product_id} in warehouse {warehouse_id}: "
            f"requested {requested}, available {available}"
        )
        super().__init__(message, details=details)


# ===================
# 500 Internal Server Errors
# ===================


class PersistenceError(MillStockException):
    """Raised when the underlying transaction fails and has been rolled back."""

    error_code = "PERSISTENCE_ERROR"
    status_code = 500

    def __init__(
        self,
        message: str = "Database operation failed",
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details=details)
