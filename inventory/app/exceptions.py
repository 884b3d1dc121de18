"""Custom exceptions for the inventory service."""


class InventoryException(Exception):
    """Base class for inventory exceptions with HTTP status code.

    All custom exceptions should inherit from this class and define
    their specific status_code for consistent HTTP response handling.
    """
    status_code: int = 500

    def __init__(self, message: str = "Inventory error"):
        self.message = message
        super().__init__(message)


class ItemNotFoundError(InventoryException):
    """Raised when no item exists for the requested identifier.

    Maps to HTTP 404 Not Found.
    """
    status_code = 404

    def __init__(self, item_id: str, message: str = "Item not found"):
        self.item_id = item_id
        super().__init__(message)


class ItemStoreError(InventoryException):
    """Raised when the durable item store fails.

    Never retried automatically. Maps to HTTP 500.
    """
    status_code = 500

    def __init__(self, operation: str, message: str = "Database error"):
        self.operation = operation
        super().__init__(message)


class AuthenticationError(InventoryException):
    """Raised when login or bearer token validation fails.

    Maps to HTTP 401 Unauthorized.
    """
    status_code = 401

    def __init__(self, detail: str = "Invalid or missing token"):
        self.detail = detail
        super().__init__(detail)
