"""Domain errors raised by the store service and rendered by the API layer."""
from typing import Any, Dict, List


class StoreServiceError(Exception):
    """Base class for errors that map to a JSON error response."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message}


class MissingFieldsError(StoreServiceError):
    status_code = 400

    def __init__(self, missing_fields: List[str]):
        super().__init__("Missing required fields")
        self.missing_fields = missing_fields

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "missing_fields": self.missing_fields}


class InvalidFormatError(StoreServiceError):
    """An identifier could not be parsed into an ObjectId."""

    status_code = 400

    def __init__(self, error: str):
        super().__init__("Invalid product ID format")
        self.error = error

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "error": self.error}


class UnsupportedPaymentMethodError(StoreServiceError):
    status_code = 400

    def __init__(self, payment_method: Any):
        super().__init__(f"Unsupported payment method: {payment_method}")
        self.payment_method = payment_method


class UnknownProductIdsError(StoreServiceError):
    """Some referenced products do not exist."""

    status_code = 400

    def __init__(self, invalid_ids: List[str]):
        super().__init__("Some product IDs do not exist in the database")
        self.invalid_ids = invalid_ids

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "invalid_ids": self.invalid_ids}


class InvalidDateFormatError(StoreServiceError):
    status_code = 400

    def __init__(self, field: str):
        super().__init__(f"Invalid {field} format")
        self.field = field


class NotFoundError(StoreServiceError):
    status_code = 404

    def __init__(self, entity: str):
        super().__init__(f"{entity} not found")
        self.entity = entity
