"""Validation helpers for order payloads and report parameters."""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from dateutil import parser as date_parser

from errors import (
    InvalidDateFormatError,
    InvalidFormatError,
    MissingFieldsError,
    NotFoundError,
    UnsupportedPaymentMethodError,
)
from models import PaymentMethod

logger = logging.getLogger(__name__)


def validate_identifier_format(raw: Any) -> ObjectId:
    """
    Parse a client-supplied identifier into an ObjectId.

    Args:
        raw: Identifier as received, surrounding whitespace allowed

    Returns:
        Parsed ObjectId

    Raises:
        InvalidFormatError: If the value is not a 24 character hex string
    """
    if isinstance(raw, ObjectId):
        return raw
    try:
        return ObjectId(raw.strip() if isinstance(raw, str) else raw)
    except (InvalidId, TypeError) as e:
        raise InvalidFormatError(str(e)) from e


def parse_document_id(raw: str, entity: str) -> ObjectId:
    """Parse a path identifier; one that cannot be an ObjectId matches nothing."""
    try:
        return validate_identifier_format(raw)
    except InvalidFormatError:
        raise NotFoundError(entity)


def validate_identifiers(raws: Iterable[Any]) -> List[ObjectId]:
    """Parse a list of identifiers, keeping order and duplicates."""
    return [validate_identifier_format(raw) for raw in raws]


def validate_payment_method(value: Any) -> PaymentMethod:
    """
    Resolve a payment method against the supported providers.

    Both the stored value ("Payme") and the member name ("PAYME") are accepted.

    Raises:
        UnsupportedPaymentMethodError: If the value is not a supported provider
    """
    if isinstance(value, PaymentMethod):
        return value
    if isinstance(value, str):
        if value in PaymentMethod.__members__:
            return PaymentMethod[value]
        try:
            return PaymentMethod(value)
        except ValueError:
            pass
    raise UnsupportedPaymentMethodError(value)


def normalize_payment_filter(value: str) -> str:
    """Map a list filter onto the stored spelling; unknown values pass through unchanged."""
    try:
        return validate_payment_method(value).value
    except UnsupportedPaymentMethodError:
        return value


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def validate_required_fields(payload: Dict[str, Any], required_keys: Iterable[str]) -> None:
    """
    Ensure every required key carries a value.

    Zero is a legitimate value; None, blank strings and empty lists are not.

    Raises:
        MissingFieldsError: Listing each missing key
    """
    missing = [key for key in required_keys if _is_missing(payload.get(key))]
    if missing:
        raise MissingFieldsError(missing)


def parse_date_param(value: Optional[str], field: str) -> Optional[datetime]:
    """
    Leniently parse a report date bound.

    Args:
        value: Raw query string value, None or empty when unset
        field: Parameter name reported on failure

    Returns:
        Naive UTC datetime, or None when unset

    Raises:
        InvalidDateFormatError: If the value cannot be parsed as a date
    """
    if value is None or not value.strip():
        return None
    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError):
        logger.warning("Rejected report date parameter", extra={"field": field, "value": value})
        raise InvalidDateFormatError(field)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
