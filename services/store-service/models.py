"""Document models for the store service."""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List

from bson import ObjectId

PRODUCTS_COLLECTION = "products"
ORDERS_COLLECTION = "orders"

# Fields returned when an order's product references are resolved
PRODUCT_REFERENCE_FIELDS = {"name": 1, "price": 1, "category": 1}


class PaymentMethod(str, Enum):
    """Supported payment providers."""
    PAYME = "Payme"
    CLICK = "Click"
    UZUM = "Uzum"


def utcnow() -> datetime:
    """Current time as a naive UTC datetime, matching what pymongo reads back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_product(data: Dict[str, Any]) -> Dict[str, Any]:
    """Build a product document ready for insertion."""
    return {
        "name": data["name"],
        "price": data["price"],
        "category": data["category"],
        "created_at": utcnow(),
    }


def new_order(
    product_ids: List[ObjectId],
    total_price: float,
    customer_name: str,
    payment_method: PaymentMethod,
) -> Dict[str, Any]:
    """Build an order document ready for insertion."""
    return {
        "product_ids": list(product_ids),
        "total_price": total_price,
        "customer_name": customer_name,
        "payment_method": payment_method.value,
        "created_at": utcnow(),
    }
