"""Cross-collection checks between orders and the products they reference."""
import logging
from typing import List

from bson import ObjectId
from opentelemetry import trace
from pymongo.database import Database

from errors import UnknownProductIdsError
from models import PRODUCTS_COLLECTION

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def ensure_products_exist(db: Database, product_ids: List[ObjectId]) -> List[ObjectId]:
    """
    Confirm that every referenced product exists.

    The check is not atomic with the write it guards: a product deleted after
    this query returns is still accepted on the order. There is no ongoing
    referential integrity either, so deleting a product later leaves the
    reference dangling.

    Args:
        db: Database handle
        product_ids: Already format-validated identifiers

    Returns:
        The identifiers unchanged, in input order with duplicates kept

    Raises:
        UnknownProductIdsError: Listing each missing identifier once
    """
    with tracer.start_as_current_span("db.query.check_products") as db_span:
        db_span.set_attribute("db.operation", "find")
        db_span.set_attribute("db.collection", PRODUCTS_COLLECTION)
        db_span.set_attribute("product.count", len(product_ids))

        found = {
            doc["_id"]
            for doc in db[PRODUCTS_COLLECTION].find({"_id": {"$in": list(product_ids)}}, {"_id": 1})
        }
        db_span.set_attribute("db.rows_returned", len(found))

    missing: List[str] = []
    for product_id in product_ids:
        if product_id not in found and str(product_id) not in missing:
            missing.append(str(product_id))

    if missing:
        logger.warning("Order references unknown products", extra={"invalid_ids": missing})
        raise UnknownProductIdsError(missing)

    return list(product_ids)
