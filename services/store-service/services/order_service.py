"""Order management service."""
import logging
import math
from typing import Any, Dict, List, Optional

from opentelemetry import trace
from pymongo import ReturnDocument
from pymongo.database import Database

from consistency import ensure_products_exist
from errors import NotFoundError, StoreServiceError
from models import (
    ORDERS_COLLECTION,
    PRODUCTS_COLLECTION,
    PRODUCT_REFERENCE_FIELDS,
    new_order,
)
from monitoring import (
    order_amount_histogram,
    order_validation_failures_counter,
    orders_created_counter,
)
from reports import generate_order_report
from validation import (
    normalize_payment_filter,
    parse_document_id,
    validate_identifiers,
    validate_payment_method,
    validate_required_fields,
)

logger = logging.getLogger(__name__)

REQUIRED_ORDER_FIELDS = ("product_ids", "total_price", "customer_name", "payment_method")


class OrderService:
    """Service for managing orders."""

    def __init__(self):
        self.tracer = trace.get_tracer(__name__)

    def create_order(self, db: Database, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate and persist a new order.

        Checks run in order: required fields, product id format, product
        existence, payment method. Nothing is written unless all pass.

        Args:
            db: Database handle
            payload: Request body as a dict

        Returns:
            The stored order document

        Raises:
            MissingFieldsError: If a required field is absent or empty
            InvalidFormatError: If a product id is not an ObjectId
            UnknownProductIdsError: If referenced products do not exist
            UnsupportedPaymentMethodError: If the payment method is unknown
        """
        try:
            validate_required_fields(payload, REQUIRED_ORDER_FIELDS)
            product_ids = validate_identifiers(payload["product_ids"])
            product_ids = ensure_products_exist(db, product_ids)
            payment_method = validate_payment_method(payload["payment_method"])
        except StoreServiceError as e:
            self._record_rejection("create", e)
            raise

        order = new_order(
            product_ids=product_ids,
            total_price=payload["total_price"],
            customer_name=payload["customer_name"],
            payment_method=payment_method,
        )

        # A product deleted since ensure_products_exist ran is not detected here.
        with self.tracer.start_as_current_span("db.query.insert_order") as db_span:
            db_span.set_attribute("db.operation", "insert")
            db_span.set_attribute("db.collection", ORDERS_COLLECTION)

            result = db[ORDERS_COLLECTION].insert_one(order)
            order["_id"] = result.inserted_id

            db_span.set_attribute("order.id", str(result.inserted_id))

        orders_created_counter.add(1, {"payment_method": payment_method.value})
        order_amount_histogram.record(order["total_price"], {"payment_method": payment_method.value})

        logger.info("Order created", extra={
            "order_id": str(order["_id"]),
            "payment_method": payment_method.value,
            "total_price": order["total_price"],
            "item_count": len(product_ids)
        })

        return order

    def list_orders(
        self,
        db: Database,
        page: int,
        limit: int,
        payment_method: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Page through orders, newest first, with products resolved.

        Args:
            db: Database handle
            page: 1-based page number
            limit: Page size
            payment_method: Optional filter, member names such as "PAYME" accepted

        Returns:
            ``{"data": [...], "pagination": {"total", "page", "pages"}}``
        """
        query: Dict[str, Any] = {}
        if payment_method:
            query["payment_method"] = normalize_payment_filter(payment_method)

        with self.tracer.start_as_current_span("db.query.list_orders") as db_span:
            db_span.set_attribute("db.operation", "find")
            db_span.set_attribute("db.collection", ORDERS_COLLECTION)

            orders = list(
                db[ORDERS_COLLECTION]
                .find(query)
                .sort("created_at", -1)
                .skip((page - 1) * limit)
                .limit(limit)
            )
            total = db[ORDERS_COLLECTION].count_documents(query)

            db_span.set_attribute("db.rows_returned", len(orders))

        return {
            "data": self._resolve_products(db, orders),
            "pagination": {
                "total": total,
                "page": page,
                "pages": math.ceil(total / limit),
            },
        }

    def get_order(self, db: Database, order_id: str) -> Dict[str, Any]:
        """Fetch one order with its products resolved."""
        oid = parse_document_id(order_id, "Order")
        order = db[ORDERS_COLLECTION].find_one({"_id": oid})
        if order is None:
            raise NotFoundError("Order")
        return self._resolve_products(db, [order])[0]

    def update_order(self, db: Database, order_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply a partial update to an order.

        Only keys present in ``changes`` with a non-null value are written, so
        a supplied ``total_price`` of 0 is kept. ``created_at`` never changes.

        Args:
            db: Database handle
            order_id: Path identifier
            changes: Supplied fields only

        Returns:
            The updated order with products resolved

        Raises:
            NotFoundError: If the order does not exist
            UnsupportedPaymentMethodError: If a supplied payment method is unknown
            MissingFieldsError: If product_ids is supplied empty
            InvalidFormatError: If a supplied product id is not an ObjectId
            UnknownProductIdsError: If supplied products do not exist
        """
        oid = parse_document_id(order_id, "Order")
        changes = {key: value for key, value in changes.items() if value is not None}

        updates: Dict[str, Any] = {}
        try:
            if "payment_method" in changes:
                updates["payment_method"] = validate_payment_method(changes["payment_method"]).value
            if "product_ids" in changes:
                validate_required_fields(changes, ["product_ids"])
                product_ids = validate_identifiers(changes["product_ids"])
                updates["product_ids"] = ensure_products_exist(db, product_ids)
        except StoreServiceError as e:
            self._record_rejection("update", e)
            raise

        for field in ("total_price", "customer_name"):
            if field in changes:
                updates[field] = changes[field]

        with self.tracer.start_as_current_span("db.query.update_order") as db_span:
            db_span.set_attribute("db.operation", "update")
            db_span.set_attribute("db.collection", ORDERS_COLLECTION)
            db_span.set_attribute("order.id", order_id)
            db_span.set_attribute("order.fields_updated", len(updates))

            if updates:
                order = db[ORDERS_COLLECTION].find_one_and_update(
                    {"_id": oid},
                    {"$set": updates},
                    return_document=ReturnDocument.AFTER,
                )
            else:
                order = db[ORDERS_COLLECTION].find_one({"_id": oid})

        if order is None:
            raise NotFoundError("Order")

        logger.info("Order updated", extra={
            "order_id": order_id,
            "fields": sorted(updates)
        })

        return self._resolve_products(db, [order])[0]

    def delete_order(self, db: Database, order_id: str) -> Dict[str, Any]:
        """Remove an order and return the deleted document."""
        oid = parse_document_id(order_id, "Order")

        with self.tracer.start_as_current_span("db.query.delete_order") as db_span:
            db_span.set_attribute("db.operation", "delete")
            db_span.set_attribute("db.collection", ORDERS_COLLECTION)
            db_span.set_attribute("order.id", order_id)

            order = db[ORDERS_COLLECTION].find_one_and_delete({"_id": oid})

        if order is None:
            raise NotFoundError("Order")

        logger.info("Order deleted", extra={"order_id": order_id})
        return order

    def get_report(
        self,
        db: Database,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
    ) -> Dict[str, Any]:
        """Revenue per payment method; see ``reports.generate_order_report``."""
        return generate_order_report(db, start_date, end_date)

    def _resolve_products(self, db: Database, orders: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Replace each order's product ids with name/price/category projections.

        One query covers every order. Order and duplicates are kept; ids whose
        product has since been deleted are dropped.
        """
        referenced = {pid for order in orders for pid in order.get("product_ids", [])}
        if not referenced:
            return orders

        with self.tracer.start_as_current_span("db.query.resolve_products") as db_span:
            db_span.set_attribute("db.operation", "find")
            db_span.set_attribute("db.collection", PRODUCTS_COLLECTION)

            products = {
                product["_id"]: product
                for product in db[PRODUCTS_COLLECTION].find(
                    {"_id": {"$in": list(referenced)}},
                    PRODUCT_REFERENCE_FIELDS,
                )
            }

            db_span.set_attribute("db.rows_returned", len(products))

        for order in orders:
            order["product_ids"] = [
                products[pid] for pid in order.get("product_ids", []) if pid in products
            ]
        return orders

    def _record_rejection(self, operation: str, error: StoreServiceError) -> None:
        order_validation_failures_counter.add(1, {
            "operation": operation,
            "reason": type(error).__name__
        })
        logger.warning("Order rejected", extra={
            "operation": operation,
            "reason": type(error).__name__,
            "detail": error.message
        })
