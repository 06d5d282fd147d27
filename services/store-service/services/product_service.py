"""Product catalog service."""
import logging
import re
from typing import Any, Dict, List, Optional

from opentelemetry import trace
from pymongo import ReturnDocument
from pymongo.database import Database

from errors import NotFoundError
from models import PRODUCTS_COLLECTION, new_product
from monitoring import products_created_counter
from reports import generate_product_report
from validation import parse_document_id

logger = logging.getLogger(__name__)


class ProductService:
    """Service for managing the product catalog."""

    def __init__(self):
        self.tracer = trace.get_tracer(__name__)

    def create_product(self, db: Database, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Persist a product as submitted.

        Args:
            db: Database handle
            data: Validated product fields

        Returns:
            The stored product document
        """
        product = new_product(data)

        with self.tracer.start_as_current_span("db.query.insert_product") as db_span:
            db_span.set_attribute("db.operation", "insert")
            db_span.set_attribute("db.collection", PRODUCTS_COLLECTION)

            result = db[PRODUCTS_COLLECTION].insert_one(product)
            product["_id"] = result.inserted_id

        products_created_counter.add(1, {"category": product["category"]})
        logger.info("Product created", extra={
            "product_id": str(product["_id"]),
            "category": product["category"]
        })
        return product

    def list_products(
        self,
        db: Database,
        page: int,
        limit: int,
        search: Optional[str] = None,
        category: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Page through products.

        Args:
            db: Database handle
            page: 1-based page number
            limit: Page size
            search: Case-insensitive substring of the name, matched literally
            category: Exact category

        Returns:
            One page of product documents
        """
        query: Dict[str, Any] = {}
        if search:
            query["name"] = {"$regex": re.escape(search), "$options": "i"}
        if category:
            query["category"] = category

        with self.tracer.start_as_current_span("db.query.list_products") as db_span:
            db_span.set_attribute("db.operation", "find")
            db_span.set_attribute("db.collection", PRODUCTS_COLLECTION)

            products = list(
                db[PRODUCTS_COLLECTION]
                .find(query)
                .skip((page - 1) * limit)
                .limit(limit)
            )

            db_span.set_attribute("db.rows_returned", len(products))

        return products

    def get_product(self, db: Database, product_id: str) -> Dict[str, Any]:
        oid = parse_document_id(product_id, "Product")
        product = db[PRODUCTS_COLLECTION].find_one({"_id": oid})
        if product is None:
            raise NotFoundError("Product")
        return product

    def update_product(self, db: Database, product_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Apply the supplied fields to a product; absent fields keep their values."""
        oid = parse_document_id(product_id, "Product")
        updates = {key: value for key, value in changes.items() if value is not None}

        with self.tracer.start_as_current_span("db.query.update_product") as db_span:
            db_span.set_attribute("db.operation", "update")
            db_span.set_attribute("db.collection", PRODUCTS_COLLECTION)
            db_span.set_attribute("product.id", product_id)

            if updates:
                product = db[PRODUCTS_COLLECTION].find_one_and_update(
                    {"_id": oid},
                    {"$set": updates},
                    return_document=ReturnDocument.AFTER,
                )
            else:
                product = db[PRODUCTS_COLLECTION].find_one({"_id": oid})

        if product is None:
            raise NotFoundError("Product")

        logger.info("Product updated", extra={"product_id": product_id, "fields": sorted(updates)})
        return product

    def delete_product(self, db: Database, product_id: str) -> None:
        """
        Delete a product.

        Orders referencing it are left as they are.
        """
        oid = parse_document_id(product_id, "Product")

        with self.tracer.start_as_current_span("db.query.delete_product") as db_span:
            db_span.set_attribute("db.operation", "delete")
            db_span.set_attribute("db.collection", PRODUCTS_COLLECTION)
            db_span.set_attribute("product.id", product_id)

            result = db[PRODUCTS_COLLECTION].delete_one({"_id": oid})

        if result.deleted_count == 0:
            raise NotFoundError("Product")

        logger.info("Product deleted", extra={"product_id": product_id})

    def get_report(
        self,
        db: Database,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
    ) -> Dict[str, Any]:
        """Category breakdown; see ``reports.generate_product_report``."""
        return generate_product_report(db, start_date, end_date)
