"""Aggregation pipelines and response shaping for order and product reports."""
import logging
import time
from typing import Any, Dict, List, Optional

from opentelemetry import trace
from pymongo.database import Database

from models import ORDERS_COLLECTION, PRODUCTS_COLLECTION
from monitoring import report_duration_histogram
from validation import parse_date_param

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

CATEGORY_SAMPLE_SIZE = 5
EMPTY_PRODUCT_SUMMARY = {"totalProducts": 0, "averagePrice": 0, "totalCategories": 0}


def build_date_match(start_date: Optional[str], end_date: Optional[str]) -> List[Dict[str, Any]]:
    """
    Build the optional ``$match`` stage restricting ``created_at``.

    Both bounds are inclusive. Each bound is validated on its own so the error
    names the offending parameter; nothing is queried before that.

    Returns:
        A one-stage list when at least one bound is set, else an empty list
    """
    start = parse_date_param(start_date, "startDate")
    end = parse_date_param(end_date, "endDate")

    created_at: Dict[str, Any] = {}
    if start is not None:
        created_at["$gte"] = start
    if end is not None:
        created_at["$lte"] = end

    if not created_at:
        return []
    return [{"$match": {"created_at": created_at}}]


def build_time_range(start_date: Optional[str], end_date: Optional[str]) -> Dict[str, str]:
    """Echo the requested bounds, naming open ends."""
    return {
        "from": start_date or "all time",
        "to": end_date or "present",
    }


def order_report_pipeline(match: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        *match,
        {
            "$group": {
                "_id": "$payment_method",
                "totalRevenue": {"$sum": "$total_price"},
                "totalOrders": {"$sum": 1},
                "averageOrderValue": {"$avg": "$total_price"},
            }
        },
        {"$sort": {"totalRevenue": -1, "_id": 1}},
        {
            "$project": {
                "_id": 0,
                "paymentMethod": "$_id",
                "totalRevenue": 1,
                "totalOrders": 1,
                "averageOrderValue": 1,
            }
        },
    ]


def product_category_pipeline(match: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    # Members are pushed in accumulation order; the sample is cut when shaping.
    return [
        *match,
        {
            "$group": {
                "_id": "$category",
                "totalProducts": {"$sum": 1},
                "averagePrice": {"$avg": "$price"},
                "minPrice": {"$min": "$price"},
                "maxPrice": {"$max": "$price"},
                "products": {
                    "$push": {"id": "$_id", "name": "$name", "price": "$price"}
                },
            }
        },
        {"$sort": {"totalProducts": -1, "_id": 1}},
    ]


def product_summary_pipeline(match: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        *match,
        {
            "$group": {
                "_id": None,
                "totalProducts": {"$sum": 1},
                "averagePrice": {"$avg": "$price"},
                "categories": {"$addToSet": "$category"},
            }
        },
    ]


def round_price(value: Optional[float]) -> Optional[float]:
    """Round an aggregated price to two decimals, passing None through."""
    if value is None:
        return None
    return round(value, 2)


def shape_category_group(group: Dict[str, Any]) -> Dict[str, Any]:
    """Turn one ``$group`` output document into a category breakdown row."""
    return {
        "category": group["_id"],
        "totalProducts": group["totalProducts"],
        "averagePrice": round_price(group.get("averagePrice")),
        "priceRange": {
            "min": group.get("minPrice"),
            "max": group.get("maxPrice"),
        },
        "products": [
            {"id": str(member["id"]), "name": member.get("name"), "price": member.get("price")}
            for member in group.get("products", [])[:CATEGORY_SAMPLE_SIZE]
        ],
    }


def shape_product_summary(groups: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Collapse the summary pipeline output, defaulting when nothing matched."""
    if not groups or not groups[0].get("totalProducts"):
        return dict(EMPTY_PRODUCT_SUMMARY)
    overall = groups[0]
    return {
        "totalProducts": overall["totalProducts"],
        "averagePrice": round_price(overall.get("averagePrice")),
        "totalCategories": len(overall.get("categories", [])),
    }


def generate_order_report(
    db: Database,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None
) -> Dict[str, Any]:
    """
    Revenue per payment method over an optional creation-date range.

    Args:
        db: Database handle
        start_date: Inclusive lower bound, raw query value
        end_date: Inclusive upper bound, raw query value

    Returns:
        ``{"data": [...], "timeRange": {...}}`` sorted by revenue descending

    Raises:
        InvalidDateFormatError: If either bound cannot be parsed
    """
    match = build_date_match(start_date, end_date)
    pipeline = order_report_pipeline(match)

    started = time.time()
    with tracer.start_as_current_span("db.aggregate.order_report") as db_span:
        db_span.set_attribute("db.operation", "aggregate")
        db_span.set_attribute("db.collection", ORDERS_COLLECTION)
        db_span.set_attribute("report.filtered", bool(match))

        data = list(db[ORDERS_COLLECTION].aggregate(pipeline))
        db_span.set_attribute("db.rows_returned", len(data))

    report_duration_histogram.record(time.time() - started, {"report": "orders"})
    logger.info("Order report generated", extra={
        "groups": len(data),
        "start_date": start_date,
        "end_date": end_date
    })

    return {
        "data": data,
        "timeRange": build_time_range(start_date, end_date),
    }


def generate_product_report(
    db: Database,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None
) -> Dict[str, Any]:
    """
    Category breakdown and overall product statistics.

    Args:
        db: Database handle
        start_date: Inclusive lower bound, raw query value
        end_date: Inclusive upper bound, raw query value

    Returns:
        ``{"summary": {...}, "categoryBreakdown": [...], "timeRange": {...}}``

    Raises:
        InvalidDateFormatError: If either bound cannot be parsed
    """
    match = build_date_match(start_date, end_date)

    started = time.time()
    with tracer.start_as_current_span("db.aggregate.product_report") as db_span:
        db_span.set_attribute("db.operation", "aggregate")
        db_span.set_attribute("db.collection", PRODUCTS_COLLECTION)
        db_span.set_attribute("report.filtered", bool(match))

        groups = list(db[PRODUCTS_COLLECTION].aggregate(product_category_pipeline(match)))
        overall = list(db[PRODUCTS_COLLECTION].aggregate(product_summary_pipeline(match)))
        db_span.set_attribute("db.rows_returned", len(groups))

    report_duration_histogram.record(time.time() - started, {"report": "products"})
    logger.info("Product report generated", extra={
        "categories": len(groups),
        "start_date": start_date,
        "end_date": end_date
    })

    return {
        "summary": shape_product_summary(overall),
        "categoryBreakdown": [shape_category_group(group) for group in groups],
        "timeRange": build_time_range(start_date, end_date),
    }
