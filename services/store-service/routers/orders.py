"""Orders API router."""
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from opentelemetry import trace
from pymongo.database import Database

from config import DEFAULT_PAGE, DEFAULT_PAGE_SIZE
from database import get_db
from dependencies import get_order_service
from schemas import (
    OrderCreate,
    OrderEnvelope,
    OrderReportResponse,
    OrderResponse,
    OrdersListResponse,
    OrderUpdate,
)
from services.order_service import OrderService

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("", response_model=OrderEnvelope, status_code=201)
def create_order(
    request: OrderCreate,
    db: Database = Depends(get_db),
    order_service: OrderService = Depends(get_order_service)
):
    """Create an order after checking that every referenced product exists."""
    order = order_service.create_order(db, request.model_dump())

    span = trace.get_current_span()
    span.set_attribute("order.id", str(order["_id"]))
    span.set_attribute("payment.method", order["payment_method"])

    return {"message": "Order created successfully", "order": order}


@router.get("/report", response_model=OrderReportResponse)
def get_order_report(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    db: Database = Depends(get_db),
    order_service: OrderService = Depends(get_order_service)
):
    """
    Revenue, order count and average order value per payment method.

    Both dates are optional and inclusive. Examples:
    - GET /api/orders/report
    - GET /api/orders/report?startDate=2024-01-01
    """
    return order_service.get_report(db, start_date, end_date)


@router.get("", response_model=OrdersListResponse)
def get_orders(
    payment_method: Optional[str] = Query(None),
    page: int = Query(DEFAULT_PAGE, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    db: Database = Depends(get_db),
    order_service: OrderService = Depends(get_order_service)
):
    """List orders, newest first, with products resolved."""
    return order_service.list_orders(db, page, limit, payment_method=payment_method)


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str = Path(..., description="Order ID"),
    db: Database = Depends(get_db),
    order_service: OrderService = Depends(get_order_service)
):
    """Get one order with products resolved."""
    return order_service.get_order(db, order_id)


@router.put("/{order_id}", response_model=OrderEnvelope)
def update_order(
    request: OrderUpdate,
    order_id: str = Path(..., description="Order ID"),
    db: Database = Depends(get_db),
    order_service: OrderService = Depends(get_order_service)
):
    """Partially update an order; fields left out keep their values."""
    order = order_service.update_order(db, order_id, request.model_dump(exclude_unset=True))
    return {"message": "Order updated successfully", "order": order}


@router.delete("/{order_id}", response_model=OrderEnvelope)
def delete_order(
    order_id: str = Path(..., description="Order ID"),
    db: Database = Depends(get_db),
    order_service: OrderService = Depends(get_order_service)
):
    """Delete an order."""
    order = order_service.delete_order(db, order_id)
    return {"message": "Order deleted successfully", "order": order}
