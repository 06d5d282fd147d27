"""Products API router."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query
from opentelemetry import trace
from pymongo.database import Database

from config import DEFAULT_PAGE, DEFAULT_PAGE_SIZE
from database import get_db
from dependencies import get_product_service
from schemas import (
    MessageResponse,
    ProductCreate,
    ProductReportResponse,
    ProductResponse,
    ProductUpdate,
)
from services.product_service import ProductService

router = APIRouter(prefix="/api/products", tags=["products"])


@router.post("", response_model=ProductResponse, status_code=201)
def create_product(
    product: ProductCreate,
    db: Database = Depends(get_db),
    product_service: ProductService = Depends(get_product_service)
):
    """Create a product."""
    return product_service.create_product(db, product.model_dump())


@router.get("", response_model=List[ProductResponse])
def get_products(
    search: Optional[str] = Query(None, description="Case-insensitive name substring"),
    category: Optional[str] = Query(None, description="Exact category"),
    page: int = Query(DEFAULT_PAGE, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    db: Database = Depends(get_db),
    product_service: ProductService = Depends(get_product_service)
):
    """List products, optionally filtered by name and category."""
    span = trace.get_current_span()
    span.set_attribute("products.page", page)
    if category:
        span.set_attribute("products.category", category)

    return product_service.list_products(db, page, limit, search=search, category=category)


@router.get("/report", response_model=ProductReportResponse)
def get_product_report(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    db: Database = Depends(get_db),
    product_service: ProductService = Depends(get_product_service)
):
    """
    Product statistics per category.

    Both dates are optional and inclusive. Examples:
    - GET /api/products/report
    - GET /api/products/report?startDate=2024-01-01&endDate=2024-12-31
    """
    return product_service.get_report(db, start_date, end_date)


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: str = Path(..., description="Product ID"),
    db: Database = Depends(get_db),
    product_service: ProductService = Depends(get_product_service)
):
    """Get one product."""
    return product_service.get_product(db, product_id)


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    changes: ProductUpdate,
    product_id: str = Path(..., description="Product ID"),
    db: Database = Depends(get_db),
    product_service: ProductService = Depends(get_product_service)
):
    """Partially update a product."""
    return product_service.update_product(db, product_id, changes.model_dump(exclude_unset=True))


@router.delete("/{product_id}", response_model=MessageResponse)
def delete_product(
    product_id: str = Path(..., description="Product ID"),
    db: Database = Depends(get_db),
    product_service: ProductService = Depends(get_product_service)
):
    """Delete a product. Orders referencing it are not touched."""
    product_service.delete_product(db, product_id)
    return {"message": "Product deleted"}
