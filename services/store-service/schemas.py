"""Pydantic schemas for request/response validation."""
from datetime import datetime
from typing import Annotated, List, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

# ObjectId values leave the API as hex strings
PyObjectId = Annotated[str, BeforeValidator(str)]


class ProductCreate(BaseModel):
    """Schema for creating a product."""
    name: str
    price: float = Field(ge=0)
    category: str


class ProductUpdate(BaseModel):
    """Schema for a partial product update; only supplied fields change."""
    name: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = None


class ProductResponse(BaseModel):
    """Schema for product response."""
    model_config = ConfigDict(populate_by_name=True)

    id: PyObjectId = Field(alias="_id")
    name: str
    price: float
    category: str
    created_at: Optional[datetime] = None


class ProductReference(BaseModel):
    """A product as embedded in an order once references are resolved."""
    model_config = ConfigDict(populate_by_name=True)

    id: PyObjectId = Field(alias="_id")
    name: Optional[str] = None
    price: Optional[float] = None
    category: Optional[str] = None


class OrderCreate(BaseModel):
    """
    Schema for creating an order.

    Every field is optional at the schema level so that missing values are
    reported together by the required-fields check.
    """
    product_ids: Optional[List[str]] = None
    total_price: Optional[float] = None
    customer_name: Optional[str] = None
    payment_method: Optional[str] = None


class OrderUpdate(BaseModel):
    """Schema for a partial order update; only supplied fields change."""
    product_ids: Optional[List[str]] = None
    total_price: Optional[float] = None
    customer_name: Optional[str] = None
    payment_method: Optional[str] = None


class OrderResponse(BaseModel):
    """Schema for order response, with or without resolved products."""
    model_config = ConfigDict(populate_by_name=True)

    id: PyObjectId = Field(alias="_id")
    product_ids: List[
        Annotated[Union[ProductReference, PyObjectId], Field(union_mode="left_to_right")]
    ]
    total_price: float
    customer_name: str
    payment_method: str
    created_at: Optional[datetime] = None


class OrderEnvelope(BaseModel):
    """Schema for order mutation responses."""
    message: str
    order: OrderResponse


class Pagination(BaseModel):
    total: int
    page: int
    pages: int


class OrdersListResponse(BaseModel):
    """Schema for orders list response."""
    data: List[OrderResponse]
    pagination: Pagination


class MessageResponse(BaseModel):
    message: str


class TimeRange(BaseModel):
    """Requested report bounds as echoed back to the client."""
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from")
    to: str


class PaymentMethodReport(BaseModel):
    paymentMethod: Optional[str] = None
    totalRevenue: float
    totalOrders: int
    averageOrderValue: Optional[float] = None


class OrderReportResponse(BaseModel):
    """Schema for the revenue-by-payment-method report."""
    data: List[PaymentMethodReport]
    timeRange: TimeRange


class CategorySample(BaseModel):
    id: str
    name: Optional[str] = None
    price: Optional[float] = None


class PriceRange(BaseModel):
    min: Optional[float] = None
    max: Optional[float] = None


class CategoryBreakdown(BaseModel):
    category: Optional[str] = None
    totalProducts: int
    averagePrice: Optional[float] = None
    priceRange: PriceRange
    products: List[CategorySample]


class ProductSummary(BaseModel):
    totalProducts: int
    averagePrice: Optional[float] = None
    totalCategories: int


class ProductReportResponse(BaseModel):
    """Schema for the category report."""
    summary: ProductSummary
    categoryBreakdown: List[CategoryBreakdown]
    timeRange: TimeRange
