"""
===============================================================================
TARJETA CRC — schemas/equipment.py
===============================================================================

Módulo:
    Schemas HTTP para /api/equipment (inventario, compras, punto de venta)
===============================================================================
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .common import Email, NonEmptyStr, NonNegativeDecimal


class RatingCriteria(str, Enum):
    QUALITY = "quality"
    DELIVERY = "delivery"
    PRICE = "price"
    SERVICE = "service"
    OVERALL = "overall"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    CHECK = "check"
    TRANSFER = "transfer"
    OTHER = "other"


class _Req(BaseModel):
    model_config = ConfigDict(extra="ignore")


class CreateCategoryReq(_Req):
    name: NonEmptyStr
    description: str | None = None
    parent_id: int | None = None


class CreateSupplierReq(_Req):
    name: NonEmptyStr
    contact_person: str | None = None
    email: Email | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    country: str | None = None
    tax_number: str | None = None
    website: str | None = None
    payment_terms: str | None = None
    delivery_time_days: int = Field(default=7, ge=0)
    notes: str | None = None


class RateSupplierReq(_Req):
    rating: int = Field(ge=1, le=5)
    criteria: RatingCriteria
    comment: str | None = None


class CreateProductReq(_Req):
    name: NonEmptyStr
    cost_price: NonNegativeDecimal
    selling_price: NonNegativeDecimal
    description: str | None = None
    category_id: int | None = None
    brand: str | None = None
    model: str | None = None
    sku: str | None = None
    barcode: str | None = None
    unit_type: str | None = None
    min_stock_level: int | None = None
    max_stock_level: int | None = None
    weight: Decimal | None = None
    dimensions: str | None = None
    color: str | None = None
    size: str | None = None
    supplier_id: int | None = None


class PurchaseLotItemReq(_Req):
    product_id: int
    quantity_ordered: int = Field(gt=0)
    unit_cost: NonNegativeDecimal
    expiry_date: date | None = None
    batch_number: str | None = None
    notes: str | None = None


class CreatePurchaseLotReq(_Req):
    supplier_id: int
    purchase_date: date
    items: list[PurchaseLotItemReq]
    expected_delivery_date: date | None = None
    notes: str | None = None


class SaleItemReq(_Req):
    product_id: int
    quantity: int = Field(gt=0)
    unit_price: NonNegativeDecimal
    total_price: NonNegativeDecimal
    discount_percent: Decimal | None = None
    discount_amount: Decimal | None = None


class CreateSaleReq(_Req):
    items: list[SaleItemReq] = Field(min_length=1)
    payment_method: PaymentMethod
    subtotal: NonNegativeDecimal
    total_amount: NonNegativeDecimal
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    tax_rate: Decimal | None = None
    tax_amount: Decimal | None = None
    discount_amount: Decimal | None = None
    payment_reference: str | None = None
    notes: str | None = None
