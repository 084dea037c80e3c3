"""
===============================================================================
TARJETA CRC — schemas/invoices.py
===============================================================================

Módulo:
    Schemas HTTP para /api/invoices (cabecera + líneas)
===============================================================================
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .common import NonEmptyStr, NonNegativeDecimal, UpdateRequest


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class InvoiceItemReq(BaseModel):
    model_config = ConfigDict(extra="ignore")

    description: NonEmptyStr
    quantity: Decimal = Field(gt=0)
    unit_price: NonNegativeDecimal
    total_price: NonNegativeDecimal | None = None


class CreateInvoiceReq(BaseModel):
    model_config = ConfigDict(extra="ignore")

    client_id: int
    invoice_number: NonEmptyStr
    issue_date: date
    due_date: date
    subtotal: Decimal
    tax_rate: Decimal
    items: list[InvoiceItemReq]
    project_id: int | None = None
    subscription_id: int | None = None
    tax_amount: Decimal | None = None
    total_amount: Decimal | None = None
    payment_method: str | None = None
    payment_date: date | None = None
    notes: str | None = None


class UpdateInvoiceReq(UpdateRequest):
    nullable_fields = frozenset({"notes", "payment_method", "payment_date"})

    invoice_number: NonEmptyStr | None = None
    issue_date: date | None = None
    due_date: date | None = None
    subtotal: Decimal | None = None
    tax_rate: Decimal | None = None
    tax_amount: Decimal | None = None
    total_amount: Decimal | None = None
    status: InvoiceStatus | None = None
    payment_method: str | None = None
    payment_date: date | None = None
    notes: str | None = None
    items: list[InvoiceItemReq] | None = None


class MarkPaidReq(BaseModel):
    model_config = ConfigDict(extra="ignore")

    payment_method: str | None = None
    payment_date: date | None = None
