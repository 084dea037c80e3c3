"""
===============================================================================
TARJETA CRC — schemas/subscriptions.py
===============================================================================

Módulo:
    Schemas HTTP para /api/subscriptions
===============================================================================
"""

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict

from .common import NonEmptyStr, NonNegativeDecimal, UpdateRequest


class BillingCycle(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class CreateSubscriptionReq(BaseModel):
    model_config = ConfigDict(extra="ignore")

    client_id: int
    plan_name: NonEmptyStr
    price: NonNegativeDecimal
    billing_cycle: BillingCycle
    start_date: date
    end_date: date | None = None
    description: str | None = None
    auto_renew: bool = True


class UpdateSubscriptionReq(UpdateRequest):
    nullable_fields = frozenset({"description", "end_date"})

    plan_name: NonEmptyStr | None = None
    description: str | None = None
    price: NonNegativeDecimal | None = None
    billing_cycle: BillingCycle | None = None
    start_date: date | None = None
    end_date: date | None = None
    status: SubscriptionStatus | None = None
    auto_renew: bool | None = None
