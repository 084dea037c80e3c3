"""
===============================================================================
TARJETA CRC — schemas/clients.py
===============================================================================

Módulo:
    Schemas HTTP para /api/clients
===============================================================================
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from .common import Email, NonEmptyStr, UpdateRequest


class ClientStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class CreateClientReq(BaseModel):
    model_config = ConfigDict(extra="ignore")

    company_name: NonEmptyStr
    contact_person: NonEmptyStr
    email: Email
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    country: str | None = None
    tax_number: str | None = None
    website: str | None = None
    notes: str | None = None


class UpdateClientReq(UpdateRequest):
    nullable_fields = frozenset({"notes"})

    company_name: NonEmptyStr | None = None
    contact_person: NonEmptyStr | None = None
    email: Email | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    country: str | None = None
    tax_number: str | None = None
    website: str | None = None
    notes: str | None = None
    status: ClientStatus | None = None
