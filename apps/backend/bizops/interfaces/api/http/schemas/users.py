"""
===============================================================================
TARJETA CRC — schemas/users.py
===============================================================================

Módulo:
    Schemas HTTP para /api/users (payload camelCase)

Responsabilidades:
    - Requests de alta/edición con alias camelCase (firstName, isActive...).
    - Respuesta de detalle en camelCase.
===============================================================================
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from bizops.identity.users import UserRole
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .common import Email, NonEmptyStr, Password, UpdateRequest

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class CreateUserReq(BaseModel):
    model_config = _CAMEL

    email: Email
    password: Password
    first_name: NonEmptyStr
    last_name: NonEmptyStr
    role: UserRole
    department: str | None = None
    position: str | None = None
    phone: str | None = None
    address: str | None = None
    salary: Decimal | None = None


class UpdateUserReq(UpdateRequest):
    model_config = _CAMEL

    first_name: NonEmptyStr | None = None
    last_name: NonEmptyStr | None = None
    email: Email | None = None
    role: UserRole | None = None
    department: str | None = None
    position: str | None = None
    phone: str | None = None
    address: str | None = None
    salary: Decimal | None = None
    is_active: bool | None = None


class UserDetailRes(BaseModel):
    """Detalle de usuario serializado en camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    email: str
    first_name: str
    last_name: str
    role: UserRole
    department: str | None = None
    position: str | None = None
    phone: str | None = None
    address: str | None = None
    hire_date: date | None = None
    salary: Decimal | None = None
    avatar: str | None = None
    is_active: bool
    created_at: datetime | None = None
