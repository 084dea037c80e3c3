"""
===============================================================================
TARJETA CRC — schemas/employees.py
===============================================================================

Módulo:
    Schemas HTTP para /api/employees (snake_case)
===============================================================================
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict

from .common import Email, NonEmptyStr, Password, UpdateRequest


class StaffRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class CreateEmployeeReq(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: Email
    password: Password
    first_name: NonEmptyStr
    last_name: NonEmptyStr
    role: StaffRole
    department: NonEmptyStr
    position: NonEmptyStr
    hire_date: date
    salary: Decimal
    phone: str | None = None
    address: str | None = None


class UpdateEmployeeReq(UpdateRequest):
    email: Email | None = None
    password: Password | None = None
    first_name: NonEmptyStr | None = None
    last_name: NonEmptyStr | None = None
    role: StaffRole | None = None
    department: NonEmptyStr | None = None
    position: NonEmptyStr | None = None
    phone: str | None = None
    address: str | None = None
    hire_date: date | None = None
    salary: Decimal | None = None
    is_active: bool | None = None
