"""
===============================================================================
TARJETA CRC — schemas/projects.py
===============================================================================

Módulo:
    Schemas HTTP para /api/projects y sus tareas
===============================================================================
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .common import NonEmptyStr, UpdateRequest


class ProjectStatus(str, Enum):
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class CreateProjectReq(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: NonEmptyStr
    description: str | None = None
    client_id: int | None = None
    manager_id: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    budget: Decimal | None = None
    status: ProjectStatus | None = None
    priority: Priority | None = None
    progress: int | None = Field(default=None, ge=0, le=100)


class UpdateProjectReq(UpdateRequest):
    nullable_fields = frozenset({"description"})

    name: NonEmptyStr | None = None
    description: str | None = None
    status: ProjectStatus | None = None
    priority: Priority | None = None
    progress: int | None = Field(default=None, ge=0, le=100)
    end_date: date | None = None


class CreateTaskReq(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: NonEmptyStr
    assigned_to: int
    due_date: date
    description: str | None = None
    priority: Priority | None = None
    estimated_hours: Decimal | None = None
