"""
===============================================================================
TARJETA CRC — schemas/common.py
===============================================================================

Módulo:
    Tipos y validadores compartidos por los schemas HTTP

Responsabilidades:
    - Strings recortados y no vacíos.
    - Email validado con EmailStr y normalizado a minúsculas.
    - Base de los requests de actualización parcial (PATCH semántico en PUT).
===============================================================================
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, ClassVar

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
)

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Password = Annotated[str, Field(min_length=6, max_length=512)]
NonNegativeDecimal = Annotated[Decimal, Field(ge=0)]


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


# R: formato validado por email-validator (EmailStr); se guarda en minúsculas.
Email = Annotated[
    EmailStr,
    BeforeValidator(_strip),
    AfterValidator(str.lower),
]


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def to_record(model: BaseModel, **kwargs: Any) -> dict[str, Any]:
    """model_dump con los Enum reemplazados por su valor (columnas de texto)."""
    return {k: _plain(v) for k, v in model.model_dump(**kwargs).items()}


class UpdateRequest(BaseModel):
    """Base de PUT parciales: solo los campos enviados forman el diff.

    Un null explícito solo se aplica a los campos de `nullable_fields`; en el
    resto se ignora.
    """

    model_config = ConfigDict(extra="ignore")

    nullable_fields: ClassVar[frozenset[str]] = frozenset()

    def changes(self, *, exclude: set[str] | None = None) -> dict[str, Any]:
        record = to_record(self, exclude_unset=True, exclude=exclude)
        return {
            k: v for k, v in record.items() if v is not None or k in self.nullable_fields
        }
