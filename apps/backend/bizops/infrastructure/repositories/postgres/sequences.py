"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/sequences.py
============================================================
Class: PostgresSequenceStore

Responsibilities:
  - Devolver el mayor código existente que empieza con un prefijo, para
    cada tipo de secuencia (tabla + columna fijas por tipo).

Constraints:
  - Orden lexicográfico descendente: los códigos tienen ancho fijo, así que
    el mayor string es el mayor número mientras no se desborde el ancho.
  - Los caracteres comodín de LIKE en el prefijo se escapan.
  - Con `length` solo cuentan códigos de ese largo exacto (descarta los
    códigos degradados prefijo + epoch).
============================================================
"""

from __future__ import annotations

from typing import Optional

from psycopg import sql

from ....domain.sequences import SequenceKind
from .base import PostgresRepository

_TARGETS: dict[SequenceKind, tuple[str, str]] = {
    SequenceKind.INVOICE: ("invoices", "invoice_number"),
    SequenceKind.PRODUCT: ("products", "product_code"),
    SequenceKind.LOT: ("purchase_lots", "lot_number"),
    SequenceKind.SALE: ("sales", "sale_number"),
}


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class PostgresSequenceStore(PostgresRepository):
    def last_code(
        self, kind: SequenceKind, prefix: str, length: Optional[int] = None
    ) -> Optional[str]:
        table, column = _TARGETS[kind]
        where = "{col} LIKE %s"
        params: list = [f"{_escape_like(prefix)}%"]
        if length is not None:
            where += " AND char_length({col}) = %s"
            params.append(length)
        query = sql.SQL(
            f"SELECT {{col}} AS code FROM {{table}} WHERE {where} "
            "ORDER BY {col} DESC LIMIT 1"
        ).format(col=sql.Identifier(column), table=sql.Identifier(table))
        row = self._fetchone(
            query,
            tuple(params),
            context_msg="PostgresSequenceStore: last_code failed",
            extra={"kind": kind.value, "prefix": prefix},
        )
        return None if row is None else row["code"]
