"""
===============================================================================
TARJETA CRC — domain/sequences.py
===============================================================================

Módulo:
    Formatos de numeración secuencial (factura, producto, lote, venta)

Responsabilidades:
    - Construir el prefijo determinístico de cada tipo (año o categoría).
    - Formatear prefijo + número con ancho fijo (ordenable como string).
    - Parsear el sufijo numérico de un código existente (0 si no se puede).
    - Construir el código degradado prefijo + epoch en milisegundos.

Colaboradores:
    - application/sequence_allocator.py: orquesta lectura + incremento.

Reglas:
    - Lógica pura: sin I/O.
    - Anchos: producto 6, lote/venta/factura 4.
===============================================================================
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class SequenceKind(str, Enum):
    INVOICE = "invoice"
    PRODUCT = "product"
    LOT = "lot"
    SALE = "sale"


_LEADING_DIGITS = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True, slots=True)
class SequenceFormat:
    """Cómo se ve un código de un tipo y período dados.

    El código final es `prefix + separator + número con ceros a la izquierda`.
    """

    kind: SequenceKind
    prefix: str
    width: int
    separator: str = ""
    fallback_tag: str = ""

    @property
    def search_prefix(self) -> str:
        """Prefijo usado para buscar el último código emitido (LIKE prefix%)."""
        return self.prefix

    @property
    def code_length(self) -> int:
        """Largo exacto de un código bien formado.

        La búsqueda del último código filtra por este largo: un código
        degradado (tag + epoch) o el de otra categoría con el mismo
        prefijo (CAT100 vs CAT1000) no cuentan para la secuencia.
        """
        return len(self.prefix) + len(self.separator) + self.width

    def format(self, number: int) -> str:
        return f"{self.prefix}{self.separator}{number:0{self.width}d}"

    def parse(self, code: str | None) -> int:
        """Sufijo numérico de `code`; 0 si falta o no es interpretable."""
        if not code or not code.startswith(self.prefix):
            return 0
        rest = code[len(self.prefix) :]
        if self.separator and rest.startswith(self.separator):
            rest = rest[len(self.separator) :]
        match = _LEADING_DIGITS.match(rest)
        if not match:
            return 0
        return max(int(match.group(1)), 0)

    @property
    def max_number(self) -> int:
        """Mayor número que entra en el ancho fijo sin romper el orden de strings."""
        return 10**self.width - 1

    def next_after(self, last_code: str | None) -> str:
        return self.format(self.parse(last_code) + 1)

    def fallback(self, epoch_ms: int) -> str:
        """Código degradado (no monótono) cuando la lectura falla."""
        return f"{self.fallback_tag}{epoch_ms}"


def invoice_format(year: int) -> SequenceFormat:
    return SequenceFormat(
        kind=SequenceKind.INVOICE,
        prefix=f"INV-{year}",
        separator="-",
        width=4,
        fallback_tag="INV-",
    )


def product_format(category_id: int | None = None) -> SequenceFormat:
    # R: CAT{id:03d} deja de tener ancho fijo desde el id 1000; code_length
    # separa las secuencias de CAT100 y CAT1000.
    prefix = f"CAT{category_id:03d}" if category_id else "PRD"
    return SequenceFormat(
        kind=SequenceKind.PRODUCT, prefix=prefix, width=6, fallback_tag="PRD"
    )


def lot_format(year: int) -> SequenceFormat:
    return SequenceFormat(
        kind=SequenceKind.LOT, prefix=f"LOT{year}", width=4, fallback_tag="LOT"
    )


def sale_format(year: int) -> SequenceFormat:
    return SequenceFormat(
        kind=SequenceKind.SALE, prefix=f"SALE{year}", width=4, fallback_tag="SALE"
    )
