"""
===============================================================================
TARJETA CRC — application/billing.py
===============================================================================

Módulo:
    Reglas de facturación y suscripciones (cálculos puros)

Responsabilidades:
    - Completar importes de factura: impuesto = subtotal × tasa / 100 y
      total = subtotal + impuesto, salvo que vengan explícitos.
    - Completar total de cada línea (cantidad × precio unitario).
    - Catálogo de tipos de suscripción predefinidos.
    - Fecha de fin por ciclo de facturación (día recortado a fin de mes).

Colaboradores:
    - interfaces/api/http/routers/invoices.py, subscriptions.py,
      equipment.py (lotes de compra)
===============================================================================
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping

_CENTS = Decimal("0.01")

BILLING_CYCLE_MONTHS: dict[str, int] = {
    "monthly": 1,
    "quarterly": 3,
    "yearly": 12,
}


def money(value: Any) -> Decimal:
    return Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True, slots=True)
class InvoiceAmounts:
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total_amount: Decimal


def compute_invoice_amounts(
    subtotal: Any,
    tax_rate: Any,
    *,
    tax_amount: Any = None,
    total_amount: Any = None,
) -> InvoiceAmounts:
    """Completa impuesto y total respetando los valores explícitos."""
    sub = money(subtotal)
    rate = Decimal(str(tax_rate))
    tax = money(tax_amount) if tax_amount is not None else money(sub * rate / 100)
    total = money(total_amount) if total_amount is not None else money(sub + tax)
    return InvoiceAmounts(subtotal=sub, tax_rate=rate, tax_amount=tax, total_amount=total)


def complete_line_items(items: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Líneas de factura con total_price calculado si falta."""
    completed = []
    for item in items:
        line = dict(item)
        if line.get("total_price") is None:
            line["total_price"] = money(Decimal(str(line["quantity"])) * Decimal(str(line["unit_price"])))
        completed.append(line)
    return completed


def purchase_lot_total(items: Iterable[Mapping[str, Any]]) -> Decimal:
    """Σ cantidad pedida × costo unitario."""
    return money(
        sum(
            (Decimal(str(i["quantity_ordered"])) * Decimal(str(i["unit_cost"])) for i in items),
            Decimal("0"),
        )
    )


# ---------------------------------------------------------------------------
# Suscripciones
# ---------------------------------------------------------------------------

SUBSCRIPTION_TYPES: dict[str, dict[str, Any]] = {
    "STARLINK": {
        "name": "Starlink",
        "description": "Servicio de internet satelital Starlink",
        "defaultPrice": 99.00,
        "billingCycle": "monthly",
    },
    "TALKIE_WALKIE": {
        "name": "Talkie-Walkie Motorola",
        "description": "Servicio de comunicación por talkie-walkie Motorola",
        "defaultPrice": 45.00,
        "billingCycle": "monthly",
    },
    "DOMAIN": {
        "name": "Nombre de Dominio",
        "description": "Registro y gestión de nombres de dominio",
        "defaultPrice": 15.00,
        "billingCycle": "yearly",
    },
    "HOSTING": {
        "name": "Hosting Web",
        "description": "Servicio de alojamiento de sitios web",
        "defaultPrice": 25.00,
        "billingCycle": "monthly",
    },
}


def add_months(start: date, months: int) -> date:
    """Suma meses calendario; el día se recorta al último del mes destino."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def compute_end_date(start: date, billing_cycle: str) -> date:
    return add_months(start, BILLING_CYCLE_MONTHS[billing_cycle])
