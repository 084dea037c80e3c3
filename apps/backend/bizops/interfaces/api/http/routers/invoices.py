"""
===============================================================================
TARJETA CRC — bizops/interfaces/api/http/routers/invoices.py
===============================================================================

Class/Module:
    Invoices Router (/api/invoices)

Responsibilities:
    - CRUD de facturas con líneas (alta/edición/borrado transaccionales).
    - Numeración sugerida INV-AAAA-NNNN vía SequenceAllocator.
    - Transiciones send / mark-paid.
    - Edición restringida al creador de la factura (o admin).

Collaborators:
    - bizops.container (repositorio + allocator)
    - bizops.application.billing (importes)
    - bizops.domain.sequences.invoice_format
===============================================================================
"""

from __future__ import annotations

from datetime import date

from bizops.application.billing import complete_line_items, compute_invoice_amounts
from bizops.application.sequence_allocator import SequenceAllocator
from bizops.container import get_invoice_repository, get_sequence_allocator
from bizops.crosscutting.exceptions import ConflictError, ValidationFailedError
from bizops.crosscutting.logger import logger
from bizops.domain.sequences import invoice_format
from bizops.identity.access_control import ResourceKind, require_resource_access
from bizops.identity.rbac import Operation, require_operation
from bizops.identity.users import Identity
from bizops.infrastructure.repositories import PostgresInvoiceRepository
from bizops.infrastructure.repositories.postgres.invoices import NUMBER_TAKEN_MSG
from fastapi import APIRouter, Depends, Query

from ..dependencies import created, done, require_changes, require_found
from ..schemas.common import to_record
from ..schemas.invoices import CreateInvoiceReq, MarkPaidReq, UpdateInvoiceReq

router = APIRouter(prefix="/invoices", tags=["invoices"])

_NOT_FOUND = "Factura no encontrada."
_invoice_access = require_resource_access(ResourceKind.INVOICE, param="invoice_id")


@router.get("")
def list_invoices(
    search: str = Query(""),
    status: str = Query(""),
    client_id: int | None = Query(None),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    repo: PostgresInvoiceRepository = Depends(get_invoice_repository),
    _actor: Identity = Depends(require_operation(Operation.INVOICES_LIST)),
):
    return repo.list_invoices(
        search=search,
        status=status,
        client_id=client_id,
        date_from=date_from,
        date_to=date_to,
    )


@router.get("/generate-number")
def generate_invoice_number(
    allocator: SequenceAllocator = Depends(get_sequence_allocator),
    _actor: Identity = Depends(require_operation(Operation.INVOICES_GENERATE_NUMBER)),
):
    """Próximo número del año en curso. No reserva: dos llamadas sin alta
    intermedia devuelven el mismo valor."""
    fmt = invoice_format(allocator.current_year())
    return {"invoice_number": allocator.next_code(fmt)}


@router.get("/stats/overview")
def invoices_stats(
    repo: PostgresInvoiceRepository = Depends(get_invoice_repository),
    _actor: Identity = Depends(require_operation(Operation.INVOICES_STATS)),
):
    return repo.stats()


@router.get("/{invoice_id}")
def get_invoice(
    invoice_id: int,
    repo: PostgresInvoiceRepository = Depends(get_invoice_repository),
    _actor: Identity = Depends(require_operation(Operation.INVOICES_READ)),
):
    return require_found(repo.get_invoice(invoice_id), _NOT_FOUND)


@router.post("", status_code=201)
def create_invoice(
    req: CreateInvoiceReq,
    repo: PostgresInvoiceRepository = Depends(get_invoice_repository),
    actor: Identity = Depends(require_operation(Operation.INVOICES_CREATE)),
):
    if not repo.client_exists(req.client_id):
        raise ValidationFailedError("Cliente no encontrado.")
    if repo.number_taken(req.invoice_number):
        raise ConflictError(NUMBER_TAKEN_MSG)

    amounts = compute_invoice_amounts(
        req.subtotal,
        req.tax_rate,
        tax_amount=req.tax_amount,
        total_amount=req.total_amount,
    )
    data = to_record(req, exclude={"items"})
    data.update(
        subtotal=amounts.subtotal,
        tax_rate=amounts.tax_rate,
        tax_amount=amounts.tax_amount,
        total_amount=amounts.total_amount,
        status="draft",
        created_by=actor.id,
    )
    items = complete_line_items(item.model_dump() for item in req.items)

    invoice_id = repo.create_invoice(data, items)
    logger.info(
        "Factura creada",
        extra={"invoice_id": invoice_id, "invoice_number": req.invoice_number, "by": actor.id},
    )
    return created("Factura creada con éxito.", invoiceId=invoice_id)


@router.put("/{invoice_id}")
def update_invoice(
    invoice_id: int,
    req: UpdateInvoiceReq,
    repo: PostgresInvoiceRepository = Depends(get_invoice_repository),
    _actor: Identity = Depends(require_operation(Operation.INVOICES_UPDATE)),
    _access: Identity = Depends(_invoice_access),
):
    require_found(repo.get_status(invoice_id), _NOT_FOUND)

    changes = req.changes(exclude={"items"})
    number = changes.get("invoice_number")
    if number and repo.number_taken(number, exclude_id=invoice_id):
        raise ConflictError(NUMBER_TAKEN_MSG)

    items = None
    if req.items is not None:
        items = complete_line_items(item.model_dump() for item in req.items)
    else:
        require_changes(changes)

    repo.update_invoice(invoice_id, changes, items)
    return done("Factura actualizada con éxito.")


@router.post("/{invoice_id}/send")
def send_invoice(
    invoice_id: int,
    repo: PostgresInvoiceRepository = Depends(get_invoice_repository),
    _actor: Identity = Depends(require_operation(Operation.INVOICES_SEND)),
):
    status = require_found(repo.get_status(invoice_id), _NOT_FOUND)
    if status == "sent":
        raise ValidationFailedError("La factura ya fue enviada.")
    repo.set_status(invoice_id, "sent")
    return done("Factura enviada con éxito.")


@router.post("/{invoice_id}/mark-paid")
def mark_invoice_paid(
    invoice_id: int,
    req: MarkPaidReq | None = None,
    repo: PostgresInvoiceRepository = Depends(get_invoice_repository),
    _actor: Identity = Depends(require_operation(Operation.INVOICES_MARK_PAID)),
):
    req = req or MarkPaidReq()
    status = require_found(repo.get_status(invoice_id), _NOT_FOUND)
    if status == "paid":
        raise ValidationFailedError("La factura ya está pagada.")
    repo.set_status(
        invoice_id,
        "paid",
        payment_method=req.payment_method,
        payment_date=req.payment_date or date.today(),
    )
    return done("Factura marcada como pagada.")


@router.delete("/{invoice_id}")
def delete_invoice(
    invoice_id: int,
    repo: PostgresInvoiceRepository = Depends(get_invoice_repository),
    actor: Identity = Depends(require_operation(Operation.INVOICES_DELETE)),
):
    require_found(repo.get_status(invoice_id), _NOT_FOUND)
    repo.delete_invoice(invoice_id)
    logger.info("Factura eliminada", extra={"invoice_id": invoice_id, "by": actor.id})
    return done("Factura eliminada con éxito.")
