"""
===============================================================================
TARJETA CRC — bizops/interfaces/api/http/routers/subscriptions.py
===============================================================================

Class/Module:
    Subscriptions Router (/api/subscriptions)

Responsibilities:
    - Catálogo de tipos de suscripción predefinidos.
    - CRUD de suscripciones; fecha de fin derivada del ciclo si falta.
    - Transiciones suspend / reactivate / cancel.
    - Borrado bloqueado si hay facturas vinculadas.

Collaborators:
    - bizops.container.get_subscription_repository
    - bizops.application.billing (SUBSCRIPTION_TYPES, compute_end_date)
===============================================================================
"""

from __future__ import annotations

from bizops.application.billing import SUBSCRIPTION_TYPES, compute_end_date
from bizops.container import get_subscription_repository
from bizops.crosscutting.exceptions import ValidationFailedError
from bizops.crosscutting.logger import logger
from bizops.identity.rbac import Operation, require_operation
from bizops.identity.users import Identity
from bizops.infrastructure.repositories import PostgresSubscriptionRepository
from fastapi import APIRouter, Depends, Query

from ..dependencies import created, done, require_changes, require_found
from ..schemas.common import to_record
from ..schemas.subscriptions import CreateSubscriptionReq, UpdateSubscriptionReq

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])

_NOT_FOUND = "Suscripción no encontrada."

# estado destino -> (mensaje si ya está en ese estado, mensaje de éxito)
_TRANSITIONS: dict[str, tuple[str, str]] = {
    "suspended": ("La suscripción ya está suspendida.", "Suscripción suspendida con éxito."),
    "active": ("La suscripción ya está activa.", "Suscripción reactivada con éxito."),
    "cancelled": ("La suscripción ya está cancelada.", "Suscripción cancelada con éxito."),
}


@router.get("/types/available")
def subscription_types(
    _actor: Identity = Depends(require_operation(Operation.SUBSCRIPTIONS_TYPES)),
):
    return SUBSCRIPTION_TYPES


@router.get("")
def list_subscriptions(
    search: str = Query(""),
    status: str = Query(""),
    client_id: int | None = Query(None),
    type: str = Query(""),
    repo: PostgresSubscriptionRepository = Depends(get_subscription_repository),
    _actor: Identity = Depends(require_operation(Operation.SUBSCRIPTIONS_LIST)),
):
    return repo.list_subscriptions(
        search=search, status=status, client_id=client_id, plan_type=type
    )


@router.get("/stats/overview")
def subscriptions_stats(
    repo: PostgresSubscriptionRepository = Depends(get_subscription_repository),
    _actor: Identity = Depends(require_operation(Operation.SUBSCRIPTIONS_STATS)),
):
    return repo.stats()


@router.get("/{subscription_id}")
def get_subscription(
    subscription_id: int,
    repo: PostgresSubscriptionRepository = Depends(get_subscription_repository),
    _actor: Identity = Depends(require_operation(Operation.SUBSCRIPTIONS_READ)),
):
    return require_found(repo.get_subscription(subscription_id), _NOT_FOUND)


@router.post("", status_code=201)
def create_subscription(
    req: CreateSubscriptionReq,
    repo: PostgresSubscriptionRepository = Depends(get_subscription_repository),
    actor: Identity = Depends(require_operation(Operation.SUBSCRIPTIONS_CREATE)),
):
    if not repo.client_exists(req.client_id):
        raise ValidationFailedError("Cliente no encontrado.")

    data = to_record(req)
    if data["end_date"] is None:
        data["end_date"] = compute_end_date(req.start_date, req.billing_cycle.value)

    subscription_id = repo.create_subscription(data)
    logger.info(
        "Suscripción creada",
        extra={"subscription_id": subscription_id, "client_id": req.client_id, "by": actor.id},
    )
    return created("Suscripción creada con éxito.", subscriptionId=subscription_id)


@router.put("/{subscription_id}")
def update_subscription(
    subscription_id: int,
    req: UpdateSubscriptionReq,
    repo: PostgresSubscriptionRepository = Depends(get_subscription_repository),
    _actor: Identity = Depends(require_operation(Operation.SUBSCRIPTIONS_UPDATE)),
):
    require_found(repo.get_status(subscription_id), _NOT_FOUND)
    repo.update_subscription(subscription_id, require_changes(req.changes()))
    return done("Suscripción actualizada con éxito.")


def _transition(repo: PostgresSubscriptionRepository, subscription_id: int, target: str) -> str:
    already_msg, ok_msg = _TRANSITIONS[target]
    current = require_found(repo.get_status(subscription_id), _NOT_FOUND)
    if current == target:
        raise ValidationFailedError(already_msg)
    repo.set_status(subscription_id, target)
    return ok_msg


@router.post("/{subscription_id}/suspend")
def suspend_subscription(
    subscription_id: int,
    repo: PostgresSubscriptionRepository = Depends(get_subscription_repository),
    _actor: Identity = Depends(require_operation(Operation.SUBSCRIPTIONS_SET_STATUS)),
):
    return done(_transition(repo, subscription_id, "suspended"))


@router.post("/{subscription_id}/reactivate")
def reactivate_subscription(
    subscription_id: int,
    repo: PostgresSubscriptionRepository = Depends(get_subscription_repository),
    _actor: Identity = Depends(require_operation(Operation.SUBSCRIPTIONS_SET_STATUS)),
):
    return done(_transition(repo, subscription_id, "active"))


@router.post("/{subscription_id}/cancel")
def cancel_subscription(
    subscription_id: int,
    repo: PostgresSubscriptionRepository = Depends(get_subscription_repository),
    _actor: Identity = Depends(require_operation(Operation.SUBSCRIPTIONS_SET_STATUS)),
):
    return done(_transition(repo, subscription_id, "cancelled"))


@router.delete("/{subscription_id}")
def delete_subscription(
    subscription_id: int,
    repo: PostgresSubscriptionRepository = Depends(get_subscription_repository),
    actor: Identity = Depends(require_operation(Operation.SUBSCRIPTIONS_DELETE)),
):
    require_found(repo.get_status(subscription_id), _NOT_FOUND)
    if repo.invoice_count(subscription_id) > 0:
        raise ValidationFailedError(
            "No se puede eliminar la suscripción: tiene facturas asociadas."
        )

    repo.delete_subscription(subscription_id)
    logger.info(
        "Suscripción eliminada", extra={"subscription_id": subscription_id, "by": actor.id}
    )
    return done("Suscripción eliminada con éxito.")
