"""
===============================================================================
TARJETA CRC — bizops/interfaces/api/http/routers/equipment.py
===============================================================================

Class/Module:
    Equipment Router (/api/equipment)

Responsibilities:
    - Inventario: categorías, proveedores (+ calificación), productos.
    - Compras: lotes de compra con número LOTAAAANNNN.
    - Punto de venta: ventas con número SALEAAAANNNN y descuento de stock.
    - KPIs de inventario.

Collaborators:
    - bizops.container (repositorio + allocator)
    - bizops.domain.sequences (product/lot/sale formats)
    - bizops.application.billing.purchase_lot_total

Notes:
    - Los códigos se asignan y se insertan dentro de allocator.allocate():
      en modo strict un choque de UNIQUE se reintenta con el siguiente.
===============================================================================
"""

from __future__ import annotations

from datetime import date

from bizops.application.billing import purchase_lot_total
from bizops.application.sequence_allocator import SequenceAllocator
from bizops.container import get_equipment_repository, get_sequence_allocator
from bizops.crosscutting.logger import logger
from bizops.domain.sequences import lot_format, product_format, sale_format
from bizops.identity.rbac import Operation, require_operation
from bizops.identity.users import Identity
from bizops.infrastructure.repositories import PostgresEquipmentRepository
from fastapi import APIRouter, Depends, Query

from ..dependencies import created, done, require_found
from ..schemas.common import to_record
from ..schemas.equipment import (
    CreateCategoryReq,
    CreateProductReq,
    CreatePurchaseLotReq,
    CreateSaleReq,
    CreateSupplierReq,
    RateSupplierReq,
)

router = APIRouter(prefix="/equipment", tags=["equipment"])


# =============================================================================
# Categorías
# =============================================================================


@router.get("/categories")
def list_categories(
    repo: PostgresEquipmentRepository = Depends(get_equipment_repository),
    _actor: Identity = Depends(require_operation(Operation.CATEGORIES_LIST)),
):
    return repo.list_categories()


@router.post("/categories", status_code=201)
def create_category(
    req: CreateCategoryReq,
    repo: PostgresEquipmentRepository = Depends(get_equipment_repository),
    _actor: Identity = Depends(require_operation(Operation.CATEGORIES_CREATE)),
):
    category_id = repo.create_category(to_record(req))
    return created("Categoría creada con éxito.", categoryId=category_id)


# =============================================================================
# Proveedores
# =============================================================================


@router.get("/suppliers")
def list_suppliers(
    search: str = Query(""),
    status: str = Query(""),
    repo: PostgresEquipmentRepository = Depends(get_equipment_repository),
    _actor: Identity = Depends(require_operation(Operation.SUPPLIERS_LIST)),
):
    return repo.list_suppliers(search=search, status=status)


@router.post("/suppliers", status_code=201)
def create_supplier(
    req: CreateSupplierReq,
    repo: PostgresEquipmentRepository = Depends(get_equipment_repository),
    _actor: Identity = Depends(require_operation(Operation.SUPPLIERS_CREATE)),
):
    supplier_id = repo.create_supplier(to_record(req))
    return created("Proveedor creado con éxito.", supplierId=supplier_id)


@router.post("/suppliers/{supplier_id}/rate")
def rate_supplier(
    supplier_id: int,
    req: RateSupplierReq,
    repo: PostgresEquipmentRepository = Depends(get_equipment_repository),
    actor: Identity = Depends(require_operation(Operation.SUPPLIERS_RATE)),
):
    require_found(repo.supplier_exists(supplier_id), "Proveedor no encontrado.")
    repo.rate_supplier(
        supplier_id,
        user_id=actor.id,
        rating=req.rating,
        criteria=req.criteria.value,
        comment=req.comment,
    )
    return done("Calificación registrada con éxito.")


# =============================================================================
# Productos
# =============================================================================


@router.get("/products")
def list_products(
    search: str = Query(""),
    category_id: int | None = Query(None),
    supplier_id: int | None = Query(None),
    low_stock: bool = Query(False),
    repo: PostgresEquipmentRepository = Depends(get_equipment_repository),
    _actor: Identity = Depends(require_operation(Operation.PRODUCTS_LIST)),
):
    return repo.list_products(
        search=search,
        category_id=category_id,
        supplier_id=supplier_id,
        low_stock=low_stock,
    )


@router.post("/products", status_code=201)
def create_product(
    req: CreateProductReq,
    repo: PostgresEquipmentRepository = Depends(get_equipment_repository),
    allocator: SequenceAllocator = Depends(get_sequence_allocator),
    _actor: Identity = Depends(require_operation(Operation.PRODUCTS_CREATE)),
):
    data = to_record(req)
    product_code, product_id = allocator.allocate(
        product_format(req.category_id),
        lambda code: repo.create_product(code, data),
    )
    logger.info(
        "Producto creado", extra={"product_id": product_id, "product_code": product_code}
    )
    return created("Producto creado con éxito.", productId=product_id, productCode=product_code)


# =============================================================================
# Lotes de compra
# =============================================================================


@router.get("/purchase-lots")
def list_purchase_lots(
    search: str = Query(""),
    status: str = Query(""),
    supplier_id: int | None = Query(None),
    repo: PostgresEquipmentRepository = Depends(get_equipment_repository),
    _actor: Identity = Depends(require_operation(Operation.PURCHASE_LOTS_LIST)),
):
    return repo.list_purchase_lots(search=search, status=status, supplier_id=supplier_id)


@router.post("/purchase-lots", status_code=201)
def create_purchase_lot(
    req: CreatePurchaseLotReq,
    repo: PostgresEquipmentRepository = Depends(get_equipment_repository),
    allocator: SequenceAllocator = Depends(get_sequence_allocator),
    actor: Identity = Depends(require_operation(Operation.PURCHASE_LOTS_CREATE)),
):
    items = [item.model_dump() for item in req.items]
    data = to_record(req, exclude={"items"})
    data.update(total_amount=purchase_lot_total(items), created_by=actor.id)

    lot_number, lot_id = allocator.allocate(
        lot_format(allocator.current_year()),
        lambda code: repo.create_purchase_lot(code, data, items),
    )
    logger.info("Lote de compra creado", extra={"lot_id": lot_id, "lot_number": lot_number})
    return created("Lote de compra creado con éxito.", lotId=lot_id, lotNumber=lot_number)


# =============================================================================
# Punto de venta
# =============================================================================


@router.get("/sales")
def list_sales(
    search: str = Query(""),
    status: str = Query(""),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    repo: PostgresEquipmentRepository = Depends(get_equipment_repository),
    _actor: Identity = Depends(require_operation(Operation.SALES_LIST)),
):
    return repo.list_sales(
        search=search, status=status, date_from=date_from, date_to=date_to
    )


@router.post("/sales", status_code=201)
def create_sale(
    req: CreateSaleReq,
    repo: PostgresEquipmentRepository = Depends(get_equipment_repository),
    allocator: SequenceAllocator = Depends(get_sequence_allocator),
    actor: Identity = Depends(require_operation(Operation.SALES_CREATE)),
):
    items = [item.model_dump() for item in req.items]
    data = to_record(req, exclude={"items"})
    data["created_by"] = actor.id

    sale_number, sale_id = allocator.allocate(
        sale_format(allocator.current_year()),
        lambda code: repo.create_sale(code, data, items),
    )
    logger.info(
        "Venta registrada",
        extra={"sale_id": sale_id, "sale_number": sale_number, "items": len(items)},
    )
    return created("Venta registrada con éxito.", saleId=sale_id, saleNumber=sale_number)


# =============================================================================
# Estadísticas
# =============================================================================


@router.get("/stats/overview")
def equipment_stats(
    repo: PostgresEquipmentRepository = Depends(get_equipment_repository),
    _actor: Identity = Depends(require_operation(Operation.EQUIPMENT_STATS)),
):
    return repo.stats()
