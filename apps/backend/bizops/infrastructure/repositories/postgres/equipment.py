"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/equipment.py
============================================================
Class: PostgresEquipmentRepository

Responsibilities:
  - Inventario: categorías, proveedores (y sus calificaciones), productos.
  - Compras: lotes de compra con sus líneas.
  - Punto de venta: venta + líneas + descuento de stock + movimiento `out`
    por línea, todo-o-nada.
  - KPIs de inventario.

Collaborators:
  - base.PostgresRepository
  - application.sequence_allocator (provee los códigos que se insertan acá)

Notes:
  - Los códigos (product_code, lot_number, sale_number) llegan ya asignados.
    Si otro request ganó la carrera, el UNIQUE del esquema produce
    ConflictError y el allocator decide si reintenta.
============================================================
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from .base import Filters, PostgresRepository, Row


class PostgresEquipmentRepository(PostgresRepository):
    # =========================================================
    # Categorías
    # =========================================================
    def list_categories(self) -> list[Row]:
        return self._fetchall(
            """
            SELECT c.*, COUNT(p.id) AS product_count, parent.name AS parent_name
            FROM product_categories c
            LEFT JOIN products p ON c.id = p.category_id
            LEFT JOIN product_categories parent ON c.parent_id = parent.id
            WHERE c.is_active = TRUE
            GROUP BY c.id, parent.name
            ORDER BY c.name
            """,
            context_msg="PostgresEquipmentRepository: list_categories failed",
        )

    def create_category(self, data: Mapping[str, Any]) -> int:
        return self._insert_returning_id(
            """
            INSERT INTO product_categories (name, description, parent_id)
            VALUES (%s, %s, %s)
            RETURNING id
            """,
            (data["name"], data.get("description"), data.get("parent_id")),
            context_msg="PostgresEquipmentRepository: create_category failed",
        )

    # =========================================================
    # Proveedores
    # =========================================================
    def list_suppliers(self, *, search: str = "", status: str = "") -> list[Row]:
        filters = (
            Filters()
            .search(search, "s.name", "s.contact_person", "s.email")
            .add_if(status, "s.status = %s")
        )
        return self._fetchall(
            f"""
            SELECT s.*,
                   COUNT(DISTINCT p.id) AS product_count,
                   COUNT(DISTINCT pl.id) AS purchase_count,
                   AVG(sr.rating) AS avg_rating
            FROM suppliers s
            LEFT JOIN products p ON s.id = p.supplier_id
            LEFT JOIN purchase_lots pl ON s.id = pl.supplier_id
            LEFT JOIN supplier_ratings sr ON s.id = sr.supplier_id
            WHERE {filters.sql}
            GROUP BY s.id
            ORDER BY s.name
            """,
            filters.params,
            context_msg="PostgresEquipmentRepository: list_suppliers failed",
        )

    def supplier_exists(self, supplier_id: int) -> bool:
        return self._exists(
            "SELECT 1 FROM suppliers WHERE id = %s",
            (supplier_id,),
            context_msg="PostgresEquipmentRepository: supplier_exists failed",
        )

    def create_supplier(self, data: Mapping[str, Any]) -> int:
        return self._insert_returning_id(
            """
            INSERT INTO suppliers (name, contact_person, email, phone, address, city,
                                   country, tax_number, website, payment_terms,
                                   delivery_time_days, notes)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING id
            """,
            (
                data["name"],
                data.get("contact_person"),
                data.get("email"),
                data.get("phone"),
                data.get("address"),
                data.get("city"),
                data.get("country"),
                data.get("tax_number"),
                data.get("website"),
                data.get("payment_terms"),
                data.get("delivery_time_days") or 7,
                data.get("notes"),
            ),
            context_msg="PostgresEquipmentRepository: create_supplier failed",
        )

    def rate_supplier(
        self,
        supplier_id: int,
        *,
        user_id: int,
        rating: int,
        criteria: str,
        comment: str | None = None,
    ) -> None:
        """Registra la nota y recalcula suppliers.rating con las notas 'overall'."""
        with self._transaction(
            context_msg="PostgresEquipmentRepository: rate_supplier failed",
            extra={"supplier_id": supplier_id, "criteria": criteria},
        ) as cur:
            cur.execute(
                """
                INSERT INTO supplier_ratings (supplier_id, user_id, rating, comment, criteria)
                VALUES (%s, %s, %s, %s, %s)
                """,
                (supplier_id, user_id, rating, comment, criteria),
            )
            cur.execute(
                """
                SELECT AVG(rating) AS avg_rating
                FROM supplier_ratings
                WHERE supplier_id = %s AND criteria = 'overall'
                """,
                (supplier_id,),
            )
            avg_rating = cur.fetchone()["avg_rating"]
            if avg_rating is not None:
                cur.execute(
                    "UPDATE suppliers SET rating = %s WHERE id = %s",
                    (avg_rating, supplier_id),
                )

    # =========================================================
    # Productos
    # =========================================================
    def list_products(
        self,
        *,
        search: str = "",
        category_id: int | None = None,
        supplier_id: int | None = None,
        low_stock: bool = False,
    ) -> list[Row]:
        filters = (
            Filters()
            .search(search, "p.name", "p.product_code", "p.sku", "p.barcode")
            .add_if(category_id, "p.category_id = %s")
            .add_if(supplier_id, "p.supplier_id = %s")
        )
        if low_stock:
            filters.add("p.current_stock <= p.min_stock_level")
        return self._fetchall(
            f"""
            SELECT p.*, c.name AS category_name, s.name AS supplier_name,
                   CASE
                       WHEN p.current_stock <= p.min_stock_level THEN 'low'
                       WHEN p.current_stock >= p.max_stock_level THEN 'high'
                       ELSE 'normal'
                   END AS stock_status
            FROM products p
            LEFT JOIN product_categories c ON p.category_id = c.id
            LEFT JOIN suppliers s ON p.supplier_id = s.id
            WHERE {filters.sql}
            ORDER BY p.name
            """,
            filters.params,
            context_msg="PostgresEquipmentRepository: list_products failed",
        )

    def create_product(self, product_code: str, data: Mapping[str, Any]) -> int:
        return self._insert_returning_id(
            """
            INSERT INTO products (product_code, name, description, category_id, brand,
                                  model, sku, barcode, unit_type, cost_price,
                                  selling_price, min_stock_level, max_stock_level,
                                  weight, dimensions, color, size, supplier_id)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s,
                    %s, %s)
            RETURNING id
            """,
            (
                product_code,
                data["name"],
                data.get("description"),
                data.get("category_id"),
                data.get("brand"),
                data.get("model"),
                data.get("sku"),
                data.get("barcode"),
                data.get("unit_type") or "piece",
                data["cost_price"],
                data["selling_price"],
                data.get("min_stock_level") or 0,
                data.get("max_stock_level") or 1000,
                data.get("weight"),
                data.get("dimensions"),
                data.get("color"),
                data.get("size"),
                data.get("supplier_id"),
            ),
            context_msg="PostgresEquipmentRepository: create_product failed",
            extra={"product_code": product_code},
            conflict_msg="El código de producto ya existe.",
        )

    # =========================================================
    # Lotes de compra
    # =========================================================
    def list_purchase_lots(
        self, *, search: str = "", status: str = "", supplier_id: int | None = None
    ) -> list[Row]:
        filters = (
            Filters()
            .search(search, "pl.lot_number", "s.name")
            .add_if(status, "pl.status = %s")
            .add_if(supplier_id, "pl.supplier_id = %s")
        )
        return self._fetchall(
            f"""
            SELECT pl.*, s.name AS supplier_name,
                   COUNT(pli.id) AS item_count,
                   SUM(pli.quantity_ordered) AS total_quantity_ordered,
                   SUM(pli.quantity_received) AS total_quantity_received
            FROM purchase_lots pl
            JOIN suppliers s ON pl.supplier_id = s.id
            LEFT JOIN purchase_lot_items pli ON pl.id = pli.lot_id
            WHERE {filters.sql}
            GROUP BY pl.id, s.name
            ORDER BY pl.created_at DESC
            """,
            filters.params,
            context_msg="PostgresEquipmentRepository: list_purchase_lots failed",
        )

    def create_purchase_lot(
        self, lot_number: str, data: Mapping[str, Any], items: list[Mapping[str, Any]]
    ) -> int:
        """Lote + líneas en una transacción. total_cost de cada línea = qty × costo."""
        with self._transaction(
            context_msg="PostgresEquipmentRepository: create_purchase_lot failed",
            extra={"lot_number": lot_number, "items": len(items)},
            conflict_msg="El número de lote ya existe.",
        ) as cur:
            cur.execute(
                """
                INSERT INTO purchase_lots (lot_number, supplier_id, purchase_date,
                                           expected_delivery_date, total_amount,
                                           notes, created_by)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                RETURNING id
                """,
                (
                    lot_number,
                    data["supplier_id"],
                    data["purchase_date"],
                    data.get("expected_delivery_date"),
                    data["total_amount"],
                    data.get("notes"),
                    data["created_by"],
                ),
            )
            lot_id = int(cur.fetchone()["id"])
            for item in items:
                cur.execute(
                    """
                    INSERT INTO purchase_lot_items (lot_id, product_id, quantity_ordered,
                                                    unit_cost, total_cost, expiry_date,
                                                    batch_number, notes)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    """,
                    (
                        lot_id,
                        item["product_id"],
                        item["quantity_ordered"],
                        item["unit_cost"],
                        item["quantity_ordered"] * item["unit_cost"],
                        item.get("expiry_date"),
                        item.get("batch_number"),
                        item.get("notes"),
                    ),
                )
        return lot_id

    # =========================================================
    # Ventas
    # =========================================================
    def list_sales(
        self,
        *,
        search: str = "",
        status: str = "",
        date_from: Any = None,
        date_to: Any = None,
    ) -> list[Row]:
        filters = (
            Filters()
            .search(search, "s.sale_number", "s.customer_name", "s.customer_email")
            .add_if(status, "s.status = %s")
            .add_if(date_from, "s.created_at::date >= %s")
            .add_if(date_to, "s.created_at::date <= %s")
        )
        return self._fetchall(
            f"""
            SELECT s.*,
                   u.first_name AS created_by_first_name,
                   u.last_name AS created_by_last_name,
                   COUNT(si.id) AS item_count
            FROM sales s
            LEFT JOIN users u ON s.created_by = u.id
            LEFT JOIN sale_items si ON s.id = si.sale_id
            WHERE {filters.sql}
            GROUP BY s.id, u.first_name, u.last_name
            ORDER BY s.created_at DESC
            """,
            filters.params,
            context_msg="PostgresEquipmentRepository: list_sales failed",
        )

    def create_sale(
        self, sale_number: str, data: Mapping[str, Any], items: list[Mapping[str, Any]]
    ) -> int:
        """
        Venta + líneas + stock + movimientos en una única transacción.

        Cada línea descuenta `quantity` de products.current_stock y registra un
        stock_movements ('out', referencia 'sale').
        """
        created_by = data["created_by"]
        with self._transaction(
            context_msg="PostgresEquipmentRepository: create_sale failed",
            extra={"sale_number": sale_number, "items": len(items)},
            conflict_msg="El número de venta ya existe.",
        ) as cur:
            cur.execute(
                """
                INSERT INTO sales (sale_number, customer_name, customer_email,
                                   customer_phone, subtotal, tax_rate, tax_amount,
                                   discount_amount, total_amount, payment_method,
                                   payment_reference, notes, created_by)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING id
                """,
                (
                    sale_number,
                    data.get("customer_name"),
                    data.get("customer_email"),
                    data.get("customer_phone"),
                    data["subtotal"],
                    data.get("tax_rate") or 0,
                    data.get("tax_amount") or 0,
                    data.get("discount_amount") or 0,
                    data["total_amount"],
                    data["payment_method"],
                    data.get("payment_reference"),
                    data.get("notes"),
                    created_by,
                ),
            )
            sale_id = int(cur.fetchone()["id"])
            for item in items:
                cur.execute(
                    """
                    INSERT INTO sale_items (sale_id, product_id, quantity, unit_price,
                                            discount_percent, discount_amount, total_price)
                    VALUES (%s, %s, %s, %s, %s, %s, %s)
                    """,
                    (
                        sale_id,
                        item["product_id"],
                        item["quantity"],
                        item["unit_price"],
                        item.get("discount_percent") or 0,
                        item.get("discount_amount") or 0,
                        item["total_price"],
                    ),
                )
                cur.execute(
                    "UPDATE products SET current_stock = current_stock - %s WHERE id = %s",
                    (item["quantity"], item["product_id"]),
                )
                cur.execute(
                    """
                    INSERT INTO stock_movements (product_id, movement_type, quantity,
                                                 unit_cost, total_cost, reference_type,
                                                 reference_id, created_by)
                    VALUES (%s, 'out', %s, %s, %s, 'sale', %s, %s)
                    """,
                    (
                        item["product_id"],
                        item["quantity"],
                        item["unit_price"],
                        item["total_price"],
                        sale_id,
                        created_by,
                    ),
                )
        return sale_id

    # =========================================================
    # Estadísticas
    # =========================================================
    _SQL_OVERVIEW = """
        SELECT
            (SELECT COUNT(*) FROM products WHERE is_active) AS total_products,
            (SELECT COUNT(*) FROM products
              WHERE current_stock <= min_stock_level AND is_active) AS low_stock_products,
            (SELECT COUNT(*) FROM suppliers WHERE status = 'active') AS active_suppliers,
            (SELECT COUNT(*) FROM purchase_lots WHERE status = 'pending') AS pending_orders,
            (SELECT SUM(current_stock * cost_price) FROM products
              WHERE is_active) AS total_inventory_value,
            (SELECT SUM(total_amount) FROM sales
              WHERE status = 'completed' AND created_at::date = CURRENT_DATE) AS today_sales,
            (SELECT SUM(total_amount) FROM sales
              WHERE status = 'completed'
                AND date_trunc('month', created_at) = date_trunc('month', CURRENT_DATE)
            ) AS month_sales
    """

    _SQL_TOP_PRODUCTS = """
        SELECT p.name, p.product_code, SUM(si.quantity) AS total_sold,
               SUM(si.total_price) AS total_revenue
        FROM products p
        JOIN sale_items si ON p.id = si.product_id
        JOIN sales s ON si.sale_id = s.id
        WHERE s.status = 'completed' AND s.created_at >= NOW() - INTERVAL '30 days'
        GROUP BY p.id, p.name, p.product_code
        ORDER BY total_sold DESC
        LIMIT 10
    """

    _SQL_LOW_STOCK = """
        SELECT name, product_code, current_stock, min_stock_level
        FROM products
        WHERE current_stock <= min_stock_level AND is_active
        ORDER BY (current_stock - min_stock_level) ASC
        LIMIT 10
    """

    def stats(self) -> dict[str, Optional[Any]]:
        ctx = {"context_msg": "PostgresEquipmentRepository: stats failed"}
        return {
            "overview": self._fetchone(self._SQL_OVERVIEW, **ctx),
            "topProducts": self._fetchall(self._SQL_TOP_PRODUCTS, **ctx),
            "lowStockProducts": self._fetchall(self._SQL_LOW_STOCK, **ctx),
        }
