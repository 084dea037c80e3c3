"""
============================================================
TARJETA CRC (Class / Responsibilities / Collaborators)
============================================================
Class: 001_foundation (Alembic Migration)

Responsibilities:
  - Crear el esquema completo desde cero (migración fundacional).
  - Definir tablas, constraints e índices del backend de gestión.
  - Declarar los UNIQUE de los códigos generados (invoice_number,
    product_code, lot_number, sale_number): son la última barrera frente
    a dos asignaciones concurrentes del mismo código.

Collaborators:
  - PostgreSQL 14+
  - Alembic (framework de migraciones)
  - Capa de repositorios (usa este esquema como contrato)

Policy:
  - Esta es una migración BASELINE. Downgrade NO soportado.
  - Toda evolución futura del esquema debe hacerse con migraciones aditivas (002+).
  - Convención de nombres (constraints / indexes):
      pk_<tabla>                         - Primary keys
      uq_<tabla>_<col>                   - Unique constraints
      ix_<tabla>_<col>                   - Indexes
      fk_<tabla>_<col>__<ref_tabla>      - Foreign keys
============================================================
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_foundation"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_TIMESTAMPED = (
    "users",
    "clients",
    "projects",
    "project_tasks",
    "invoices",
    "subscriptions",
    "suppliers",
    "products",
    "purchase_lots",
    "sales",
)


def _pk() -> sa.Column:
    return sa.Column("id", sa.Integer, primary_key=True, autoincrement=True)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("now()"),
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("now()"),
    )


def _fk(column: str, target: str, *, nullable: bool = True, ondelete: str | None = None):
    return sa.Column(
        column,
        sa.Integer,
        sa.ForeignKey(f"{target}.id", ondelete=ondelete),
        nullable=nullable,
    )


def _money(name: str, *, nullable: bool = False, default: str | None = "0") -> sa.Column:
    return sa.Column(
        name,
        sa.Numeric(12, 2),
        nullable=nullable,
        server_default=sa.text(default) if default is not None else None,
    )


def upgrade() -> None:
    """
    Crea el esquema fundacional completo.

    Orden:
      1) Identity (users)
      2) Clientes y proyectos (tareas, horas)
      3) Facturación (facturas, líneas, pagos) y suscripciones
      4) Inventario (categorías, proveedores, productos, compras, ventas, stock)
      5) Trigger updated_at
    """

    # =========================================================
    # 1) IDENTITY
    # =========================================================
    op.create_table(
        "users",
        _pk(),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.Text, nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column(
            "role", sa.String(20), nullable=False, server_default=sa.text("'employee'")
        ),
        sa.Column("department", sa.String(100)),
        sa.Column("position", sa.String(100)),
        sa.Column("phone", sa.String(50)),
        sa.Column("address", sa.Text),
        sa.Column("hire_date", sa.Date),
        sa.Column("salary", sa.Numeric(12, 2)),
        sa.Column("avatar", sa.String(500)),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint(
            "role IN ('admin', 'manager', 'employee', 'client')", name="ck_users_role"
        ),
    )

    # =========================================================
    # 2) CLIENTES / PROYECTOS
    # =========================================================
    op.create_table(
        "clients",
        _pk(),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("contact_person", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("phone", sa.String(50)),
        sa.Column("address", sa.Text),
        sa.Column("city", sa.String(100)),
        sa.Column("country", sa.String(100)),
        sa.Column("tax_number", sa.String(100)),
        sa.Column("website", sa.String(255)),
        sa.Column("notes", sa.Text),
        sa.Column(
            "status", sa.String(20), nullable=False, server_default=sa.text("'active'")
        ),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("email", name="uq_clients_email"),
        sa.CheckConstraint(
            "status IN ('active', 'inactive', 'suspended')", name="ck_clients_status"
        ),
    )

    op.create_table(
        "projects",
        _pk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text),
        _fk("client_id", "clients"),
        _fk("manager_id", "users"),
        sa.Column("start_date", sa.Date),
        sa.Column("end_date", sa.Date),
        sa.Column("budget", sa.Numeric(12, 2)),
        sa.Column(
            "status", sa.String(20), nullable=False, server_default=sa.text("'planning'")
        ),
        sa.Column(
            "priority", sa.String(20), nullable=False, server_default=sa.text("'medium'")
        ),
        sa.Column("progress", sa.Integer, nullable=False, server_default=sa.text("0")),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint("progress BETWEEN 0 AND 100", name="ck_projects_progress"),
    )
    op.create_index("ix_projects_client_id", "projects", ["client_id"])
    op.create_index("ix_projects_manager_id", "projects", ["manager_id"])

    op.create_table(
        "project_tasks",
        _pk(),
        _fk("project_id", "projects", nullable=False, ondelete="CASCADE"),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text),
        _fk("assigned_to", "users"),
        sa.Column(
            "status", sa.String(20), nullable=False, server_default=sa.text("'todo'")
        ),
        sa.Column(
            "priority", sa.String(20), nullable=False, server_default=sa.text("'medium'")
        ),
        sa.Column("due_date", sa.Date),
        sa.Column("estimated_hours", sa.Numeric(8, 2)),
        sa.Column("actual_hours", sa.Numeric(8, 2)),
        _created_at(),
        _updated_at(),
    )
    op.create_index("ix_project_tasks_project_id", "project_tasks", ["project_id"])
    op.create_index("ix_project_tasks_assigned_to", "project_tasks", ["assigned_to"])

    op.create_table(
        "time_entries",
        _pk(),
        _fk("user_id", "users", nullable=False),
        _fk("project_id", "projects", ondelete="CASCADE"),
        _fk("task_id", "project_tasks", ondelete="SET NULL"),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("hours_worked", sa.Numeric(6, 2), nullable=False),
        sa.Column("description", sa.Text),
        _created_at(),
    )
    op.create_index("ix_time_entries_user_id", "time_entries", ["user_id"])
    op.create_index("ix_time_entries_project_id", "time_entries", ["project_id"])

    # =========================================================
    # 3) FACTURACIÓN / SUSCRIPCIONES
    # =========================================================
    op.create_table(
        "subscriptions",
        _pk(),
        _fk("client_id", "clients", nullable=False),
        sa.Column("plan_name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "billing_cycle",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'monthly'"),
        ),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date),
        sa.Column(
            "status", sa.String(20), nullable=False, server_default=sa.text("'active'")
        ),
        sa.Column("auto_renew", sa.Boolean, nullable=False, server_default=sa.true()),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint(
            "billing_cycle IN ('monthly', 'quarterly', 'yearly')",
            name="ck_subscriptions_billing_cycle",
        ),
    )
    op.create_index("ix_subscriptions_client_id", "subscriptions", ["client_id"])

    op.create_table(
        "invoices",
        _pk(),
        _fk("client_id", "clients", nullable=False),
        _fk("project_id", "projects"),
        _fk("subscription_id", "subscriptions"),
        sa.Column("invoice_number", sa.String(50), nullable=False),
        sa.Column("issue_date", sa.Date, nullable=False),
        sa.Column("due_date", sa.Date, nullable=False),
        _money("subtotal"),
        sa.Column("tax_rate", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0")),
        _money("tax_amount"),
        _money("total_amount"),
        sa.Column(
            "status", sa.String(20), nullable=False, server_default=sa.text("'draft'")
        ),
        sa.Column("payment_method", sa.String(50)),
        sa.Column("payment_date", sa.Date),
        sa.Column("notes", sa.Text),
        _fk("created_by", "users"),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("invoice_number", name="uq_invoices_invoice_number"),
    )
    op.create_index("ix_invoices_client_id", "invoices", ["client_id"])
    op.create_index("ix_invoices_created_by", "invoices", ["created_by"])

    op.create_table(
        "invoice_items",
        _pk(),
        _fk("invoice_id", "invoices", nullable=False, ondelete="CASCADE"),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("quantity", sa.Numeric(10, 2), nullable=False, server_default=sa.text("1")),
        _money("unit_price"),
        _money("total_price"),
    )
    op.create_index("ix_invoice_items_invoice_id", "invoice_items", ["invoice_id"])

    op.create_table(
        "payments",
        _pk(),
        _fk("invoice_id", "invoices", nullable=False, ondelete="CASCADE"),
        _money("amount", default=None),
        sa.Column("payment_date", sa.Date, nullable=False),
        sa.Column("payment_method", sa.String(50)),
        sa.Column("reference_number", sa.String(100)),
        sa.Column("notes", sa.Text),
        _created_at(),
    )
    op.create_index("ix_payments_invoice_id", "payments", ["invoice_id"])

    # =========================================================
    # 4) INVENTARIO / PUNTO DE VENTA
    # =========================================================
    op.create_table(
        "product_categories",
        _pk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text),
        _fk("parent_id", "product_categories"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        _created_at(),
    )

    op.create_table(
        "suppliers",
        _pk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("contact_person", sa.String(255)),
        sa.Column("email", sa.String(320)),
        sa.Column("phone", sa.String(50)),
        sa.Column("address", sa.Text),
        sa.Column("city", sa.String(100)),
        sa.Column("country", sa.String(100)),
        sa.Column("tax_number", sa.String(100)),
        sa.Column("website", sa.String(255)),
        sa.Column("payment_terms", sa.String(255)),
        sa.Column(
            "delivery_time_days", sa.Integer, nullable=False, server_default=sa.text("7")
        ),
        sa.Column("rating", sa.Numeric(3, 2)),
        sa.Column(
            "status", sa.String(20), nullable=False, server_default=sa.text("'active'")
        ),
        sa.Column("notes", sa.Text),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        "supplier_ratings",
        _pk(),
        _fk("supplier_id", "suppliers", nullable=False, ondelete="CASCADE"),
        _fk("user_id", "users", nullable=False),
        sa.Column("rating", sa.Integer, nullable=False),
        sa.Column("criteria", sa.String(20), nullable=False),
        sa.Column("comment", sa.Text),
        _created_at(),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_supplier_ratings_rating"),
    )
    op.create_index("ix_supplier_ratings_supplier_id", "supplier_ratings", ["supplier_id"])

    op.create_table(
        "products",
        _pk(),
        sa.Column("product_code", sa.String(50), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text),
        _fk("category_id", "product_categories"),
        sa.Column("brand", sa.String(100)),
        sa.Column("model", sa.String(100)),
        sa.Column("sku", sa.String(100)),
        sa.Column("barcode", sa.String(100)),
        sa.Column(
            "unit_type", sa.String(20), nullable=False, server_default=sa.text("'piece'")
        ),
        _money("cost_price"),
        _money("selling_price"),
        sa.Column("current_stock", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column(
            "min_stock_level", sa.Integer, nullable=False, server_default=sa.text("0")
        ),
        sa.Column(
            "max_stock_level", sa.Integer, nullable=False, server_default=sa.text("1000")
        ),
        sa.Column("weight", sa.Numeric(10, 3)),
        sa.Column("dimensions", sa.String(100)),
        sa.Column("color", sa.String(50)),
        sa.Column("size", sa.String(50)),
        _fk("supplier_id", "suppliers"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("product_code", name="uq_products_product_code"),
    )
    op.create_index("ix_products_category_id", "products", ["category_id"])

    op.create_table(
        "purchase_lots",
        _pk(),
        sa.Column("lot_number", sa.String(50), nullable=False),
        _fk("supplier_id", "suppliers", nullable=False),
        sa.Column("purchase_date", sa.Date, nullable=False),
        sa.Column("expected_delivery_date", sa.Date),
        sa.Column("actual_delivery_date", sa.Date),
        _money("total_amount"),
        sa.Column(
            "status", sa.String(20), nullable=False, server_default=sa.text("'pending'")
        ),
        sa.Column("notes", sa.Text),
        _fk("created_by", "users"),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("lot_number", name="uq_purchase_lots_lot_number"),
    )

    op.create_table(
        "purchase_lot_items",
        _pk(),
        _fk("lot_id", "purchase_lots", nullable=False, ondelete="CASCADE"),
        _fk("product_id", "products", nullable=False),
        sa.Column("quantity_ordered", sa.Integer, nullable=False),
        sa.Column(
            "quantity_received", sa.Integer, nullable=False, server_default=sa.text("0")
        ),
        _money("unit_cost"),
        _money("total_cost"),
        sa.Column("expiry_date", sa.Date),
        sa.Column("batch_number", sa.String(100)),
        sa.Column("notes", sa.Text),
    )
    op.create_index("ix_purchase_lot_items_lot_id", "purchase_lot_items", ["lot_id"])

    op.create_table(
        "sales",
        _pk(),
        sa.Column("sale_number", sa.String(50), nullable=False),
        sa.Column("customer_name", sa.String(255)),
        sa.Column("customer_email", sa.String(320)),
        sa.Column("customer_phone", sa.String(50)),
        _money("subtotal"),
        sa.Column("tax_rate", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0")),
        _money("tax_amount"),
        _money("discount_amount"),
        _money("total_amount"),
        sa.Column("payment_method", sa.String(20), nullable=False),
        sa.Column("payment_reference", sa.String(100)),
        sa.Column(
            "status", sa.String(20), nullable=False, server_default=sa.text("'completed'")
        ),
        sa.Column("notes", sa.Text),
        _fk("created_by", "users"),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("sale_number", name="uq_sales_sale_number"),
    )

    op.create_table(
        "sale_items",
        _pk(),
        _fk("sale_id", "sales", nullable=False, ondelete="CASCADE"),
        _fk("product_id", "products", nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False),
        _money("unit_price"),
        sa.Column(
            "discount_percent", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0")
        ),
        _money("discount_amount"),
        _money("total_price"),
    )
    op.create_index("ix_sale_items_sale_id", "sale_items", ["sale_id"])
    op.create_index("ix_sale_items_product_id", "sale_items", ["product_id"])

    op.create_table(
        "stock_movements",
        _pk(),
        _fk("product_id", "products", nullable=False),
        sa.Column("movement_type", sa.String(10), nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False),
        _money("unit_cost", nullable=True, default=None),
        _money("total_cost", nullable=True, default=None),
        sa.Column("reference_type", sa.String(20)),
        sa.Column("reference_id", sa.Integer),
        sa.Column("notes", sa.Text),
        _fk("created_by", "users"),
        _created_at(),
        sa.CheckConstraint(
            "movement_type IN ('in', 'out', 'adjustment')",
            name="ck_stock_movements_movement_type",
        ),
    )
    op.create_index("ix_stock_movements_product_id", "stock_movements", ["product_id"])

    # =========================================================
    # 5) updated_at automático
    # =========================================================
    op.execute(
        """
        CREATE OR REPLACE FUNCTION set_updated_at() RETURNS trigger AS $$
        BEGIN
            NEW.updated_at = now();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql
        """
    )
    for table in _TIMESTAMPED:
        op.execute(
            f"CREATE TRIGGER trg_{table}_updated_at BEFORE UPDATE ON {table} "
            "FOR EACH ROW EXECUTE FUNCTION set_updated_at()"
        )


def downgrade() -> None:
    raise NotImplementedError("Baseline migration: downgrade not supported")
