"""inventory engine baseline

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261018_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _table_exists(inspector: sa.Inspector, table_name: str) -> bool:
    return table_name in inspector.get_table_names()


def _index_exists(inspector: sa.Inspector, table_name: str, index_name: str) -> bool:
    return index_name in {index["name"] for index in inspector.get_indexes(table_name)}


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def _create_index(
    inspector: sa.Inspector,
    name: str,
    table: str,
    columns: list[str],
    unique: bool = False,
    **kw,
) -> None:
    if not _index_exists(inspector, table, name):
        op.create_index(name, table, columns, unique=unique, **kw)


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not _table_exists(inspector, "warehouses"):
        op.create_table(
            "warehouses",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("code", sa.String(length=30), nullable=False),
            sa.Column("name", sa.String(length=120), nullable=False),
            sa.Column("is_active", sa.Boolean(), server_default="1", nullable=False),
            _created_at(),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists(inspector, "locations"):
        op.create_table(
            "locations",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("warehouse_id", sa.String(length=36), nullable=False),
            sa.Column("code", sa.String(length=30), nullable=False),
            sa.Column("qr_code", sa.String(length=64), nullable=False),
            sa.Column("name", sa.String(length=120), nullable=False),
            sa.Column("is_default", sa.Boolean(), server_default="0", nullable=False),
            sa.Column("is_active", sa.Boolean(), server_default="1", nullable=False),
            _created_at(),
            sa.ForeignKeyConstraint(["warehouse_id"], ["warehouses.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("warehouse_id", "code", name="uq_locations_warehouse_code"),
        )

    if not _table_exists(inspector, "products"):
        op.create_table(
            "products",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("sku", sa.String(length=100), nullable=False),
            sa.Column("barcode", sa.String(length=100), nullable=True),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("base_unit", sa.String(length=20), server_default="EACH", nullable=False),
            sa.Column("units_per_inner_pack", sa.Integer(), server_default="1", nullable=False),
            sa.Column("inner_packs_per_outer_pack", sa.Integer(), server_default="1", nullable=False),
            sa.Column("is_active", sa.Boolean(), server_default="1", nullable=False),
            _created_at(),
            sa.CheckConstraint("units_per_inner_pack >= 1", name="ck_products_units_per_inner_pack"),
            sa.CheckConstraint("inner_packs_per_outer_pack >= 1", name="ck_products_inner_packs_per_outer_pack"),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists(inspector, "serial_numbers"):
        op.create_table(
            "serial_numbers",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("product_id", sa.String(length=36), nullable=False),
            sa.Column("sku", sa.String(length=100), nullable=False),
            sa.Column("serial_no", sa.String(length=20), nullable=False),
            sa.Column("full_barcode", sa.String(length=130), nullable=False),
            sa.Column("status", sa.String(length=20), server_default="AVAILABLE", nullable=False),
            _created_at(),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists(inspector, "operation_modes"):
        op.create_table(
            "operation_modes",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("mode_code", sa.String(length=50), nullable=False),
            sa.Column("mode_type", sa.String(length=30), nullable=False),
            sa.Column("name", sa.String(length=120), nullable=False),
            sa.Column("is_active", sa.Boolean(), server_default="1", nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists(inspector, "inventory_rows"):
        op.create_table(
            "inventory_rows",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("product_id", sa.String(length=36), nullable=False),
            sa.Column("product_sku", sa.String(length=100), nullable=False),
            sa.Column("warehouse_id", sa.String(length=36), nullable=False),
            sa.Column("location_id", sa.String(length=36), nullable=True),
            sa.Column("quantity", sa.Integer(), server_default="0", nullable=False),
            _created_at(),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.CheckConstraint("quantity >= 0", name="ck_inventory_rows_quantity_non_negative"),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
            sa.ForeignKeyConstraint(["warehouse_id"], ["warehouses.id"]),
            sa.ForeignKeyConstraint(["location_id"], ["locations.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("product_id", "warehouse_id", "location_id", name="uq_inventory_rows_key"),
        )

    if not _table_exists(inspector, "containers"):
        op.create_table(
            "containers",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("barcode", sa.String(length=30), nullable=False),
            sa.Column("container_type", sa.String(length=20), nullable=False),
            sa.Column("warehouse_id", sa.String(length=36), nullable=False),
            sa.Column("status", sa.String(length=20), server_default="ACTIVE", nullable=False),
            sa.Column("created_by", sa.String(length=100), nullable=False),
            sa.Column("notes", sa.String(length=255), nullable=True),
            _created_at(),
            sa.Column("opened_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("opened_by", sa.String(length=100), nullable=True),
            sa.ForeignKeyConstraint(["warehouse_id"], ["warehouses.id"]),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists(inspector, "container_contents"):
        op.create_table(
            "container_contents",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("container_id", sa.String(length=36), nullable=False),
            sa.Column("position", sa.Integer(), nullable=False),
            sa.Column("product_id", sa.String(length=36), nullable=False),
            sa.Column("product_sku", sa.String(length=100), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(["container_id"], ["containers.id"]),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists(inspector, "barcode_sequences"):
        op.create_table(
            "barcode_sequences",
            sa.Column("prefix", sa.String(length=40), nullable=False),
            sa.Column("last_value", sa.Integer(), server_default="0", nullable=False),
            sa.PrimaryKeyConstraint("prefix"),
        )

    if not _table_exists(inspector, "inventory_transactions"):
        op.create_table(
            "inventory_transactions",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("transaction_type", sa.String(length=20), nullable=False),
            sa.Column("direction", sa.Integer(), nullable=False),
            sa.Column("warehouse_id", sa.String(length=36), nullable=False),
            sa.Column("location_id", sa.String(length=36), nullable=True),
            sa.Column("actor", sa.String(length=100), nullable=False),
            sa.Column("reference_no", sa.String(length=100), nullable=True),
            sa.Column("notes", sa.String(length=255), nullable=True),
            sa.Column("container_id", sa.String(length=36), nullable=True),
            sa.Column("reverses_transaction_id", sa.String(length=36), nullable=True),
            _created_at(),
            sa.ForeignKeyConstraint(["warehouse_id"], ["warehouses.id"]),
            sa.ForeignKeyConstraint(["location_id"], ["locations.id"]),
            sa.ForeignKeyConstraint(["container_id"], ["containers.id"]),
            sa.ForeignKeyConstraint(["reverses_transaction_id"], ["inventory_transactions.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("reverses_transaction_id"),
        )

    if not _table_exists(inspector, "inventory_transaction_lines"):
        op.create_table(
            "inventory_transaction_lines",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("transaction_id", sa.String(length=36), nullable=False),
            sa.Column("line_no", sa.Integer(), nullable=False),
            sa.Column("product_id", sa.String(length=36), nullable=False),
            sa.Column("product_sku", sa.String(length=100), nullable=False),
            sa.Column("requested_code", sa.String(length=130), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.Column("unit", sa.String(length=20), nullable=False),
            sa.Column("base_quantity", sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(["transaction_id"], ["inventory_transactions.id"]),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists(inspector, "count_reports"):
        op.create_table(
            "count_reports",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("report_number", sa.String(length=40), nullable=True),
            sa.Column("warehouse_id", sa.String(length=36), nullable=False),
            sa.Column("status", sa.String(length=20), server_default="OPEN", nullable=False),
            sa.Column("total_locations", sa.Integer(), server_default="0", nullable=False),
            sa.Column("total_expected", sa.Integer(), server_default="0", nullable=False),
            sa.Column("total_counted", sa.Integer(), server_default="0", nullable=False),
            sa.Column("total_variance", sa.Integer(), server_default="0", nullable=False),
            sa.Column("variance_percentage", sa.Numeric(9, 2), server_default="0", nullable=False),
            sa.Column("created_by", sa.String(length=100), nullable=False),
            sa.Column("notes", sa.String(length=255), nullable=True),
            _created_at(),
            sa.Column("finalized_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(["warehouse_id"], ["warehouses.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("report_number"),
        )

    if not _table_exists(inspector, "count_location_results"):
        op.create_table(
            "count_location_results",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("report_id", sa.String(length=36), nullable=False),
            sa.Column("location_id", sa.String(length=36), nullable=False),
            sa.Column("location_code", sa.String(length=64), nullable=False),
            sa.Column("status", sa.String(length=20), server_default="COUNTING", nullable=False),
            sa.Column("total_expected", sa.Integer(), server_default="0", nullable=False),
            sa.Column("total_counted", sa.Integer(), server_default="0", nullable=False),
            sa.Column("total_variance", sa.Integer(), server_default="0", nullable=False),
            sa.Column("unexpected_count", sa.Integer(), server_default="0", nullable=False),
            sa.Column("counted_by", sa.String(length=100), nullable=False),
            sa.Column("started_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.Column("saved_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(["report_id"], ["count_reports.id"]),
            sa.ForeignKeyConstraint(["location_id"], ["locations.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("report_id", "location_id", name="uq_count_location_results_report_location"),
        )

    if not _table_exists(inspector, "count_items"):
        op.create_table(
            "count_items",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("location_result_id", sa.String(length=36), nullable=False),
            sa.Column("position", sa.Integer(), nullable=False),
            sa.Column("product_id", sa.String(length=36), nullable=False),
            sa.Column("product_sku", sa.String(length=100), nullable=False),
            sa.Column("product_name", sa.String(length=255), nullable=True),
            sa.Column("expected_quantity", sa.Integer(), server_default="0", nullable=False),
            sa.Column("counted_quantity", sa.Integer(), server_default="0", nullable=False),
            sa.Column("variance", sa.Integer(), server_default="0", nullable=False),
            sa.Column("is_unexpected", sa.Boolean(), server_default="0", nullable=False),
            sa.ForeignKeyConstraint(["location_result_id"], ["count_location_results.id"]),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("location_result_id", "product_id", name="uq_count_items_location_product"),
        )

    if not _table_exists(inspector, "count_scans"):
        op.create_table(
            "count_scans",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("location_result_id", sa.String(length=36), nullable=False),
            sa.Column("count_item_id", sa.String(length=36), nullable=False),
            sa.Column("barcode", sa.String(length=130), nullable=False),
            _created_at(),
            sa.ForeignKeyConstraint(["location_result_id"], ["count_location_results.id"]),
            sa.ForeignKeyConstraint(["count_item_id"], ["count_items.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("location_result_id", "barcode", name="uq_count_scans_location_barcode"),
        )

    if not _table_exists(inspector, "audit_logs"):
        op.create_table(
            "audit_logs",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("actor", sa.String(length=100), nullable=False),
            sa.Column("action", sa.String(length=100), nullable=False),
            sa.Column("target_type", sa.String(length=100), nullable=False),
            sa.Column("target_id", sa.String(length=36), nullable=True),
            sa.Column("metadata_json", sa.JSON(), nullable=True),
            _created_at(),
            sa.PrimaryKeyConstraint("id"),
        )

    inspector = sa.inspect(bind)
    _create_index(inspector, "ix_warehouses_code", "warehouses", ["code"], unique=True)
    _create_index(inspector, "ix_locations_warehouse_id", "locations", ["warehouse_id"])
    _create_index(inspector, "ix_locations_qr_code", "locations", ["qr_code"], unique=True)
    _create_index(inspector, "ix_locations_warehouse_default", "locations", ["warehouse_id", "is_default"])
    _create_index(inspector, "ix_products_sku", "products", ["sku"], unique=True)
    _create_index(inspector, "ix_products_barcode", "products", ["barcode"], unique=True)
    _create_index(inspector, "ix_serial_numbers_product_id", "serial_numbers", ["product_id"])
    _create_index(inspector, "ix_serial_numbers_full_barcode", "serial_numbers", ["full_barcode"], unique=True)
    _create_index(inspector, "ix_operation_modes_mode_code", "operation_modes", ["mode_code"], unique=True)
    _create_index(inspector, "ix_inventory_rows_product_id", "inventory_rows", ["product_id"])
    _create_index(inspector, "ix_inventory_rows_warehouse_id", "inventory_rows", ["warehouse_id"])
    _create_index(inspector, "ix_inventory_rows_location_id", "inventory_rows", ["location_id"])
    _create_index(inspector, "ix_inventory_rows_warehouse_location", "inventory_rows", ["warehouse_id", "location_id"])
    _create_index(
        inspector,
        "uq_inventory_rows_key_no_location",
        "inventory_rows",
        ["product_id", "warehouse_id"],
        unique=True,
        postgresql_where=sa.text("location_id IS NULL"),
        sqlite_where=sa.text("location_id IS NULL"),
    )
    _create_index(inspector, "ix_containers_barcode", "containers", ["barcode"], unique=True)
    _create_index(inspector, "ix_containers_warehouse_id", "containers", ["warehouse_id"])
    _create_index(inspector, "ix_containers_warehouse_status", "containers", ["warehouse_id", "status"])
    _create_index(inspector, "ix_container_contents_container_id", "container_contents", ["container_id"])
    _create_index(inspector, "ix_inventory_transactions_warehouse_id", "inventory_transactions", ["warehouse_id"])
    _create_index(
        inspector,
        "ix_inventory_transactions_warehouse_created_at",
        "inventory_transactions",
        ["warehouse_id", "created_at"],
    )
    _create_index(
        inspector,
        "ix_inventory_transaction_lines_transaction_id",
        "inventory_transaction_lines",
        ["transaction_id"],
    )
    _create_index(inspector, "ix_count_reports_warehouse_id", "count_reports", ["warehouse_id"])
    _create_index(inspector, "ix_count_location_results_report_id", "count_location_results", ["report_id"])
    _create_index(inspector, "ix_count_items_location_result_id", "count_items", ["location_result_id"])
    _create_index(inspector, "ix_count_scans_count_item", "count_scans", ["count_item_id"])
    _create_index(inspector, "ix_audit_logs_actor", "audit_logs", ["actor"])
    _create_index(inspector, "ix_audit_logs_target_id", "audit_logs", ["target_id"])
    _create_index(inspector, "ix_audit_logs_action_created_at", "audit_logs", ["action", "created_at"])
    _create_index(inspector, "ix_audit_logs_target", "audit_logs", ["target_type", "target_id"])


def downgrade() -> None:
    for table_name in (
        "audit_logs",
        "count_scans",
        "count_items",
        "count_location_results",
        "count_reports",
        "inventory_transaction_lines",
        "inventory_transactions",
        "barcode_sequences",
        "container_contents",
        "containers",
        "inventory_rows",
        "operation_modes",
        "serial_numbers",
        "products",
        "locations",
        "warehouses",
    ):
        op.drop_table(table_name)
