"""Initial booking schema: parties, cycle times, bookings, history, load data.

Revision ID: 0001
Revises: (none)
Create Date: 2026-10-18

Run with:
    alembic upgrade head
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def upgrade() -> None:
    # ── Parties ──────────────────────────────────────────────

    for table in ("clients", "carriers"):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("code", sa.String(20), nullable=False, unique=True),
            sa.Column("name", sa.String(200), nullable=False),
            sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        )

    # ── Cycle times ──────────────────────────────────────────

    cycle_times = op.create_table(
        "cycle_time_configs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("category", sa.String(30), nullable=False, unique=True),
        sa.Column("tons_per_hour", sa.Float(), nullable=False),
        sa.Column("setup_minutes", sa.Integer(), server_default="15"),
        sa.Column("cleaning_minutes", sa.Integer(), server_default="20"),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.bulk_insert(cycle_times, [
        {"category": "bulk", "tons_per_hour": 10, "setup_minutes": 15, "cleaning_minutes": 20},
        {"category": "packaged_silo", "tons_per_hour": 4, "setup_minutes": 15, "cleaning_minutes": 20},
        {"category": "packaged_bag", "tons_per_hour": 2, "setup_minutes": 15, "cleaning_minutes": 25},
    ])

    # ── Bookings ─────────────────────────────────────────────

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("booking_code", sa.String(30), unique=True),
        sa.Column("booking_type", sa.String(15), nullable=False, index=True),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id"), index=True),
        sa.Column("carrier_id", sa.Integer(), sa.ForeignKey("carriers.id"), index=True),
        sa.Column("planned_date", sa.Date(), nullable=False, index=True),
        sa.Column("planned_start_time", sa.String(5), nullable=False),
        sa.Column("planned_end_time", sa.String(5)),
        sa.Column("duration_minutes", sa.Integer()),
        sa.Column("product_code", sa.String(50)),
        sa.Column("product_description", sa.String(200)),
        sa.Column("product_category", sa.String(30)),
        sa.Column("strength_w", sa.Float()),
        sa.Column("strength_w_tolerance", sa.Float()),
        sa.Column("pl_ratio", sa.Float()),
        sa.Column("pl_ratio_tolerance", sa.Float()),
        sa.Column("extra_specs", sa.JSON()),
        sa.Column("planned_quantity", sa.Float()),
        sa.Column("unit", sa.String(10)),
        sa.Column("quantity_kg", sa.Float()),
        sa.Column("changeover", sa.Boolean(), server_default=sa.false()),
        sa.Column("planned_lot", sa.String(50)),
        sa.Column("planned_lot_expiry", sa.Date()),
        sa.Column("material_origin", sa.String(20)),
        sa.Column("source_silo", sa.String(20)),
        sa.Column("production_line", sa.String(30)),
        sa.Column("load_type", sa.String(20)),
        sa.Column("order_reference", sa.String(50)),
        sa.Column("shipping_doc_reference", sa.String(50)),
        sa.Column(
            "linked_booking_id", sa.Integer(),
            sa.ForeignKey("bookings.id", ondelete="SET NULL"),
        ),
        sa.Column("state", sa.String(20), nullable=False, server_default="planned", index=True),
        sa.Column("priority", sa.Integer(), server_default="5"),
        sa.Column("notes", sa.Text()),
        sa.Column("created_by", sa.Integer()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default="1"),
        sa.CheckConstraint("booking_type IN ('production', 'delivery')", name="ck_bookings_type"),
        sa.CheckConstraint("priority BETWEEN 1 AND 10", name="ck_bookings_priority"),
    )
    op.create_index("ix_bookings_date_start", "bookings", ["planned_date", "planned_start_time"])

    op.create_table(
        "booking_state_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "booking_id", sa.Integer(),
            sa.ForeignKey("bookings.id", ondelete="CASCADE"),
            nullable=False, index=True,
        ),
        sa.Column("previous_state", sa.String(20)),
        sa.Column("new_state", sa.String(20), nullable=False),
        sa.Column("changed_by", sa.Integer()),
        sa.Column("notes", sa.Text()),
        sa.Column("changed_at", sa.DateTime(), nullable=False, server_default=sa.func.now(), index=True),
    )

    # ── Load data ────────────────────────────────────────────

    op.create_table(
        "load_records",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "booking_id", sa.Integer(),
            sa.ForeignKey("bookings.id", ondelete="CASCADE"),
            nullable=False, unique=True,
        ),
        sa.Column("load_date", sa.Date(), nullable=False),
        sa.Column("load_start_time", sa.String(5)),
        sa.Column("load_end_time", sa.String(5)),
        sa.Column("operator_id", sa.Integer()),
        sa.Column("operator_name", sa.String(100)),
        sa.Column("transport_fit", sa.Boolean(), nullable=False),
        sa.Column("transport_fit_notes", sa.Text()),
        sa.Column("vehicle_plate", sa.String(20), nullable=False),
        sa.Column("trailer_plate", sa.String(20)),
        sa.Column("driver_name", sa.String(100)),
        sa.Column("loaded_lot", sa.String(50), nullable=False),
        sa.Column("lot_expiry", sa.Date()),
        sa.Column("loaded_weight_kg", sa.Float(), nullable=False),
        sa.Column("tare_weight_kg", sa.Float()),
        sa.Column("gross_weight_kg", sa.Float()),
        sa.Column("packaging_type", sa.String(20)),
        sa.Column("parcel_count", sa.Integer()),
        sa.Column("shipping_doc_number", sa.String(50)),
        sa.Column("shipping_doc_date", sa.Date()),
        sa.Column("recorded_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("load_records")
    op.drop_table("booking_state_history")
    op.drop_index("ix_bookings_date_start", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("cycle_time_configs")
    op.drop_table("carriers")
    op.drop_table("clients")
