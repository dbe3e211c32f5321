"""Initial marketplace schema: accounts, fleet, loads, bids, ratings.

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


def _address_columns(prefix: str) -> list:
    return [
        sa.Column(f"{prefix}_street", sa.String(255), nullable=False),
        sa.Column(f"{prefix}_city", sa.String(100), nullable=False),
        sa.Column(f"{prefix}_state", sa.String(100), nullable=False),
        sa.Column(f"{prefix}_pincode", sa.String(6), nullable=False),
    ]


def upgrade() -> None:
    # ── Accounts ─────────────────────────────────────────────

    op.create_table(
        "carriers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("owner_name", sa.String(255), nullable=False),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("contact_email", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("contact_number", sa.String(20), nullable=False, unique=True),
        sa.Column("gst_number", sa.String(15), nullable=False, unique=True),
        *_address_columns("address"),
        sa.Column("fleet_size", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rating", sa.Float(), nullable=False, server_default="0"),
        sa.Column("rating_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_trips", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        "shippers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("owner_name", sa.String(255), nullable=False),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("contact_email", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("contact_number", sa.String(20), nullable=False, unique=True),
        sa.Column("gst_number", sa.String(15), nullable=False, unique=True),
        sa.Column("industry_type", sa.String(30), nullable=False),
        *_address_columns("address"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )

    # ── Fleet ────────────────────────────────────────────────

    op.create_table(
        "vehicles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("carrier_id", sa.String(36), sa.ForeignKey("carriers.id"), nullable=False, index=True),
        sa.Column("vehicle_number", sa.String(15), nullable=False, unique=True, index=True),
        sa.Column("vehicle_type", sa.String(30), nullable=False),
        sa.Column("capacity_unit", sa.String(10), nullable=False),
        sa.Column("capacity_value", sa.Float(), nullable=False),
        sa.Column("length_ft", sa.Float(), nullable=False, server_default="0"),
        sa.Column("width_ft", sa.Float(), nullable=False, server_default="0"),
        sa.Column("height_ft", sa.Float(), nullable=False, server_default="0"),
        sa.Column("manufacturing_year", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="AVAILABLE", index=True),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), index=True),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint("capacity_value > 0", name="ck_vehicles_capacity_positive"),
    )

    # ── Loads ────────────────────────────────────────────────

    op.create_table(
        "loads",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("shipper_id", sa.String(36), sa.ForeignKey("shippers.id"), nullable=False, index=True),
        *_address_columns("pickup"),
        *_address_columns("delivery"),
        sa.Column("material", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("requirement_unit", sa.String(10), nullable=False),
        sa.Column("requirement_value", sa.Float(), nullable=False),
        sa.Column("required_vehicle_types", sa.JSON(), nullable=False),
        sa.Column("budget_price", sa.Float(), nullable=False),
        sa.Column("bidding_deadline", sa.DateTime(), nullable=False, index=True),
        sa.Column("pickup_date", sa.DateTime(), nullable=False),
        sa.Column("expected_delivery_date", sa.DateTime(), nullable=False),
        sa.Column("selected_carrier_id", sa.String(36), sa.ForeignKey("carriers.id"), index=True),
        sa.Column("assigned_vehicle_id", sa.String(36), sa.ForeignKey("vehicles.id"), index=True),
        sa.Column("driver_name", sa.String(100)),
        sa.Column("driver_phone", sa.String(20)),
        sa.Column("status", sa.String(20), nullable=False, server_default="CREATED", index=True),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), index=True),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint("budget_price > 0", name="ck_loads_budget_positive"),
        sa.CheckConstraint("requirement_value > 0", name="ck_loads_requirement_positive"),
        sa.CheckConstraint(
            "bidding_deadline < pickup_date AND pickup_date < expected_delivery_date",
            name="ck_loads_date_order",
        ),
    )

    # ── Bids & interactions ──────────────────────────────────

    op.create_table(
        "bids",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("load_id", sa.String(36), sa.ForeignKey("loads.id"), nullable=False, index=True),
        sa.Column("carrier_id", sa.String(36), sa.ForeignKey("carriers.id"), nullable=False, index=True),
        sa.Column("vehicle_id", sa.String(36), sa.ForeignKey("vehicles.id"), nullable=False, index=True),
        sa.Column("bid_amount", sa.Float(), nullable=False),
        sa.Column("estimated_transit_time_hours", sa.Float(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING", index=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), index=True),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint("bid_amount > 0", name="ck_bids_amount_positive"),
        sa.CheckConstraint("estimated_transit_time_hours > 0", name="ck_bids_transit_positive"),
    )

    op.create_table(
        "carrier_load_interactions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("carrier_id", sa.String(36), sa.ForeignKey("carriers.id"), nullable=False, index=True),
        sa.Column("load_id", sa.String(36), sa.ForeignKey("loads.id"), nullable=False, index=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint("carrier_id", "load_id", name="uq_interaction_carrier_load"),
    )

    # ── Ratings ──────────────────────────────────────────────

    op.create_table(
        "carrier_ratings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("load_id", sa.String(36), sa.ForeignKey("loads.id"), nullable=False, unique=True, index=True),
        sa.Column("shipper_id", sa.String(36), sa.ForeignKey("shippers.id"), nullable=False, index=True),
        sa.Column("carrier_id", sa.String(36), sa.ForeignKey("carriers.id"), nullable=False, index=True),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_carrier_ratings_range"),
    )


def downgrade() -> None:
    op.drop_table("carrier_ratings")
    op.drop_table("carrier_load_interactions")
    op.drop_table("bids")
    op.drop_table("loads")
    op.drop_table("vehicles")
    op.drop_table("shippers")
    op.drop_table("carriers")
