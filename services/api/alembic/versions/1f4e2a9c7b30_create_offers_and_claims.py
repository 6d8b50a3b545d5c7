"""create_offers_and_claims

Revision ID: 1f4e2a9c7b30
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "1f4e2a9c7b30"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "offers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("offer_id", sa.String(length=100), nullable=False),
        sa.Column("initial_quantity", sa.Integer(), nullable=False),
        sa.Column("remaining_quantity", sa.Integer(), nullable=False),
        sa.Column("units_consumed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location_text", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("subtitle", sa.Text(), nullable=True),
        sa.Column("logo_key", sa.String(length=500), nullable=True),
        sa.Column("address_url", sa.Text(), nullable=True),
        sa.Column("business_id", sa.String(length=100), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.CheckConstraint("remaining_quantity >= 0", name="ck_offers_remaining_non_negative"),
        sa.CheckConstraint("units_consumed >= 0", name="ck_offers_consumed_non_negative"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_offers_offer_id"), "offers", ["offer_id"], unique=True)
    op.create_index(op.f("ix_offers_remaining_quantity"), "offers", ["remaining_quantity"], unique=False)
    op.create_index(op.f("ix_offers_expires_at"), "offers", ["expires_at"], unique=False)
    op.create_index(op.f("ix_offers_business_id"), "offers", ["business_id"], unique=False)

    claim_state = sa.Enum("CLAIMED", "REDEEMED", name="claim_state")

    op.create_table(
        "claims",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("claim_id", sa.String(length=200), nullable=False),
        sa.Column("offer_id", sa.String(length=100), nullable=False),
        sa.Column("contact_handle", sa.String(length=320), nullable=False),
        sa.Column("delivery_method", sa.String(length=16), nullable=True),
        sa.Column("state", claim_state, nullable=False),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("redeemed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("subtitle", sa.Text(), nullable=True),
        sa.Column("logo_key", sa.String(length=500), nullable=True),
        sa.Column("address_url", sa.Text(), nullable=True),
        sa.Column("location_text", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("business_id", sa.String(length=100), nullable=True),
        sa.ForeignKeyConstraint(["offer_id"], ["offers.offer_id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_claims_claim_id"), "claims", ["claim_id"], unique=True)
    op.create_index(op.f("ix_claims_offer_id"), "claims", ["offer_id"], unique=False)
    op.create_index(op.f("ix_claims_state"), "claims", ["state"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_claims_state"), table_name="claims")
    op.drop_index(op.f("ix_claims_offer_id"), table_name="claims")
    op.drop_index(op.f("ix_claims_claim_id"), table_name="claims")
    op.drop_table("claims")
    sa.Enum(name="claim_state").drop(op.get_bind(), checkfirst=True)

    op.drop_index(op.f("ix_offers_business_id"), table_name="offers")
    op.drop_index(op.f("ix_offers_expires_at"), table_name="offers")
    op.drop_index(op.f("ix_offers_remaining_quantity"), table_name="offers")
    op.drop_index(op.f("ix_offers_offer_id"), table_name="offers")
    op.drop_table("offers")
