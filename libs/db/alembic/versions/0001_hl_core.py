# ruff: noqa: I001
"""Household ledger core tables.

Revision ID: 0001_hl_core
Revises: None
Create Date: 2026-10-18
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_hl_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())


def upgrade() -> None:
    op.create_table(
        "hl_accounts",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("bank_name", sa.String(), nullable=True),
        sa.Column("currency", sa.CHAR(3), nullable=False, server_default=sa.text("'KRW'")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _timestamp("created_at"),
        sa.CheckConstraint("currency in ('KRW','AED')", name="ck_hl_accounts_currency"),
    )

    op.create_table(
        "hl_categories",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("expense_type", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _timestamp("created_at"),
        sa.CheckConstraint("type in ('income','expense')", name="ck_hl_categories_type"),
        sa.CheckConstraint(
            "expense_type IS NULL OR expense_type in ('fixed','variable')",
            name="ck_hl_categories_expense_type",
        ),
    )

    op.create_table(
        "hl_transactions",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("currency", sa.CHAR(3), nullable=False, server_default=sa.text("'KRW'")),
        sa.Column("category_id", sa.String(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("memo", sa.Text(), nullable=True),
        sa.Column("include_in_stats", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("tag", sa.Text(), nullable=False, server_default=sa.text("''")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["category_id"], ["hl_categories.id"], name="fk_hl_tx_category"),
        sa.CheckConstraint("type in ('income','expense')", name="ck_hl_tx_type"),
        sa.CheckConstraint("currency in ('KRW','AED')", name="ck_hl_tx_currency"),
        sa.CheckConstraint("amount >= 0", name="ck_hl_tx_amount_non_negative"),
    )
    op.create_index("ix_hl_transactions_date", "hl_transactions", ["date"], unique=False)
    op.create_index(
        "ix_hl_transactions_category_id", "hl_transactions", ["category_id"], unique=False
    )

    op.create_table(
        "hl_budget_items",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("group_name", sa.String(), nullable=True),
        sa.Column("budget_type", sa.String(), nullable=False),
        sa.Column("base_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("currency", sa.CHAR(3), nullable=False, server_default=sa.text("'KRW'")),
        sa.Column("memo", sa.Text(), nullable=True),
        sa.Column("valid_from", sa.Date(), nullable=True),
        sa.Column("valid_to", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("account_id", sa.String(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(
            ["account_id"], ["hl_accounts.id"], name="fk_hl_budget_items_account"
        ),
        sa.CheckConstraint(
            "budget_type in ('fixed_monthly','variable_monthly','distributed')",
            name="ck_hl_budget_items_type",
        ),
        sa.CheckConstraint("currency in ('KRW','AED')", name="ck_hl_budget_items_currency"),
        sa.CheckConstraint("base_amount >= 0", name="ck_hl_budget_items_amount_non_negative"),
        sa.CheckConstraint(
            (
                "budget_type <> 'distributed' OR "
                "(valid_from IS NOT NULL AND valid_to IS NOT NULL AND valid_from <= valid_to)"
            ),
            name="ck_hl_budget_items_distributed_window",
        ),
    )

    op.create_table(
        "hl_budget_item_categories",
        sa.Column("budget_item_id", sa.String(), primary_key=True),
        sa.Column("category_id", sa.String(), primary_key=True),
        sa.ForeignKeyConstraint(
            ["budget_item_id"],
            ["hl_budget_items.id"],
            name="fk_hl_bic_budget_item",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(["category_id"], ["hl_categories.id"], name="fk_hl_bic_category"),
    )

    op.create_table(
        "hl_settings",
        sa.Column("key", sa.String(), primary_key=True),
        sa.Column("value", sa.Text(), nullable=False),
        _timestamp("updated_at"),
    )
    op.bulk_insert(
        sa.table("hl_settings", sa.column("key", sa.String()), sa.column("value", sa.Text())),
        [{"key": "aed_to_krw_rate", "value": "385"}],
    )

    op.create_table(
        "hl_monthly_closings",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("total_income", sa.Numeric(18, 2), nullable=False),
        sa.Column("total_expense", sa.Numeric(18, 2), nullable=False),
        sa.Column("total_budget", sa.Numeric(18, 2), nullable=True),
        sa.Column("net_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("memo", sa.Text(), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=False),
        _timestamp("created_at"),
        sa.UniqueConstraint("year", "month", name="uq_hl_monthly_closings_year_month"),
        sa.CheckConstraint("month >= 1 AND month <= 12", name="ck_hl_monthly_closings_month"),
    )

    op.create_table(
        "hl_monthly_closing_details",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("closing_id", sa.String(), nullable=False),
        sa.Column("category_id", sa.String(), nullable=False),
        sa.Column("category_name", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("budget_amount", sa.Numeric(18, 2), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.ForeignKeyConstraint(
            ["closing_id"],
            ["hl_monthly_closings.id"],
            name="fk_hl_closing_details_closing",
            ondelete="CASCADE",
        ),
        sa.CheckConstraint("type in ('income','expense')", name="ck_hl_closing_details_type"),
    )
    op.create_index(
        "ix_hl_monthly_closing_details_closing_id",
        "hl_monthly_closing_details",
        ["closing_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(
        "ix_hl_monthly_closing_details_closing_id", table_name="hl_monthly_closing_details"
    )
    op.drop_table("hl_monthly_closing_details")
    op.drop_table("hl_monthly_closings")
    op.drop_table("hl_settings")
    op.drop_table("hl_budget_item_categories")
    op.drop_table("hl_budget_items")
    op.drop_index("ix_hl_transactions_category_id", table_name="hl_transactions")
    op.drop_index("ix_hl_transactions_date", table_name="hl_transactions")
    op.drop_table("hl_transactions")
    op.drop_table("hl_categories")
    op.drop_table("hl_accounts")
