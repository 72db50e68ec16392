from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    CHAR,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
    true,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------
# Reference: hl_accounts, hl_categories
# ---------------------------


class HlAccount(Base):
    __tablename__ = "hl_accounts"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String, nullable=False)
    bank_name: Mapped[str | None] = mapped_column(String, nullable=True)
    currency: Mapped[str] = mapped_column(CHAR(3), nullable=False, server_default=text("'KRW'"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=true())
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("currency in ('KRW','AED')", name="ck_hl_accounts_currency"),
    )


class HlCategory(Base):
    __tablename__ = "hl_categories"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    # Only meaningful for expense categories; income categories leave it NULL.
    expense_type: Mapped[str | None] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=true())
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("type in ('income','expense')", name="ck_hl_categories_type"),
        CheckConstraint(
            "expense_type IS NULL OR expense_type in ('fixed','variable')",
            name="ck_hl_categories_expense_type",
        ),
    )


# ---------------------------
# Core: hl_transactions
# ---------------------------


class HlTransaction(Base):
    __tablename__ = "hl_transactions"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    type: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    currency: Mapped[str] = mapped_column(CHAR(3), nullable=False, server_default=text("'KRW'"))
    category_id: Mapped[str] = mapped_column(
        String, ForeignKey("hl_categories.id"), nullable=False, index=True
    )
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    memo: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Rows with include_in_stats = false stay in the ledger but never reach
    # monthly totals or closings.
    include_in_stats: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=true()
    )
    tag: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    category: Mapped[HlCategory] = relationship(lazy="joined")

    __table_args__ = (
        CheckConstraint("type in ('income','expense')", name="ck_hl_tx_type"),
        CheckConstraint("currency in ('KRW','AED')", name="ck_hl_tx_currency"),
        CheckConstraint("amount >= 0", name="ck_hl_tx_amount_non_negative"),
    )


# ---------------------------
# Budget templates
# ---------------------------


class HlBudgetItemCategory(Base):
    __tablename__ = "hl_budget_item_categories"

    budget_item_id: Mapped[str] = mapped_column(
        String, ForeignKey("hl_budget_items.id", ondelete="CASCADE"), primary_key=True
    )
    category_id: Mapped[str] = mapped_column(
        String, ForeignKey("hl_categories.id"), primary_key=True
    )


class HlBudgetItem(Base):
    __tablename__ = "hl_budget_items"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String, nullable=False)
    group_name: Mapped[str | None] = mapped_column(String, nullable=True)
    budget_type: Mapped[str] = mapped_column(String, nullable=False)
    base_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    currency: Mapped[str] = mapped_column(CHAR(3), nullable=False, server_default=text("'KRW'"))
    memo: Mapped[str | None] = mapped_column(Text, nullable=True)
    valid_from: Mapped[date | None] = mapped_column(Date, nullable=True)
    valid_to: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=true())
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    account_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("hl_accounts.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    category_links: Mapped[list[HlBudgetItemCategory]] = relationship(
        cascade="all, delete-orphan", lazy="selectin"
    )

    __table_args__ = (
        CheckConstraint(
            "budget_type in ('fixed_monthly','variable_monthly','distributed')",
            name="ck_hl_budget_items_type",
        ),
        CheckConstraint("currency in ('KRW','AED')", name="ck_hl_budget_items_currency"),
        CheckConstraint("base_amount >= 0", name="ck_hl_budget_items_amount_non_negative"),
        CheckConstraint(
            (
                "budget_type <> 'distributed' OR "
                "(valid_from IS NOT NULL AND valid_to IS NOT NULL AND valid_from <= valid_to)"
            ),
            name="ck_hl_budget_items_distributed_window",
        ),
    )


# ---------------------------
# Settings
# ---------------------------


class HlSetting(Base):
    __tablename__ = "hl_settings"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


# ---------------------------
# Month-end snapshots
# ---------------------------


class HlMonthlyClosingDetail(Base):
    __tablename__ = "hl_monthly_closing_details"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    closing_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("hl_monthly_closings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # No FK on category_id: the row is a denormalized snapshot that must
    # survive later category renames and deletes.
    category_id: Mapped[str] = mapped_column(String, nullable=False)
    category_name: Mapped[str] = mapped_column(String, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    budget_amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))

    __table_args__ = (
        CheckConstraint("type in ('income','expense')", name="ck_hl_closing_details_type"),
    )


class HlMonthlyClosing(Base):
    __tablename__ = "hl_monthly_closings"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    total_income: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    total_expense: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    total_budget: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    net_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    memo: Mapped[str | None] = mapped_column(Text, nullable=True)
    closed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    details: Mapped[list[HlMonthlyClosingDetail]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by=HlMonthlyClosingDetail.sort_order,
    )

    __table_args__ = (
        UniqueConstraint("year", "month", name="uq_hl_monthly_closings_year_month"),
        CheckConstraint("month >= 1 AND month <= 12", name="ck_hl_monthly_closings_month"),
    )


__all__ = [
    "Base",
    "HlAccount",
    "HlCategory",
    "HlTransaction",
    "HlBudgetItem",
    "HlBudgetItemCategory",
    "HlSetting",
    "HlMonthlyClosing",
    "HlMonthlyClosingDetail",
]
