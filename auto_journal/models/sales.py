"""
Sales models.

A sales order carries its own frozen money fields (gross
total, discount, marketplace fee) so the journal is built
from what was agreed at sale time. Each item keeps the unit
cost (HPP) it was sold at; returns reverse cost at that
original figure, never at today's cost.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import String, Integer, Boolean, Date, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from auto_journal.models.base import Base
from auto_journal.models.enums import DocumentStatus, PaymentMethod


class SalesOrder(Base):
    __tablename__ = "sales_orders"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_no: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False
    )
    marketplace: Mapped[str | None] = mapped_column(String(50), nullable=True)
    customer_id: Mapped[int | None] = mapped_column(
        ForeignKey("customers.id"), nullable=True
    )
    order_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_method: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentMethod.CREDIT.value
    )
    bank_account_id: Mapped[int | None] = mapped_column(
        ForeignKey("bank_accounts.id"), nullable=True
    )
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    discount_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    fee_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    paid_amount: Mapped[Decimal | None] = mapped_column(Numeric(19, 4), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DocumentStatus.CONFIRMED
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    items: Mapped[list["SalesOrderItem"]] = relationship(
        back_populates="order", order_by="SalesOrderItem.id"
    )

    def __repr__(self) -> str:
        return f"<SalesOrder {self.order_no} ({self.status})>"


class SalesOrderItem(Base):
    __tablename__ = "sales_order_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("sales_orders.id"), nullable=False, index=True
    )
    variant_id: Mapped[int | None] = mapped_column(
        ForeignKey("product_variants.id"), nullable=True
    )
    product_name: Mapped[str] = mapped_column(String(150), nullable=False)
    qty: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(19, 4), nullable=False)
    hpp: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )

    order: Mapped["SalesOrder"] = relationship(back_populates="items")
    variant: Mapped["ProductVariant | None"] = relationship()

    @property
    def product_type(self) -> str:
        """Product type of the sold variant; unknown variants count as purchased."""
        if self.variant is not None and self.variant.product_type:
            return self.variant.product_type
        return "purchased"

    @property
    def revenue(self) -> Decimal:
        return Decimal(self.qty) * self.unit_price

    @property
    def cost(self) -> Decimal:
        return Decimal(self.qty) * (self.hpp or Decimal("0"))


class SalesReturn(Base):
    """
    A return against a sales order.

    With is_credit_note set the return only adjusts revenue and
    the receivable; no goods come back into stock.
    """

    __tablename__ = "sales_returns"

    id: Mapped[int] = mapped_column(primary_key=True)
    return_no: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False
    )
    sales_order_id: Mapped[int] = mapped_column(
        ForeignKey("sales_orders.id"), nullable=False, index=True
    )
    return_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_credit_note: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    refund_method: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentMethod.CREDIT.value
    )
    bank_account_id: Mapped[int | None] = mapped_column(
        ForeignKey("bank_accounts.id"), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DocumentStatus.PENDING
    )

    sales_order: Mapped["SalesOrder"] = relationship()
    lines: Mapped[list["SalesReturnLine"]] = relationship(
        back_populates="sales_return", order_by="SalesReturnLine.id"
    )


class SalesReturnLine(Base):
    __tablename__ = "sales_return_lines"

    id: Mapped[int] = mapped_column(primary_key=True)
    return_id: Mapped[int] = mapped_column(
        ForeignKey("sales_returns.id"), nullable=False, index=True
    )
    order_item_id: Mapped[int] = mapped_column(
        ForeignKey("sales_order_items.id"), nullable=False
    )
    qty: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(19, 4), nullable=False)

    sales_return: Mapped["SalesReturn"] = relationship(back_populates="lines")
    order_item: Mapped["SalesOrderItem"] = relationship()
