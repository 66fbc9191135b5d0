"""
Purchasing models.

A purchase order is received (possibly in several receipts)
and paid (possibly in several payments). Each receipt and
each payment is its own numbered document with its own
journal entry. Returns reverse part of what was received at
the original unit cost.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import String, Integer, Date, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from auto_journal.models.base import Base
from auto_journal.models.enums import DocumentStatus, PaymentStatus


class Supplier(Base):
    __tablename__ = "suppliers"

    id: Mapped[int] = mapped_column(primary_key=True)
    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(150), nullable=False)

    def __repr__(self) -> str:
        return f"<Supplier {self.code}>"


class Purchase(Base):
    __tablename__ = "purchases"

    id: Mapped[int] = mapped_column(primary_key=True)
    purchase_no: Mapped[str] = mapped_column(
        String(30), unique=True, nullable=False
    )
    supplier_id: Mapped[int] = mapped_column(
        ForeignKey("suppliers.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DocumentStatus.ORDERED
    )
    payment_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentStatus.UNPAID
    )
    order_date: Mapped[date] = mapped_column(Date, nullable=False)
    received_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    paid_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    supplier: Mapped["Supplier"] = relationship()
    lines: Mapped[list["PurchaseLine"]] = relationship(
        back_populates="purchase", order_by="PurchaseLine.id"
    )

    @property
    def total_amount(self) -> Decimal:
        return sum((line.subtotal for line in self.lines), Decimal("0"))

    @property
    def received_amount(self) -> Decimal:
        return sum(
            (Decimal(line.qty_received) * line.unit_cost for line in self.lines),
            Decimal("0"),
        )

    @property
    def is_fully_received(self) -> bool:
        return all(line.qty_remaining == 0 for line in self.lines)

    def __repr__(self) -> str:
        return f"<Purchase {self.purchase_no} ({self.status})>"


class PurchaseLine(Base):
    __tablename__ = "purchase_lines"

    id: Mapped[int] = mapped_column(primary_key=True)
    purchase_id: Mapped[int] = mapped_column(
        ForeignKey("purchases.id"), nullable=False, index=True
    )
    variant_id: Mapped[int | None] = mapped_column(
        ForeignKey("product_variants.id"), nullable=True
    )
    qty_ordered: Mapped[int] = mapped_column(Integer, nullable=False)
    qty_received: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    unit_cost: Mapped[Decimal] = mapped_column(Numeric(19, 4), nullable=False)

    purchase: Mapped["Purchase"] = relationship(back_populates="lines")

    @property
    def qty_remaining(self) -> int:
        return max(self.qty_ordered - (self.qty_received or 0), 0)

    @property
    def subtotal(self) -> Decimal:
        return Decimal(self.qty_ordered) * self.unit_cost


class PurchaseReceipt(Base):
    """A numbered goods receipt against a purchase."""

    __tablename__ = "purchase_receipts"

    id: Mapped[int] = mapped_column(primary_key=True)
    receipt_no: Mapped[str] = mapped_column(
        String(30), unique=True, nullable=False
    )
    purchase_id: Mapped[int] = mapped_column(
        ForeignKey("purchases.id"), nullable=False, index=True
    )
    receipt_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DocumentStatus.PENDING
    )
    journal_entry_id: Mapped[int | None] = mapped_column(
        ForeignKey("journal_entries.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    lines: Mapped[list["PurchaseReceiptLine"]] = relationship(
        back_populates="receipt"
    )


class PurchaseReceiptLine(Base):
    __tablename__ = "purchase_receipt_lines"

    id: Mapped[int] = mapped_column(primary_key=True)
    receipt_id: Mapped[int] = mapped_column(
        ForeignKey("purchase_receipts.id"), nullable=False, index=True
    )
    purchase_line_id: Mapped[int] = mapped_column(
        ForeignKey("purchase_lines.id"), nullable=False
    )
    qty: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_cost: Mapped[Decimal] = mapped_column(Numeric(19, 4), nullable=False)

    receipt: Mapped["PurchaseReceipt"] = relationship(back_populates="lines")


class PurchasePayment(Base):
    """A numbered payment to the supplier of a purchase."""

    __tablename__ = "purchase_payments"

    id: Mapped[int] = mapped_column(primary_key=True)
    payment_no: Mapped[str] = mapped_column(
        String(30), unique=True, nullable=False
    )
    purchase_id: Mapped[int] = mapped_column(
        ForeignKey("purchases.id"), nullable=False, index=True
    )
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(19, 4), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)
    bank_account_id: Mapped[int | None] = mapped_column(
        ForeignKey("bank_accounts.id"), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DocumentStatus.PENDING
    )
    journal_entry_id: Mapped[int | None] = mapped_column(
        ForeignKey("journal_entries.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )


class PurchaseReturn(Base):
    __tablename__ = "purchase_returns"

    id: Mapped[int] = mapped_column(primary_key=True)
    return_no: Mapped[str] = mapped_column(
        String(30), unique=True, nullable=False
    )
    purchase_id: Mapped[int] = mapped_column(
        ForeignKey("purchases.id"), nullable=False, index=True
    )
    return_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DocumentStatus.PENDING
    )

    purchase: Mapped["Purchase"] = relationship()
    lines: Mapped[list["PurchaseReturnLine"]] = relationship(
        back_populates="purchase_return"
    )


class PurchaseReturnLine(Base):
    __tablename__ = "purchase_return_lines"

    id: Mapped[int] = mapped_column(primary_key=True)
    return_id: Mapped[int] = mapped_column(
        ForeignKey("purchase_returns.id"), nullable=False, index=True
    )
    purchase_line_id: Mapped[int] = mapped_column(
        ForeignKey("purchase_lines.id"), nullable=False
    )
    qty: Mapped[int] = mapped_column(Integer, nullable=False)

    purchase_return: Mapped["PurchaseReturn"] = relationship(
        back_populates="lines"
    )
    purchase_line: Mapped["PurchaseLine"] = relationship()
