"""
Customer and customer payment models.

A customer may be linked to one of the company's bank
accounts: their transfers always land there, so a bank
payment without an explicit bank account uses that link.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import String, Boolean, Date, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from auto_journal.models.base import Base
from auto_journal.models.enums import DocumentStatus


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    bank_account_id: Mapped[int | None] = mapped_column(
        ForeignKey("bank_accounts.id"), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    bank_account: Mapped["BankAccount | None"] = relationship()
    payments: Mapped[list["CustomerPayment"]] = relationship(
        back_populates="customer"
    )

    def __repr__(self) -> str:
        return f"<Customer {self.name}>"


class CustomerPayment(Base):
    """Money received from a customer against their receivable."""

    __tablename__ = "customer_payments"

    id: Mapped[int] = mapped_column(primary_key=True)
    payment_no: Mapped[str] = mapped_column(
        String(30), unique=True, nullable=False
    )
    customer_id: Mapped[int] = mapped_column(
        ForeignKey("customers.id"), nullable=False, index=True
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
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    customer: Mapped["Customer"] = relationship(back_populates="payments")
    bank_account: Mapped["BankAccount | None"] = relationship()

    def __repr__(self) -> str:
        return f"<CustomerPayment {self.payment_no} {self.amount} ({self.status})>"
