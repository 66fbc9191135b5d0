"""
Marketplace payout model.

A payout is the marketplace settling what it owes: gross
sales minus its fees, transferred to one of our bank
accounts.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import String, Date, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from auto_journal.models.base import Base
from auto_journal.models.enums import DocumentStatus


class MarketplacePayout(Base):
    __tablename__ = "marketplace_payouts"

    id: Mapped[int] = mapped_column(primary_key=True)
    payout_reference: Mapped[str] = mapped_column(String(100), nullable=False)
    marketplace_code: Mapped[str] = mapped_column(String(30), nullable=False)
    payout_date: Mapped[date] = mapped_column(Date, nullable=False)
    bank_account_id: Mapped[int | None] = mapped_column(
        ForeignKey("bank_accounts.id"), nullable=True
    )
    gross_sales: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    total_fee: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    net_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DocumentStatus.PENDING
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    bank_account: Mapped["BankAccount | None"] = relationship()

    def __repr__(self) -> str:
        return f"<MarketplacePayout {self.payout_reference} ({self.status})>"
