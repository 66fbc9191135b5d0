"""
Chart of accounts.

Static reference data: every ledger account the engine can
post to. Rows are maintained by an administrator; the engine
only reads them.
"""

from datetime import datetime

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from auto_journal.models.base import Base
from auto_journal.models.enums import AccountType


class ChartAccount(Base):
    """
    A single account in the chart of accounts.

    The account type describes the normal balance side, but the
    engine does not enforce it: callers decide which side an
    account lands on.
    """

    __tablename__ = "chart_of_accounts"

    id: Mapped[int] = mapped_column(primary_key=True)
    code: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    account_type: Mapped[AccountType] = mapped_column(
        SAEnum(AccountType, name="account_type_enum"),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<ChartAccount {self.code} ({self.account_type.value})>"


class BankAccount(Base):
    """
    A company bank account and the ledger account it posts to.

    Payments made or received through a specific bank account
    debit or credit its linked chart account (the bank
    sub-ledger) instead of the generic bank account.
    """

    __tablename__ = "bank_accounts"

    id: Mapped[int] = mapped_column(primary_key=True)
    bank_name: Mapped[str] = mapped_column(String(100), nullable=False)
    account_number: Mapped[str] = mapped_column(String(50), nullable=False)
    account_holder: Mapped[str] = mapped_column(String(100), nullable=False)
    account_id: Mapped[int | None] = mapped_column(
        ForeignKey("chart_of_accounts.id"), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )

    account: Mapped["ChartAccount | None"] = relationship()

    def __repr__(self) -> str:
        return f"<BankAccount {self.bank_name} {self.account_number}>"
