"""
Accounting period model.

A period is a date range during which postings are allowed.
Closing a period (is_open=False) blocks every automated
posting dated inside it.
"""

from datetime import date

from sqlalchemy import String, Boolean, Date
from sqlalchemy.orm import Mapped, mapped_column

from auto_journal.models.base import Base


class AccountingPeriod(Base):
    __tablename__ = "accounting_periods"

    id: Mapped[int] = mapped_column(primary_key=True)
    period_name: Mapped[str] = mapped_column(String(50), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_open: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"<AccountingPeriod {self.period_name} ({state})>"
