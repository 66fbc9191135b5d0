"""
Journal entry and journal line models.

A journal entry is the header of one balanced posting; its
lines are the individual debits and credits. Both are
append-only: corrections are made by posting a new entry,
never by editing an old one.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    String, Integer, Date, DateTime, Numeric, ForeignKey,
    UniqueConstraint, Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from auto_journal.models.base import Base
from auto_journal.models.enums import ReferenceType, JournalStatus


class JournalEntry(Base):
    """
    Header of a posted journal entry.

    (reference_type, reference_id) points back to the business
    record that produced the entry. It is unique: one business
    event, one entry.
    """

    __tablename__ = "journal_entries"
    __table_args__ = (
        UniqueConstraint(
            "reference_type", "reference_id", name="uq_journal_reference"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    reference_type: Mapped[ReferenceType] = mapped_column(
        SAEnum(
            ReferenceType,
            name="reference_type_enum",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    reference_id: Mapped[int] = mapped_column(
        Integer, nullable=False, index=True
    )
    total_debit: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    total_credit: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=JournalStatus.POSTED
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="entry", order_by="JournalLine.id"
    )

    def __repr__(self) -> str:
        return (
            f"<JournalEntry {self.id} {self.reference_type.value}:"
            f"{self.reference_id} {self.total_debit}>"
        )


class JournalLine(Base):
    """
    One debit or credit line.

    Exactly one of debit/credit is non-zero. The sum of debits
    over an entry equals the sum of credits; the JournalService
    enforces this before anything is written.
    """

    __tablename__ = "journal_lines"

    id: Mapped[int] = mapped_column(primary_key=True)
    entry_id: Mapped[int] = mapped_column(
        ForeignKey("journal_entries.id"), nullable=False, index=True
    )
    account_id: Mapped[int] = mapped_column(
        ForeignKey("chart_of_accounts.id"), nullable=False, index=True
    )
    debit: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    credit: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    description: Mapped[str] = mapped_column(String(255), nullable=False)

    entry: Mapped["JournalEntry"] = relationship(back_populates="lines")
    account: Mapped["ChartAccount"] = relationship()

    def __repr__(self) -> str:
        side = "Dr" if self.debit else "Cr"
        return f"<JournalLine {side} {self.account_id} {self.debit or self.credit}>"
