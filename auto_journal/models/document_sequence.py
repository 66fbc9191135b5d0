"""
Document sequence model.

One row per (prefix, YYYYMM). The row is locked while the next
number is taken, so two receipts created in the same month
can never get the same number.
"""

from sqlalchemy import String, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from auto_journal.models.base import Base


class DocumentSequence(Base):
    __tablename__ = "document_sequences"
    __table_args__ = (
        UniqueConstraint("prefix", "period", name="uq_document_sequence"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    prefix: Mapped[str] = mapped_column(String(20), nullable=False)
    period: Mapped[str] = mapped_column(String(6), nullable=False)
    last_value: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    def __repr__(self) -> str:
        return f"<DocumentSequence {self.prefix}-{self.period} @ {self.last_value}>"
