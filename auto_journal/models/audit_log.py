"""
Audit log model.

Every posting leaves one row here, written in the same
transaction as the journal entry itself: the event that was
posted, the source document it came from, and a short
summary of the amounts.
"""

from datetime import datetime

from sqlalchemy import String, Integer, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from auto_journal.models.base import Base


class AuditLog(Base):
    """Append-only record of a posting. Never updated or deleted."""

    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(primary_key=True)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    reference_type: Mapped[str | None] = mapped_column(
        String(50), nullable=True
    )
    reference_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    details: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
