"""
Pydantic schemas for reading posted journals.
"""

from datetime import date, datetime
from decimal import Decimal

from auto_journal.models.enums import ReferenceType
from auto_journal.schemas.base import CamelModel


class JournalLineResponse(CamelModel):
    id: int
    account_id: int
    debit: Decimal
    credit: Decimal
    description: str


class JournalEntryResponse(CamelModel):
    id: int
    entry_date: date
    description: str
    reference_type: ReferenceType
    reference_id: int
    total_debit: Decimal
    total_credit: Decimal
    status: str
    created_at: datetime
    lines: list[JournalLineResponse]
