"""
Sequential document numbering.

Numbers look like PREFIX-YYYYMM-NNNN and restart at 0001 every
month. The counter lives in document_sequences, one row per
(prefix, month), and the row is locked (SELECT ... FOR UPDATE)
while the next value is taken. Two concurrent requests can
therefore never get the same number; if both try to create the
month's row at once, the unique constraint rejects one.
"""

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from auto_journal.models.document_sequence import DocumentSequence

logger = logging.getLogger(__name__)

SEQUENCE_WIDTH = 4


def format_number(prefix: str, period: str, value: int) -> str:
    return f"{prefix}-{period}-{value:0{SEQUENCE_WIDTH}d}"


def parse_sequence(number: str | None) -> int:
    """Trailing counter of a document number; 0 if it has none."""
    if not number:
        return 0
    tail = number.rsplit("-", 1)[-1]
    try:
        return int(tail)
    except ValueError:
        return 0


class DocumentNumberService:

    def __init__(self, db: Session):
        self.db = db

    def next_number(self, prefix: str, on_date: date | None = None, seed_column=None) -> str:
        """
        Take the next number for prefix in on_date's month.

        seed_column is the column holding numbers issued before
        the sequence table existed (e.g. PurchaseReceipt.receipt_no).
        The first time a month is used, its counter starts after
        the highest of those numbers so old series continue.
        """
        on_date = on_date or date.today()
        period = on_date.strftime("%Y%m")

        sequence = self.db.execute(
            select(DocumentSequence)
            .where(
                DocumentSequence.prefix == prefix,
                DocumentSequence.period == period,
            )
            .with_for_update()
        ).scalar_one_or_none()

        if sequence is None:
            sequence = DocumentSequence(
                prefix=prefix,
                period=period,
                last_value=self._highest_existing(prefix, period, seed_column),
            )
            self.db.add(sequence)

        sequence.last_value += 1
        self.db.flush()

        number = format_number(prefix, period, sequence.last_value)
        logger.debug("Issued document number %s", number)
        return number

    def _highest_existing(self, prefix: str, period: str, seed_column) -> int:
        if seed_column is None:
            return 0
        # String order matches numeric order while counters stay at four digits.
        latest = self.db.execute(
            select(seed_column)
            .where(seed_column.like(f"{prefix}-{period}-%"))
            .order_by(seed_column.desc())
            .limit(1)
        ).scalar_one_or_none()
        return parse_sequence(latest)
