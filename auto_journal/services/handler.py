"""
Common plumbing for the per-event posting handlers.

Every handler runs the same sequence:

1. Period guard - is today inside an open period?
2. Load the source record (404 if missing)
3. Idempotency guard - already completed? then succeed, no writes
4. Resolve every account the recipe needs (abort on any miss)
5. Build the draft in memory
6. Post it through JournalService (balance is checked there)
7. Mark the source record completed

Steps 1-5 never write. The caller commits once, so steps 6
and 7 land together or not at all.
"""

import logging
from datetime import date

from sqlalchemy.orm import Session

from auto_journal.models.chart_account import BankAccount
from auto_journal.models.enums import DocumentStatus, ReferenceType
from auto_journal.services.account_resolver import AccountResolver
from auto_journal.services.exceptions import PostingValidationError, SourceNotFoundError
from auto_journal.services.journal_service import JournalService, PostingResult
from auto_journal.services.period_guard import PeriodGuard

logger = logging.getLogger(__name__)


class PostingHandler:

    def __init__(self, db: Session, resolver: AccountResolver | None = None, today: date | None = None):
        self.db = db
        self.today = today
        self.period_guard = PeriodGuard(db)
        self.resolver = resolver or AccountResolver(db)
        self.journals = JournalService(db)

    @property
    def posting_date(self) -> date:
        return self.today or date.today()

    def _ensure_period_open(self) -> None:
        self.period_guard.ensure_open(self.posting_date)

    def _load(self, model, record_id: int, label: str):
        record = self.db.get(model, record_id)
        if record is None:
            raise SourceNotFoundError(label, record_id)
        return record

    def _linked_bank_account(self, bank_account_id: int | None) -> int | None:
        """
        Ledger account of a company bank account, or None.

        An id that names no bank account is rejected.
        """
        if bank_account_id is None:
            return None
        if self.db.get(BankAccount, bank_account_id) is None:
            raise PostingValidationError(f"Bank account {bank_account_id} not found")
        return self.resolver.bank_ledger_account(bank_account_id)

    def _already_processed(self, reference_type: ReferenceType, record_id: int, **details) -> PostingResult:
        entry = self.journals.find_by_reference(reference_type, record_id)
        logger.info(
            "%s %s already completed; skipping", reference_type.value, record_id
        )
        return PostingResult(
            journal_entry_id=entry.id if entry else None,
            already_processed=True,
            details=details,
        )

    def _complete(self, record) -> None:
        record.status = DocumentStatus.COMPLETED
        self.db.flush()
