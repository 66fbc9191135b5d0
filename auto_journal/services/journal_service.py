"""
Journal service - the only writer of journal entries.

Every posting handler builds a JournalDraft in memory and
hands it to JournalService.post(), which enforces the rules
no handler may bypass:

1. A journal has at least one line
2. Every journal balances (debits = credits)
3. Every account exists and is active
4. One business record gets at most one journal entry

Nothing is written unless all checks pass. The service only
flushes; the caller owns the commit.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from auto_journal.models.audit_log import AuditLog
from auto_journal.models.chart_account import ChartAccount
from auto_journal.models.enums import DocumentStatus, ReferenceType, JournalStatus
from auto_journal.models.journal import JournalEntry, JournalLine
from auto_journal.services.exceptions import (
    AccountResolutionError,
    PostingValidationError,
    SourceNotFoundError,
    UnbalancedJournalError,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
_CENT = Decimal("0.0001")


def money(value) -> Decimal:
    """Coerce a number to a Decimal at ledger precision."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def is_completed(record) -> bool:
    """True once the engine has already posted this source record."""
    return getattr(record, "status", None) == DocumentStatus.COMPLETED


@dataclass
class DraftLine:
    account_id: int
    debit: Decimal
    credit: Decimal
    description: str | None = None


@dataclass
class PostingResult:
    """What a posting handler reports back to the API layer."""
    journal_entry_id: int | None
    already_processed: bool = False
    details: dict = field(default_factory=dict)


class JournalDraft:
    """
    An unsaved journal entry.

    Zero amounts are dropped silently so a recipe can add every
    line it might need; negative amounts are a bug in the
    caller's arithmetic and are rejected.
    """

    def __init__(
        self,
        entry_date: date,
        description: str,
        reference_type: ReferenceType,
        reference_id: int,
    ):
        self.entry_date = entry_date
        self.description = description
        self.reference_type = reference_type
        self.reference_id = reference_id
        self.lines: list[DraftLine] = []

    def debit(self, account_id: int, amount, description: str | None = None) -> "JournalDraft":
        return self._add(account_id, money(amount), ZERO, description)

    def credit(self, account_id: int, amount, description: str | None = None) -> "JournalDraft":
        return self._add(account_id, ZERO, money(amount), description)

    def _add(self, account_id, debit, credit, description):
        if debit < 0 or credit < 0:
            raise PostingValidationError(
                f"Negative amount for account {account_id}: "
                f"debit={debit}, credit={credit}"
            )
        if debit == 0 and credit == 0:
            return self
        self.lines.append(DraftLine(account_id, debit, credit, description))
        return self

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit

    def __len__(self) -> int:
        return len(self.lines)


class JournalService:

    def __init__(self, db: Session):
        self.db = db

    def find_by_reference(
        self, reference_type: ReferenceType, reference_id: int
    ) -> JournalEntry | None:
        return self.db.execute(
            select(JournalEntry).where(
                JournalEntry.reference_type == reference_type,
                JournalEntry.reference_id == reference_id,
            )
        ).scalar_one_or_none()

    def post(self, draft: JournalDraft, event_type: str) -> JournalEntry:
        """
        Validate and persist a draft as one journal entry.

        If the reference pair already has an entry, that entry
        is returned and nothing is written.
        """
        existing = self.find_by_reference(draft.reference_type, draft.reference_id)
        if existing:
            logger.info(
                "Journal for %s %s already exists (entry %s)",
                draft.reference_type.value, draft.reference_id, existing.id,
            )
            return existing

        if not draft.lines:
            raise PostingValidationError(
                f"Journal for {draft.reference_type.value} "
                f"{draft.reference_id} has no lines"
            )

        if not draft.is_balanced:
            raise UnbalancedJournalError(
                f"Journal does not balance: "
                f"debits={draft.total_debit}, credits={draft.total_credit}"
            )

        self._validate_accounts({line.account_id for line in draft.lines})

        entry = JournalEntry(
            entry_date=draft.entry_date,
            description=draft.description[:255],
            reference_type=draft.reference_type,
            reference_id=draft.reference_id,
            total_debit=draft.total_debit,
            total_credit=draft.total_credit,
            status=JournalStatus.POSTED,
        )
        for line in draft.lines:
            entry.lines.append(JournalLine(
                account_id=line.account_id,
                debit=line.debit,
                credit=line.credit,
                description=(line.description or draft.description)[:255],
            ))
        self.db.add(entry)
        self.db.flush()

        self.db.add(AuditLog(
            event_type=event_type,
            reference_type=draft.reference_type.value,
            reference_id=draft.reference_id,
            details=json.dumps({
                "journal_entry_id": entry.id,
                "lines": len(draft.lines),
                "total": str(draft.total_debit),
            }),
        ))
        self.db.flush()

        logger.info(
            "Posted journal %s for %s %s (%s lines, total %s)",
            entry.id, draft.reference_type.value, draft.reference_id,
            len(draft.lines), draft.total_debit,
        )
        return entry

    def _validate_accounts(self, account_ids: set[int]) -> None:
        accounts = self.db.execute(
            select(ChartAccount).where(ChartAccount.id.in_(account_ids))
        ).scalars().all()
        accounts_by_id = {a.id: a for a in accounts}

        missing = account_ids - set(accounts_by_id)
        if missing:
            raise AccountResolutionError(
                f"Accounts not found: {sorted(missing)}"
            )

        for account in accounts_by_id.values():
            if not account.is_active:
                raise AccountResolutionError(
                    f"Account {account.code} is not active"
                )

    def get_entry(self, entry_id: int) -> JournalEntry:
        entry = self.db.execute(
            select(JournalEntry)
            .options(selectinload(JournalEntry.lines))
            .where(JournalEntry.id == entry_id)
        ).scalar_one_or_none()
        if entry is None:
            raise SourceNotFoundError("Journal entry", entry_id)
        return entry
