"""Business logic services."""

from auto_journal.services.account_resolver import AccountResolver, AccountLookup
from auto_journal.services.period_guard import PeriodGuard
from auto_journal.services.journal_service import JournalService, JournalDraft
from auto_journal.services.numbering import DocumentNumberService
from auto_journal.services.purchase_journal import PurchaseJournalService
from auto_journal.services.sales_journal import SalesJournalService
from auto_journal.services.inventory_journal import InventoryJournalService
from auto_journal.services.settlement_journal import SettlementJournalService

__all__ = [
    "AccountResolver",
    "AccountLookup",
    "PeriodGuard",
    "JournalService",
    "JournalDraft",
    "DocumentNumberService",
    "PurchaseJournalService",
    "SalesJournalService",
    "InventoryJournalService",
    "SettlementJournalService",
]
