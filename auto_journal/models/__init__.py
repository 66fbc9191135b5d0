"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from auto_journal.models.base import Base
from auto_journal.models.enums import (
    AccountType,
    Side,
    EventType,
    ReferenceType,
    DocumentStatus,
    PaymentStatus,
    PaymentMethod,
    ProductType,
    JournalStatus,
)
from auto_journal.models.audit_log import AuditLog
from auto_journal.models.chart_account import ChartAccount, BankAccount
from auto_journal.models.account_mapping import AccountMapping, AppSetting
from auto_journal.models.accounting_period import AccountingPeriod
from auto_journal.models.document_sequence import DocumentSequence
from auto_journal.models.journal import JournalEntry, JournalLine
from auto_journal.models.customer import Customer, CustomerPayment
from auto_journal.models.inventory import (
    ProductVariant,
    StockMovement,
    StockOpname,
    StockOpnameLine,
)
from auto_journal.models.purchase import (
    Supplier,
    Purchase,
    PurchaseLine,
    PurchaseReceipt,
    PurchaseReceiptLine,
    PurchasePayment,
    PurchaseReturn,
    PurchaseReturnLine,
)
from auto_journal.models.sales import (
    SalesOrder,
    SalesOrderItem,
    SalesReturn,
    SalesReturnLine,
)
from auto_journal.models.payout import MarketplacePayout

__all__ = [
    "Base",
    "AccountType",
    "Side",
    "EventType",
    "ReferenceType",
    "DocumentStatus",
    "PaymentStatus",
    "PaymentMethod",
    "ProductType",
    "JournalStatus",
    "AuditLog",
    "ChartAccount",
    "BankAccount",
    "AccountMapping",
    "AppSetting",
    "AccountingPeriod",
    "DocumentSequence",
    "JournalEntry",
    "JournalLine",
    "Customer",
    "CustomerPayment",
    "ProductVariant",
    "StockMovement",
    "StockOpname",
    "StockOpnameLine",
    "Supplier",
    "Purchase",
    "PurchaseLine",
    "PurchaseReceipt",
    "PurchaseReceiptLine",
    "PurchasePayment",
    "PurchaseReturn",
    "PurchaseReturnLine",
    "SalesOrder",
    "SalesOrderItem",
    "SalesReturn",
    "SalesReturnLine",
    "MarketplacePayout",
]
