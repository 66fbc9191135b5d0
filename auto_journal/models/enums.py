"""
Shared enumerations for database models.

Enums that are stored in the database are mapped to database
enums, so an invalid account type or mapping side is caught
at the database level, not just in Python validation.
"""

import enum


class AccountType(str, enum.Enum):
    """The five fundamental accounting categories."""
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"


class Side(str, enum.Enum):
    """Which side of a journal line an account mapping feeds."""
    DEBIT = "debit"
    CREDIT = "credit"


class EventType(str, enum.Enum):
    """
    Event types understood by the account mapping table.

    The sales flow splits into several event types because a
    single sales order touches several unrelated account pairs
    (receivable, fee, discount, cost of goods sold).
    """
    PURCHASE_RECEIVE = "purchase_receive"
    PURCHASE_PAYMENT = "purchase_payment"
    PURCHASE_RETURN = "confirm_return_purchase"
    SALES_ORDER = "confirm_sales_order"
    SALES_PAYMENT = "sales_payment"
    SALES_DISCOUNT = "sales_discount"
    SALES_FEE = "sales_fee"
    SALES_COGS = "sales_cogs"
    SALES_RETURN = "sales_return"
    SALES_RETURN_COST = "sales_return_cost"
    CREDIT_NOTE = "credit_note"
    STOCK_ADJUSTMENT = "stock_adjustment"
    STOCK_OPNAME = "stock_opname"
    MARKETPLACE_PAYOUT = "marketplace_payout"
    CUSTOMER_PAYMENT = "customer_payment"


class ReferenceType(str, enum.Enum):
    """What a journal entry points back to."""
    PURCHASE_RECEIPT = "purchase_receipt"
    PURCHASE_PAYMENT = "purchase_payment"
    PURCHASE_RETURN = "purchase_return"
    SALES_ORDER = "sales_order"
    SALES_RETURN = "sales_return"
    CREDIT_NOTE = "credit_note"
    STOCK_ADJUSTMENT = "stock_adjustment"
    STOCK_OPNAME = "stock_opname"
    MARKETPLACE_PAYOUT = "marketplace_payout"
    CUSTOMER_PAYMENT = "customer_payment"


class DocumentStatus:
    """
    Status values shared by the source transaction tables.

    COMPLETED is terminal: it is written by the posting engine
    and is the idempotency signal for every handler.
    """
    DRAFT = "draft"
    PENDING = "pending"
    ORDERED = "ordered"
    PARTIAL = "partial"
    RECEIVED = "received"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus:
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    BANK = "bank"
    CREDIT = "credit"


class ProductType(str, enum.Enum):
    PRODUCTION = "production"
    PURCHASED = "purchased"
    SERVICE = "service"


class JournalStatus:
    POSTED = "posted"
