"""
Pydantic schemas for the posting endpoints.

One request schema per business event. Each carries only the
id of the source record plus the few fields the caller decides
at posting time; amounts come from the stored documents.
"""

from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import Field, model_validator

from auto_journal.models.enums import PaymentMethod
from auto_journal.schemas.base import CamelModel


# --- Request Schemas ---

class ReceiptLineInput(CamelModel):
    """Quantity received against one purchase line."""
    purchase_line_id: int
    qty: int = Field(gt=0)


class PurchaseJournalRequest(CamelModel):
    """
    Goods receipt or supplier payment for a purchase.

    receive: receipt_lines lists what arrived; omitted means
    everything still outstanding.
    payment: payment_amount is required.
    """
    purchase_id: int
    operation_type: Literal["receive", "payment"]
    receipt_lines: list[ReceiptLineInput] | None = None
    payment_amount: Decimal | None = Field(default=None, gt=0)
    payment_method: PaymentMethod = PaymentMethod.BANK
    bank_account_id: int | None = None
    transaction_date: date | None = None

    @model_validator(mode="after")
    def payment_needs_amount(self):
        if self.operation_type == "payment" and self.payment_amount is None:
            raise ValueError("paymentAmount is required for a payment")
        return self


class PurchaseReturnJournalRequest(CamelModel):
    return_id: int


class SalesJournalRequest(CamelModel):
    """
    Confirmation of a sales order.

    Anything left out falls back to what is stored on the order.
    payment_account_id is a company bank account id. paid_amount is the
    part of the net settled at confirmation; the rest stays receivable.
    """
    sales_order_id: int
    payment_method: PaymentMethod | None = None
    payment_account_id: int | None = None
    discount_amount: Decimal | None = Field(default=None, ge=0)
    fee_amount: Decimal | None = Field(default=None, ge=0)
    paid_amount: Decimal | None = Field(default=None, ge=0)


class SalesReturnRecord(CamelModel):
    id: int


class SalesReturnJournalRequest(CamelModel):
    """Either return_id or the return row itself (record) identifies the return."""
    return_id: int | None = None
    record: SalesReturnRecord | None = None

    @model_validator(mode="after")
    def needs_return_id(self):
        if self.return_id is None and self.record is None:
            raise ValueError("returnId or record is required")
        return self

    @property
    def target_id(self) -> int:
        return self.return_id if self.return_id is not None else self.record.id


class StockAdjustmentRequest(CamelModel):
    """adjustment_qty is signed: positive adds stock, negative removes it."""
    variant_id: int
    adjustment_qty: int
    reason: str = Field(min_length=1, max_length=255)
    unit_cost: Decimal


class OpnameJournalRequest(CamelModel):
    opname_id: int


class PayoutJournalRequest(CamelModel):
    payout_id: int


class CustomerPaymentJournalRequest(CamelModel):
    payment_id: int


# --- Response Schemas ---

class PostingResponse(CamelModel):
    """
    Result of a posting.

    already_processed is true when the source record had been
    posted before; nothing was written on this call. The
    remaining fields echo whatever the event produced.
    """
    success: bool = True
    journal_entry_id: int | None = None
    already_processed: bool = False
    message: str | None = None
    operation_type: Literal["receive", "payment"] | None = None
    receipt_no: str | None = None
    payment_no: str | None = None
    purchase_status: str | None = None
    movement_id: int | None = None
    opname_no: str | None = None
    payout_reference: str | None = None
    amount: Decimal | None = None
    net_amount: Decimal | None = None
    paid_amount: Decimal | None = None
    total_debit: Decimal | None = None
    total_credit: Decimal | None = None
