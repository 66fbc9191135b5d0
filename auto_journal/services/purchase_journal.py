"""
Purchase postings: goods receipt, supplier payment, purchase return.

Accounting:
    Receipt:  DEBIT Inventory         CREDIT Accounts Payable
    Payment:  DEBIT Accounts Payable  CREDIT Cash / Bank
    Return:   DEBIT Accounts Payable  CREDIT Inventory

Receipts and payments are numbered documents of their own
(RCV-YYYYMM-NNNN, PAY-YYYYMM-NNNN). Each one gets its own
journal entry, so a purchase received in three deliveries
and paid in two instalments has five entries. The purchase
itself becomes completed once it is fully received and
fully paid.
"""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from auto_journal.config import get_settings
from auto_journal.models.enums import (
    DocumentStatus,
    EventType,
    PaymentMethod,
    PaymentStatus,
    ReferenceType,
    Side,
)
from auto_journal.models.purchase import (
    Purchase,
    PurchasePayment,
    PurchaseReceipt,
    PurchaseReceiptLine,
    PurchaseReturn,
)
from auto_journal.schemas.posting import PurchaseJournalRequest, PurchaseReturnJournalRequest
from auto_journal.services.account_resolver import AccountLookup, SettingKey
from auto_journal.services.exceptions import PostingValidationError
from auto_journal.services.handler import PostingHandler
from auto_journal.services.journal_service import JournalDraft, PostingResult, is_completed, money
from auto_journal.services.numbering import DocumentNumberService

logger = logging.getLogger(__name__)


class PurchaseJournalService(PostingHandler):

    def __init__(self, db: Session, resolver=None, today=None, settings=None):
        super().__init__(db, resolver=resolver, today=today)
        self.settings = settings or get_settings()
        self.numbers = DocumentNumberService(db)

    def post(self, request: PurchaseJournalRequest) -> PostingResult:
        if request.operation_type == "receive":
            return self.receive(request)
        return self.pay(request)

    # --- Goods receipt ---

    def receive(self, request: PurchaseJournalRequest) -> PostingResult:
        logger.info("Posting goods receipt for purchase %s", request.purchase_id)
        self._ensure_period_open()

        purchase = self._load(Purchase, request.purchase_id, "Purchase")
        if is_completed(purchase) or (
            purchase.lines and purchase.is_fully_received
        ):
            return self._already_received(purchase)
        self._ensure_postable(purchase)

        receipt_lines = self._receipt_lines(purchase, request)
        amount = sum(
            (Decimal(qty) * line.unit_cost for line, qty in receipt_lines),
            Decimal("0"),
        )

        inventory_id = self.resolver.require(
            AccountLookup(
                EventType.PURCHASE_RECEIVE, Side.DEBIT,
                setting_keys=(SettingKey.INVENTORY,),
            ),
            label="Inventory",
        )
        payable_id = self.resolver.require(
            AccountLookup(
                EventType.PURCHASE_RECEIVE, Side.CREDIT,
                setting_keys=(SettingKey.PAYABLE,),
            ),
            label="Accounts payable",
        )

        receipt_date = request.transaction_date or self.posting_date
        receipt = PurchaseReceipt(
            receipt_no=self.numbers.next_number(
                self.settings.RECEIPT_NUMBER_PREFIX,
                receipt_date,
                seed_column=PurchaseReceipt.receipt_no,
            ),
            purchase_id=purchase.id,
            receipt_date=receipt_date,
            total_amount=money(amount),
        )
        for line, qty in receipt_lines:
            receipt.lines.append(PurchaseReceiptLine(
                purchase_line_id=line.id, qty=qty, unit_cost=line.unit_cost,
            ))
        self.db.add(receipt)
        self.db.flush()

        supplier = purchase.supplier.name if purchase.supplier else "supplier"
        draft = JournalDraft(
            entry_date=receipt_date,
            description=f"Goods receipt {receipt.receipt_no} from {supplier} - {purchase.purchase_no}",
            reference_type=ReferenceType.PURCHASE_RECEIPT,
            reference_id=receipt.id,
        )
        draft.debit(inventory_id, amount, f"Inventory received - {receipt.receipt_no}")
        draft.credit(payable_id, amount, f"Payable to {supplier}")
        entry = self.journals.post(draft, EventType.PURCHASE_RECEIVE.value)

        receipt.journal_entry_id = entry.id
        receipt.status = DocumentStatus.COMPLETED
        for line, qty in receipt_lines:
            line.qty_received = (line.qty_received or 0) + qty
        purchase.received_date = receipt_date
        self._refresh_status(purchase)
        self.db.flush()

        logger.info(
            "Receipt %s posted for purchase %s (%s)",
            receipt.receipt_no, purchase.purchase_no, purchase.status,
        )
        return PostingResult(
            journal_entry_id=entry.id,
            details={
                "operation_type": "receive",
                "receipt_no": receipt.receipt_no,
                "amount": money(amount),
                "purchase_status": purchase.status,
            },
        )

    def _receipt_lines(self, purchase: Purchase, request: PurchaseJournalRequest):
        """(purchase line, qty) pairs for this receipt."""
        if request.receipt_lines is None:
            pairs = [
                (line, line.qty_remaining)
                for line in purchase.lines
                if line.qty_remaining > 0
            ]
        else:
            lines_by_id = {line.id: line for line in purchase.lines}
            requested: dict[int, int] = {}
            for item in request.receipt_lines:
                if item.purchase_line_id not in lines_by_id:
                    raise PostingValidationError(
                        f"Line {item.purchase_line_id} does not belong to "
                        f"purchase {purchase.purchase_no}"
                    )
                requested[item.purchase_line_id] = (
                    requested.get(item.purchase_line_id, 0) + item.qty
                )
            pairs = []
            for line_id, qty in requested.items():
                line = lines_by_id[line_id]
                if qty > line.qty_remaining:
                    raise PostingValidationError(
                        f"Cannot receive {qty} on line {line_id}: "
                        f"only {line.qty_remaining} outstanding"
                    )
                pairs.append((line, qty))

        if not pairs:
            raise PostingValidationError(
                f"Nothing to receive on purchase {purchase.purchase_no}"
            )
        return pairs

    def _already_received(self, purchase: Purchase) -> PostingResult:
        latest = self.db.execute(
            select(PurchaseReceipt)
            .where(PurchaseReceipt.purchase_id == purchase.id)
            .order_by(PurchaseReceipt.id.desc())
            .limit(1)
        ).scalar_one_or_none()
        logger.info("Purchase %s already fully received", purchase.purchase_no)
        return PostingResult(
            journal_entry_id=latest.journal_entry_id if latest else None,
            already_processed=True,
            details={
                "operation_type": "receive",
                "receipt_no": latest.receipt_no if latest else None,
                "purchase_status": purchase.status,
            },
        )

    # --- Supplier payment ---

    def pay(self, request: PurchaseJournalRequest) -> PostingResult:
        logger.info("Posting supplier payment for purchase %s", request.purchase_id)
        self._ensure_period_open()

        purchase = self._load(Purchase, request.purchase_id, "Purchase")
        if is_completed(purchase) or (
            purchase.payment_status == PaymentStatus.PAID
        ):
            logger.info("Purchase %s already fully paid", purchase.purchase_no)
            return PostingResult(
                journal_entry_id=None,
                already_processed=True,
                details={
                    "operation_type": "payment",
                    "purchase_status": purchase.status,
                },
            )
        self._ensure_postable(purchase)

        if request.payment_method == PaymentMethod.CREDIT:
            raise PostingValidationError(
                "A supplier payment must be made by cash or bank"
            )

        amount = money(request.payment_amount)
        outstanding = money(purchase.total_amount - (purchase.paid_amount or 0))
        if amount > outstanding:
            raise PostingValidationError(
                f"Payment {amount} exceeds outstanding balance {outstanding} "
                f"on purchase {purchase.purchase_no}"
            )

        payable_id = self.resolver.require(
            AccountLookup(
                EventType.PURCHASE_PAYMENT, Side.DEBIT,
                setting_keys=(SettingKey.PAYABLE,),
            ),
            label="Accounts payable",
        )
        money_account_id = self._money_account(request)

        payment_date = request.transaction_date or self.posting_date
        payment = PurchasePayment(
            payment_no=self.numbers.next_number(
                self.settings.PAYMENT_NUMBER_PREFIX,
                payment_date,
                seed_column=PurchasePayment.payment_no,
            ),
            purchase_id=purchase.id,
            payment_date=payment_date,
            amount=amount,
            payment_method=request.payment_method.value,
            bank_account_id=request.bank_account_id,
        )
        self.db.add(payment)
        self.db.flush()

        supplier = purchase.supplier.name if purchase.supplier else "supplier"
        draft = JournalDraft(
            entry_date=payment_date,
            description=f"Payment {payment.payment_no} to {supplier} - {purchase.purchase_no}",
            reference_type=ReferenceType.PURCHASE_PAYMENT,
            reference_id=payment.id,
        )
        draft.debit(payable_id, amount, f"Settle payable - {purchase.purchase_no}")
        draft.credit(money_account_id, amount, f"Paid by {request.payment_method.value}")
        entry = self.journals.post(draft, EventType.PURCHASE_PAYMENT.value)

        payment.journal_entry_id = entry.id
        payment.status = DocumentStatus.COMPLETED
        purchase.paid_amount = money((purchase.paid_amount or 0) + amount)
        purchase.payment_status = (
            PaymentStatus.PAID
            if purchase.paid_amount >= money(purchase.total_amount)
            else PaymentStatus.PARTIAL
        )
        self._refresh_status(purchase)
        self.db.flush()

        logger.info(
            "Payment %s posted for purchase %s (%s)",
            payment.payment_no, purchase.purchase_no, purchase.payment_status,
        )
        return PostingResult(
            journal_entry_id=entry.id,
            details={
                "operation_type": "payment",
                "payment_no": payment.payment_no,
                "amount": amount,
                "purchase_status": purchase.status,
            },
        )

    def _money_account(self, request: PurchaseJournalRequest) -> int:
        if request.payment_method == PaymentMethod.CASH:
            return self.resolver.require(
                AccountLookup(
                    EventType.PURCHASE_PAYMENT, Side.CREDIT, context="cash",
                    setting_keys=(SettingKey.CASH,),
                ),
                label="Cash",
            )

        linked = self._linked_bank_account(request.bank_account_id)
        if linked is not None:
            return linked

        return self.resolver.require(
            AccountLookup(
                EventType.PURCHASE_PAYMENT, Side.CREDIT, context="bank",
                setting_keys=(SettingKey.BANK,),
            ),
            label="Bank",
        )

    # --- Purchase return ---

    def return_goods(self, request: PurchaseReturnJournalRequest) -> PostingResult:
        logger.info("Posting purchase return %s", request.return_id)
        self._ensure_period_open()

        purchase_return = self._load(PurchaseReturn, request.return_id, "Purchase return")
        if is_completed(purchase_return):
            return self._already_processed(
                ReferenceType.PURCHASE_RETURN, purchase_return.id,
            )

        amount = sum(
            (Decimal(line.qty) * line.purchase_line.unit_cost for line in purchase_return.lines),
            Decimal("0"),
        )
        if amount <= 0:
            raise PostingValidationError(
                f"Purchase return {purchase_return.return_no} has no value to post"
            )

        payable_id = self.resolver.require(
            AccountLookup(
                EventType.PURCHASE_RETURN, Side.DEBIT,
                setting_keys=(SettingKey.PAYABLE,),
            ),
            label="Accounts payable",
        )
        inventory_id = self.resolver.require(
            AccountLookup(
                EventType.PURCHASE_RETURN, Side.CREDIT,
                setting_keys=(SettingKey.INVENTORY,),
            ),
            label="Inventory",
        )

        purchase = purchase_return.purchase
        supplier = purchase.supplier.name if purchase.supplier else "supplier"
        draft = JournalDraft(
            entry_date=self.posting_date,
            description=f"Purchase return {purchase_return.return_no} - {supplier}",
            reference_type=ReferenceType.PURCHASE_RETURN,
            reference_id=purchase_return.id,
        )
        draft.debit(payable_id, amount, f"Return - payable - {purchase_return.return_no}")
        draft.credit(inventory_id, amount, f"Return - inventory - {purchase_return.return_no}")
        entry = self.journals.post(draft, EventType.PURCHASE_RETURN.value)

        self._complete(purchase_return)
        return PostingResult(
            journal_entry_id=entry.id,
            details={"amount": money(amount)},
        )

    # --- Helpers ---

    @staticmethod
    def _ensure_postable(purchase: Purchase) -> None:
        if purchase.status in (DocumentStatus.CANCELLED, DocumentStatus.DRAFT):
            raise PostingValidationError(
                f"Purchase {purchase.purchase_no} is {purchase.status}"
            )

    @staticmethod
    def _refresh_status(purchase: Purchase) -> None:
        fully_received = purchase.is_fully_received
        fully_paid = purchase.payment_status == PaymentStatus.PAID
        if fully_received and fully_paid:
            purchase.status = DocumentStatus.COMPLETED
        elif fully_received:
            purchase.status = DocumentStatus.RECEIVED
        elif any(line.qty_received for line in purchase.lines):
            purchase.status = DocumentStatus.PARTIAL
