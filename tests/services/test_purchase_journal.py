"""
Tests for purchase postings: goods receipt, supplier payment
and purchase return.
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select

from auto_journal.models import (
    BankAccount,
    Purchase,
    PurchaseLine,
    PurchasePayment,
    PurchaseReceipt,
    PurchaseReturn,
    PurchaseReturnLine,
    Supplier,
)
from auto_journal.models.enums import DocumentStatus, PaymentMethod, PaymentStatus, ReferenceType
from auto_journal.schemas.posting import (
    PurchaseJournalRequest,
    PurchaseReturnJournalRequest,
    ReceiptLineInput,
)
from auto_journal.services.exceptions import PeriodClosedError, PostingValidationError
from auto_journal.services.purchase_journal import PurchaseJournalService

from conftest import assert_balanced, journal_entries, lines_by_account


def make_purchase(db_session, status=DocumentStatus.ORDERED):
    """Helper: purchase of 5 x 100 and 2 x 250 (total 1000)."""
    purchase = Purchase(
        purchase_no="PO-0001",
        supplier=Supplier(code="SUP-1", name="CV Sumber Makmur"),
        order_date=date.today(),
        status=status,
        lines=[
            PurchaseLine(qty_ordered=5, unit_cost=Decimal("100")),
            PurchaseLine(qty_ordered=2, unit_cost=Decimal("250")),
        ],
    )
    db_session.add(purchase)
    db_session.commit()
    return purchase


def receive(db_session, purchase, lines=None):
    result = PurchaseJournalService(db_session).post(PurchaseJournalRequest(
        purchase_id=purchase.id,
        operation_type="receive",
        receipt_lines=lines,
    ))
    db_session.commit()
    return result


def pay(db_session, purchase, amount, method=PaymentMethod.BANK, bank_account_id=None):
    result = PurchaseJournalService(db_session).post(PurchaseJournalRequest(
        purchase_id=purchase.id,
        operation_type="payment",
        payment_amount=amount,
        payment_method=method,
        bank_account_id=bank_account_id,
    ))
    db_session.commit()
    return result


# --- Goods receipt ---

class TestReceive:

    def test_full_receipt(self, db_session, accounts, open_period):
        purchase = make_purchase(db_session)

        result = receive(db_session, purchase)

        [entry] = journal_entries(db_session)
        assert result.journal_entry_id == entry.id
        assert result.details["amount"] == Decimal("1000")
        assert result.details["receipt_no"] == f"RCV-{date.today():%Y%m}-0001"
        assert_balanced(entry)
        assert entry.reference_type == ReferenceType.PURCHASE_RECEIPT
        totals = lines_by_account(entry)
        assert totals[accounts["inventory"].id] == (Decimal("1000"), 0)
        assert totals[accounts["payable"].id] == (0, Decimal("1000"))
        assert purchase.status == DocumentStatus.RECEIVED

    def test_partial_receipts_get_their_own_entries(self, db_session, accounts, open_period):
        purchase = make_purchase(db_session)
        first_line = purchase.lines[0]

        first = receive(db_session, purchase, [ReceiptLineInput(purchase_line_id=first_line.id, qty=3)])
        assert first.details["amount"] == Decimal("300")
        assert purchase.status == DocumentStatus.PARTIAL

        second = receive(db_session, purchase)
        assert second.details["amount"] == Decimal("700")
        assert second.details["receipt_no"].endswith("-0002")
        assert purchase.status == DocumentStatus.RECEIVED

        entries = journal_entries(db_session)
        assert len(entries) == 2
        for entry in entries:
            assert_balanced(entry)

    def test_over_receipt_rejected(self, db_session, accounts, open_period):
        purchase = make_purchase(db_session)
        line = purchase.lines[1]

        with pytest.raises(PostingValidationError, match="only 2 outstanding"):
            receive(db_session, purchase, [ReceiptLineInput(purchase_line_id=line.id, qty=3)])
        db_session.rollback()

        assert journal_entries(db_session) == []
        assert db_session.execute(select(PurchaseReceipt)).scalars().all() == []

    def test_foreign_line_rejected(self, db_session, accounts, open_period):
        purchase = make_purchase(db_session)
        with pytest.raises(PostingValidationError, match="does not belong"):
            receive(db_session, purchase, [ReceiptLineInput(purchase_line_id=999, qty=1)])

    def test_fully_received_is_already_processed(self, db_session, accounts, open_period):
        purchase = make_purchase(db_session)
        first = receive(db_session, purchase)

        again = receive(db_session, purchase)

        assert again.already_processed is True
        assert again.journal_entry_id == first.journal_entry_id
        assert len(journal_entries(db_session)) == 1

    def test_cancelled_purchase_rejected(self, db_session, accounts, open_period):
        purchase = make_purchase(db_session, status=DocumentStatus.CANCELLED)
        with pytest.raises(PostingValidationError, match="cancelled"):
            receive(db_session, purchase)

    def test_closed_period_writes_nothing(self, db_session, accounts):
        purchase = make_purchase(db_session)
        with pytest.raises(PeriodClosedError):
            receive(db_session, purchase)
        db_session.rollback()

        assert journal_entries(db_session) == []
        assert purchase.status == DocumentStatus.ORDERED


# --- Supplier payment ---

class TestPay:

    def test_bank_payment_uses_linked_bank_account(self, db_session, accounts, open_period):
        bank = BankAccount(
            bank_name="BCA", account_number="001", account_holder="Toko",
            account_id=accounts["bank"].id,
        )
        db_session.add(bank)
        purchase = make_purchase(db_session)
        receive(db_session, purchase)

        result = pay(db_session, purchase, Decimal("400"), bank_account_id=bank.id)

        entry = journal_entries(db_session)[-1]
        assert_balanced(entry)
        totals = lines_by_account(entry)
        assert totals[accounts["payable"].id] == (Decimal("400"), 0)
        assert totals[accounts["bank"].id] == (0, Decimal("400"))
        assert result.details["payment_no"] == f"PAY-{date.today():%Y%m}-0001"
        assert purchase.payment_status == PaymentStatus.PARTIAL

    def test_cash_payment(self, db_session, accounts, open_period):
        purchase = make_purchase(db_session)
        pay(db_session, purchase, Decimal("1000"), method=PaymentMethod.CASH)

        entry = journal_entries(db_session)[-1]
        assert lines_by_account(entry)[accounts["cash"].id] == (0, Decimal("1000"))
        assert purchase.payment_status == PaymentStatus.PAID

    def test_overpayment_rejected(self, db_session, accounts, open_period):
        purchase = make_purchase(db_session)
        with pytest.raises(PostingValidationError, match="exceeds outstanding"):
            pay(db_session, purchase, Decimal("1000.01"))

    def test_unknown_bank_account_rejected(self, db_session, accounts, open_period):
        purchase = make_purchase(db_session)
        with pytest.raises(PostingValidationError, match="Bank account 77 not found"):
            pay(db_session, purchase, Decimal("10"), bank_account_id=77)

    def test_credit_method_rejected(self, db_session, accounts, open_period):
        purchase = make_purchase(db_session)
        with pytest.raises(PostingValidationError, match="cash or bank"):
            pay(db_session, purchase, Decimal("10"), method=PaymentMethod.CREDIT)

    def test_received_and_paid_completes_purchase(self, db_session, accounts, open_period):
        purchase = make_purchase(db_session)
        receive(db_session, purchase)
        pay(db_session, purchase, Decimal("600"))
        pay(db_session, purchase, Decimal("400"))

        assert purchase.status == DocumentStatus.COMPLETED
        assert purchase.paid_amount == Decimal("1000")
        assert len(db_session.execute(select(PurchasePayment)).scalars().all()) == 2

    def test_paid_purchase_is_already_processed(self, db_session, accounts, open_period):
        purchase = make_purchase(db_session)
        pay(db_session, purchase, Decimal("1000"))

        again = pay(db_session, purchase, Decimal("1"))

        assert again.already_processed is True
        assert len(journal_entries(db_session)) == 1

    def test_closed_period_writes_nothing(self, db_session, accounts):
        purchase = make_purchase(db_session)
        with pytest.raises(PeriodClosedError):
            pay(db_session, purchase, Decimal("400"))
        db_session.rollback()

        assert journal_entries(db_session) == []
        assert db_session.execute(select(PurchasePayment)).scalars().all() == []
        assert purchase.payment_status == PaymentStatus.UNPAID
        assert purchase.paid_amount == Decimal("0")


# --- Purchase return ---

class TestReturn:

    def make_return(self, db_session, purchase, qty=2):
        purchase_return = PurchaseReturn(
            return_no="RTB-0001",
            purchase_id=purchase.id,
            return_date=date.today(),
            lines=[PurchaseReturnLine(purchase_line_id=purchase.lines[0].id, qty=qty)],
        )
        db_session.add(purchase_return)
        db_session.commit()
        return purchase_return

    def test_return_reverses_at_purchase_cost(self, db_session, accounts, open_period):
        purchase = make_purchase(db_session)
        receive(db_session, purchase)
        purchase_return = self.make_return(db_session, purchase)

        service = PurchaseJournalService(db_session)
        result = service.return_goods(PurchaseReturnJournalRequest(return_id=purchase_return.id))
        db_session.commit()

        entry = journal_entries(db_session)[-1]
        assert_balanced(entry)
        assert result.details["amount"] == Decimal("200")
        totals = lines_by_account(entry)
        assert totals[accounts["payable"].id] == (Decimal("200"), 0)
        assert totals[accounts["inventory"].id] == (0, Decimal("200"))
        assert purchase_return.status == DocumentStatus.COMPLETED

    def test_second_post_is_already_processed(self, db_session, accounts, open_period):
        purchase = make_purchase(db_session)
        purchase_return = self.make_return(db_session, purchase)
        service = PurchaseJournalService(db_session)
        first = service.return_goods(PurchaseReturnJournalRequest(return_id=purchase_return.id))
        db_session.commit()

        again = service.return_goods(PurchaseReturnJournalRequest(return_id=purchase_return.id))

        assert again.already_processed is True
        assert again.journal_entry_id == first.journal_entry_id

    def test_closed_period_writes_nothing(self, db_session, accounts):
        purchase = make_purchase(db_session)
        purchase_return = self.make_return(db_session, purchase)

        with pytest.raises(PeriodClosedError):
            PurchaseJournalService(db_session).return_goods(
                PurchaseReturnJournalRequest(return_id=purchase_return.id)
            )
        db_session.rollback()

        assert journal_entries(db_session) == []
        assert purchase_return.status == DocumentStatus.PENDING
