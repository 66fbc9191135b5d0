"""
Tests for sales postings: order confirmation, sales return
and credit note.
"""

from datetime import date
from decimal import Decimal

import pytest

from auto_journal.models import (
    BankAccount,
    ProductVariant,
    SalesOrder,
    SalesOrderItem,
    SalesReturn,
    SalesReturnLine,
)
from auto_journal.models.enums import DocumentStatus, PaymentMethod, ReferenceType
from auto_journal.schemas.posting import (
    SalesJournalRequest,
    SalesReturnJournalRequest,
    SalesReturnRecord,
)
from auto_journal.services.exceptions import (
    AccountResolutionError,
    PeriodClosedError,
    PostingValidationError,
)
from auto_journal.services.sales_journal import SalesJournalService

from conftest import assert_balanced, journal_entries, lines_by_account


def make_variant(db_session, sku, product_type="purchased", hpp="300"):
    variant = ProductVariant(
        sku_variant=sku,
        product_name=f"Product {sku}",
        product_type=product_type,
        hpp=Decimal(hpp),
        stock_qty=10,
    )
    db_session.add(variant)
    db_session.flush()
    return variant


def make_order(db_session, items, total=None, marketplace="Shopee", method="credit",
               discount="0", fee="0", paid=None, status=DocumentStatus.CONFIRMED):
    """items: (variant, qty, unit_price, hpp) tuples."""
    order_items = [
        SalesOrderItem(
            variant_id=variant.id,
            product_name=variant.product_name,
            qty=qty,
            unit_price=Decimal(price),
            hpp=Decimal(hpp),
        )
        for variant, qty, price, hpp in items
    ]
    if total is None:
        total = sum((Decimal(qty) * Decimal(price) for _, qty, price, _ in items), Decimal("0"))
    order = SalesOrder(
        order_no="SO-0001",
        marketplace=marketplace,
        order_date=date.today(),
        payment_method=method,
        total_amount=Decimal(total),
        discount_amount=Decimal(discount),
        fee_amount=Decimal(fee),
        paid_amount=None if paid is None else Decimal(paid),
        status=status,
        items=order_items,
    )
    db_session.add(order)
    db_session.commit()
    return order


def post_order(db_session, order, **overrides):
    result = SalesJournalService(db_session).post_order(
        SalesJournalRequest(sales_order_id=order.id, **overrides)
    )
    db_session.commit()
    return result


# --- Sales order ---

class TestSalesOrder:

    def test_marketplace_credit_sale(self, db_session, accounts, open_period):
        variant = make_variant(db_session, "SKU-1")
        order = make_order(
            db_session, [(variant, 2, "500", "300")], discount="50", fee="100",
        )

        result = post_order(db_session, order)

        [entry] = journal_entries(db_session)
        assert_balanced(entry)
        assert entry.reference_type == ReferenceType.SALES_ORDER
        assert result.details == {
            "amount": Decimal("1000"),
            "net_amount": Decimal("850"),
            "paid_amount": Decimal("0"),
        }
        totals = lines_by_account(entry)
        assert totals[accounts["receivable"].id] == (Decimal("850"), 0)
        assert totals[accounts["sales_discount"].id] == (Decimal("50"), 0)
        assert totals[accounts["marketplace_fee"].id] == (Decimal("100"), 0)
        assert totals[accounts["revenue"].id] == (0, Decimal("1000"))
        assert totals[accounts["cogs"].id] == (Decimal("600"), 0)
        assert totals[accounts["inventory"].id] == (0, Decimal("600"))
        assert order.status == DocumentStatus.COMPLETED

    def test_revenue_split_by_product_type(self, db_session, accounts, open_period):
        produced = make_variant(db_session, "SKU-P", product_type="production", hpp="100")
        service = make_variant(db_session, "SKU-S", product_type="service", hpp="0")
        order = make_order(
            db_session,
            [(produced, 1, "400", "100"), (service, 1, "200", "50")],
            marketplace="Offline", method="cash",
        )

        post_order(db_session, order)

        [entry] = journal_entries(db_session)
        assert_balanced(entry)
        totals = lines_by_account(entry)
        assert totals[accounts["cash"].id] == (Decimal("600"), 0)
        assert totals[accounts["revenue_production"].id] == (0, Decimal("400"))
        assert totals[accounts["revenue_service"].id] == (0, Decimal("200"))
        assert totals[accounts["cogs_production"].id] == (Decimal("100"), 0)
        assert accounts["cogs"].id not in totals

    def test_unitemised_remainder_goes_to_general_revenue(self, db_session, accounts, open_period):
        produced = make_variant(db_session, "SKU-P", product_type="production", hpp="0")
        order = make_order(db_session, [(produced, 1, "400", "0")], total="450")

        post_order(db_session, order)

        totals = lines_by_account(journal_entries(db_session)[0])
        assert totals[accounts["revenue_production"].id] == (0, Decimal("400"))
        assert totals[accounts["revenue"].id] == (0, Decimal("50"))

    def test_request_overrides_order_amounts(self, db_session, accounts, open_period):
        variant = make_variant(db_session, "SKU-1")
        order = make_order(db_session, [(variant, 1, "1000", "0")], fee="100")

        result = post_order(db_session, order, fee_amount=Decimal("0"), payment_method=PaymentMethod.CASH)

        totals = lines_by_account(journal_entries(db_session)[0])
        assert result.details["net_amount"] == Decimal("1000")
        assert accounts["marketplace_fee"].id not in totals
        assert totals[accounts["cash"].id] == (Decimal("1000"), 0)

    def test_discount_and_fee_above_total_rejected(self, db_session, accounts, open_period):
        variant = make_variant(db_session, "SKU-1")
        order = make_order(db_session, [(variant, 1, "100", "0")], discount="60", fee="50")

        with pytest.raises(PostingValidationError, match="exceed the order total"):
            post_order(db_session, order)

    def test_cancelled_order_rejected(self, db_session, accounts, open_period):
        variant = make_variant(db_session, "SKU-1")
        order = make_order(db_session, [(variant, 1, "100", "0")], status=DocumentStatus.CANCELLED)

        with pytest.raises(PostingValidationError, match="cancelled"):
            post_order(db_session, order)

    def test_missing_fee_account_aborts_before_writing(self, db_session, accounts, open_period):
        db_session.delete(accounts["marketplace_fee"])
        db_session.commit()
        variant = make_variant(db_session, "SKU-1")
        order = make_order(db_session, [(variant, 1, "100", "0")], fee="10")

        with pytest.raises(AccountResolutionError, match="Marketplace fee account not configured"):
            post_order(db_session, order)
        db_session.rollback()

        assert journal_entries(db_session) == []
        assert order.status == DocumentStatus.CONFIRMED

    def test_second_post_is_already_processed(self, db_session, accounts, open_period):
        variant = make_variant(db_session, "SKU-1")
        order = make_order(db_session, [(variant, 1, "100", "40")])
        first = post_order(db_session, order)

        again = post_order(db_session, order)

        assert again.already_processed is True
        assert again.journal_entry_id == first.journal_entry_id
        assert len(journal_entries(db_session)) == 1

    def test_closed_period_writes_nothing(self, db_session, accounts):
        variant = make_variant(db_session, "SKU-1")
        order = make_order(db_session, [(variant, 1, "100", "40")])

        with pytest.raises(PeriodClosedError):
            post_order(db_session, order)
        db_session.rollback()

        assert journal_entries(db_session) == []

    def test_down_payment_splits_cash_and_receivable(self, db_session, accounts, open_period):
        variant = make_variant(db_session, "SKU-1")
        order = make_order(
            db_session, [(variant, 2, "500", "300")], discount="50", fee="100", paid="300",
        )

        result = post_order(db_session, order)

        [entry] = journal_entries(db_session)
        assert_balanced(entry)
        assert result.details["paid_amount"] == Decimal("300")
        totals = lines_by_account(entry)
        assert totals[accounts["cash"].id] == (Decimal("300"), 0)
        assert totals[accounts["receivable"].id] == (Decimal("550"), 0)

    def test_requested_paid_amount_goes_to_linked_bank(self, db_session, accounts, open_period):
        bank = BankAccount(
            bank_name="BCA", account_number="001", account_holder="Toko",
            account_id=accounts["bank"].id,
        )
        db_session.add(bank)
        variant = make_variant(db_session, "SKU-1")
        order = make_order(db_session, [(variant, 1, "1000", "0")], method="bank")

        post_order(db_session, order, paid_amount=Decimal("400"), payment_account_id=bank.id)

        totals = lines_by_account(journal_entries(db_session)[0])
        assert totals[accounts["bank"].id] == (Decimal("400"), 0)
        assert totals[accounts["receivable"].id] == (Decimal("600"), 0)

    def test_fully_paid_order_has_no_receivable_line(self, db_session, accounts, open_period):
        variant = make_variant(db_session, "SKU-1")
        order = make_order(db_session, [(variant, 1, "1000", "0")], fee="100", paid="900")

        post_order(db_session, order)

        totals = lines_by_account(journal_entries(db_session)[0])
        assert totals[accounts["cash"].id] == (Decimal("900"), 0)
        assert accounts["receivable"].id not in totals

    def test_zero_paid_cash_order_is_all_receivable(self, db_session, accounts, open_period):
        variant = make_variant(db_session, "SKU-1")
        order = make_order(db_session, [(variant, 1, "1000", "0")], method="cash", paid="0")

        post_order(db_session, order)

        totals = lines_by_account(journal_entries(db_session)[0])
        assert totals[accounts["receivable"].id] == (Decimal("1000"), 0)
        assert accounts["cash"].id not in totals

    def test_paid_above_net_rejected(self, db_session, accounts, open_period):
        variant = make_variant(db_session, "SKU-1")
        order = make_order(db_session, [(variant, 1, "1000", "0")], fee="100")

        with pytest.raises(PostingValidationError, match="exceeds the net amount 900"):
            post_order(db_session, order, paid_amount=Decimal("900.01"))
        db_session.rollback()

        assert journal_entries(db_session) == []
        assert order.status == DocumentStatus.CONFIRMED

    def test_unsupported_stored_payment_method_rejected(self, db_session, accounts, open_period):
        variant = make_variant(db_session, "SKU-1")
        order = make_order(db_session, [(variant, 1, "100", "0")], method="transfer")

        with pytest.raises(PostingValidationError, match="Unsupported payment method 'transfer'"):
            post_order(db_session, order)

    def test_unknown_payment_account_rejected(self, db_session, accounts, open_period):
        variant = make_variant(db_session, "SKU-1")
        order = make_order(db_session, [(variant, 1, "100", "0")], method="bank")

        with pytest.raises(PostingValidationError, match="Bank account 77 not found"):
            post_order(db_session, order, payment_account_id=77)


# --- Sales return / credit note ---

class TestSalesReturn:

    def make_return(self, db_session, order, credit_note=False, qty=1):
        item = order.items[0]
        sales_return = SalesReturn(
            return_no="SR-0001",
            sales_order_id=order.id,
            return_date=date.today(),
            is_credit_note=credit_note,
            lines=[SalesReturnLine(order_item_id=item.id, qty=qty, unit_price=item.unit_price)],
        )
        db_session.add(sales_return)
        db_session.commit()
        return sales_return

    def test_goods_return_reverses_revenue_and_cost(self, db_session, accounts, open_period):
        variant = make_variant(db_session, "SKU-1")
        order = make_order(db_session, [(variant, 2, "500", "300")])
        sales_return = self.make_return(db_session, order)

        result = SalesJournalService(db_session).post_return(
            SalesReturnJournalRequest(return_id=sales_return.id)
        )
        db_session.commit()

        entry = journal_entries(db_session)[-1]
        assert_balanced(entry)
        assert len(entry.lines) == 4
        assert entry.reference_type == ReferenceType.SALES_RETURN
        assert result.details["amount"] == Decimal("500")
        totals = lines_by_account(entry)
        assert totals[accounts["sales_return"].id] == (Decimal("500"), 0)
        assert totals[accounts["receivable"].id] == (0, Decimal("500"))
        assert totals[accounts["inventory"].id] == (Decimal("300"), 0)
        assert totals[accounts["cogs"].id] == (0, Decimal("300"))

    def test_credit_note_posts_revenue_pair_only(self, db_session, accounts, open_period):
        variant = make_variant(db_session, "SKU-1")
        order = make_order(db_session, [(variant, 2, "500", "300")])
        sales_return = self.make_return(db_session, order, credit_note=True)

        SalesJournalService(db_session).post_return(
            SalesReturnJournalRequest(record=SalesReturnRecord(id=sales_return.id))
        )
        db_session.commit()

        entry = journal_entries(db_session)[-1]
        assert_balanced(entry)
        assert len(entry.lines) == 2
        assert entry.reference_type == ReferenceType.CREDIT_NOTE

    def test_cash_refund(self, db_session, accounts, open_period):
        variant = make_variant(db_session, "SKU-1")
        order = make_order(db_session, [(variant, 1, "500", "0")])
        sales_return = self.make_return(db_session, order)
        sales_return.refund_method = "cash"
        db_session.commit()

        SalesJournalService(db_session).post_return(SalesReturnJournalRequest(return_id=sales_return.id))
        db_session.commit()

        totals = lines_by_account(journal_entries(db_session)[-1])
        assert totals[accounts["cash"].id] == (0, Decimal("500"))

    def test_second_post_is_already_processed(self, db_session, accounts, open_period):
        variant = make_variant(db_session, "SKU-1")
        order = make_order(db_session, [(variant, 1, "500", "100")])
        sales_return = self.make_return(db_session, order)
        service = SalesJournalService(db_session)
        service.post_return(SalesReturnJournalRequest(return_id=sales_return.id))
        db_session.commit()

        again = service.post_return(SalesReturnJournalRequest(return_id=sales_return.id))

        assert again.already_processed is True
        assert len(journal_entries(db_session)) == 1

    def test_unknown_refund_bank_account_rejected(self, db_session, accounts, open_period):
        variant = make_variant(db_session, "SKU-1")
        order = make_order(db_session, [(variant, 1, "500", "0")])
        sales_return = self.make_return(db_session, order)
        sales_return.refund_method = "bank"
        sales_return.bank_account_id = 77
        db_session.commit()

        with pytest.raises(PostingValidationError, match="Bank account 77 not found"):
            SalesJournalService(db_session).post_return(
                SalesReturnJournalRequest(return_id=sales_return.id)
            )

    @pytest.mark.parametrize("credit_note", [False, True])
    def test_closed_period_writes_nothing(self, db_session, accounts, credit_note):
        variant = make_variant(db_session, "SKU-1")
        order = make_order(db_session, [(variant, 1, "500", "300")])
        sales_return = self.make_return(db_session, order, credit_note=credit_note)

        with pytest.raises(PeriodClosedError):
            SalesJournalService(db_session).post_return(
                SalesReturnJournalRequest(return_id=sales_return.id)
            )
        db_session.rollback()

        assert journal_entries(db_session) == []
        assert sales_return.status == DocumentStatus.PENDING
