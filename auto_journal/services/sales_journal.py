"""
Sales postings: sales order confirmation, sales return, credit note.

Sales order (gross method):
    DEBIT  Cash / Bank                paid part of net
    DEBIT  Receivable                 net - paid
    DEBIT  Sales Discount             discount
    DEBIT  Marketplace Fee            fee
    CREDIT Revenue                    gross, split by product type
    DEBIT  COGS / CREDIT Inventory    per non-service product type

net = gross - discount - fee. Without a paid amount, a cash or bank
sale is fully paid and a credit sale is fully on account.

Sales return:
    DEBIT  Sales Returns              refund
    CREDIT Receivable / Cash / Bank   refund
    DEBIT  Inventory / CREDIT COGS    cost at the original sale

A credit note is a return without goods coming back: only the
first pair is posted.

The marketplace name on the order picks the mapping context
('marketplace' or 'manual') and the marketplace code, which in
turn select per-channel revenue and fee accounts before the
generic ones.
"""

import logging
from collections import defaultdict
from decimal import Decimal

from sqlalchemy.orm import Session

from auto_journal.models.enums import (
    DocumentStatus,
    EventType,
    PaymentMethod,
    ProductType,
    ReferenceType,
    Side,
)
from auto_journal.models.sales import SalesOrder, SalesReturn
from auto_journal.schemas.posting import SalesJournalRequest, SalesReturnJournalRequest
from auto_journal.services.account_resolver import (
    AccountLookup,
    SettingKey,
    marketplace_code,
    sales_context,
)
from auto_journal.services.exceptions import PostingValidationError
from auto_journal.services.handler import PostingHandler
from auto_journal.services.journal_service import JournalDraft, PostingResult, ZERO, is_completed, money

logger = logging.getLogger(__name__)

_TYPE_LABELS = {
    ProductType.PRODUCTION.value: "production goods",
    ProductType.PURCHASED.value: "trading goods",
    ProductType.SERVICE.value: "services",
}


def _revenue_keys(product_type: str | None, mp_code: str | None) -> tuple[str, ...]:
    if product_type == ProductType.SERVICE.value:
        return (SettingKey.REVENUE_SERVICE, *SettingKey.revenue_for(mp_code))
    if product_type == ProductType.PRODUCTION.value:
        return (SettingKey.REVENUE_PRODUCTION, *SettingKey.revenue_for(mp_code))
    return SettingKey.revenue_for(mp_code)


def _cogs_keys(product_type: str) -> tuple[str, ...]:
    if product_type == ProductType.PRODUCTION.value:
        return (SettingKey.COGS_PRODUCTION, SettingKey.COGS)
    return (SettingKey.COGS_PURCHASED, SettingKey.COGS)


class SalesJournalService(PostingHandler):

    def __init__(self, db: Session, resolver=None, today=None):
        super().__init__(db, resolver=resolver, today=today)

    # --- Sales order ---

    def post_order(self, request: SalesJournalRequest) -> PostingResult:
        logger.info("Posting sales order %s", request.sales_order_id)
        self._ensure_period_open()

        order = self._load(SalesOrder, request.sales_order_id, "Sales order")
        if is_completed(order):
            return self._already_processed(ReferenceType.SALES_ORDER, order.id)
        if order.status == DocumentStatus.CANCELLED:
            raise PostingValidationError(f"Sales order {order.order_no} is cancelled")

        mp_code = marketplace_code(order.marketplace)
        context = sales_context(order.marketplace)

        gross = money(order.total_amount)
        discount = money(
            request.discount_amount if request.discount_amount is not None
            else order.discount_amount
        )
        fee = money(
            request.fee_amount if request.fee_amount is not None
            else order.fee_amount
        )
        net = gross - discount - fee
        if gross <= 0:
            raise PostingValidationError(f"Sales order {order.order_no} has no value")
        if net < 0:
            raise PostingValidationError(
                f"Discount {discount} and fee {fee} exceed the order total {gross}"
            )

        revenue_by_type: dict[str, Decimal] = defaultdict(lambda: ZERO)
        cost_by_type: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for item in order.items:
            revenue_by_type[item.product_type] += money(item.revenue)
            if item.product_type != ProductType.SERVICE.value:
                cost_by_type[item.product_type] += money(item.cost)

        remainder = gross - sum(revenue_by_type.values(), ZERO)
        if remainder < 0:
            raise PostingValidationError(
                f"Item revenue {gross - remainder} exceeds the order total {gross}"
            )

        payment_method = request.payment_method or self._stored_method(order.payment_method)

        paid = request.paid_amount if request.paid_amount is not None else order.paid_amount
        if paid is None:
            paid = ZERO if payment_method == PaymentMethod.CREDIT else net
        paid = money(paid)
        if paid < 0:
            raise PostingValidationError(f"Paid amount {paid} must not be negative")
        if paid > net:
            raise PostingValidationError(
                f"Paid amount {paid} exceeds the net amount {net} of order {order.order_no}"
            )
        on_account = net - paid

        # Resolve every account before building anything.
        paid_account_id = None
        if paid > 0:
            paid_account_id = self._paid_account(
                payment_method, request.payment_account_id or order.bank_account_id,
            )
        receivable_id = None
        if on_account > 0:
            receivable_id = self._receivable_account(context, mp_code)
        revenue_accounts = {
            product_type: self._revenue_account(context, mp_code, product_type)
            for product_type, amount in revenue_by_type.items()
            if amount > 0
        }
        general_revenue_id = (
            self._revenue_account(context, mp_code, None) if remainder > 0 else None
        )
        discount_id = None
        if discount > 0:
            discount_id = self.resolver.require(
                AccountLookup(
                    EventType.SALES_DISCOUNT, Side.DEBIT, context, mp_code,
                    setting_keys=(SettingKey.SALES_DISCOUNT, *SettingKey.revenue_for(mp_code)),
                ),
                label="Sales discount",
            )
        fee_id = None
        if fee > 0:
            fee_id = self.resolver.require(
                AccountLookup(
                    EventType.SALES_FEE, Side.DEBIT, context, mp_code,
                    setting_keys=SettingKey.admin_fee_for(mp_code),
                ),
                label="Marketplace fee",
            )
        cogs_pairs: dict[tuple[int, int], Decimal] = defaultdict(lambda: ZERO)
        for product_type, cost in cost_by_type.items():
            if cost <= 0:
                continue
            cogs_id = self.resolver.require(
                AccountLookup(
                    EventType.SALES_COGS, Side.DEBIT, context, mp_code, product_type,
                    setting_keys=_cogs_keys(product_type),
                ),
                label="Cost of goods sold",
            )
            inventory_id = self.resolver.require(
                AccountLookup(
                    EventType.SALES_COGS, Side.CREDIT, context, mp_code, product_type,
                    setting_keys=(SettingKey.INVENTORY,),
                ),
                label="Inventory",
            )
            cogs_pairs[(cogs_id, inventory_id)] += cost

        channel = order.marketplace or "direct"
        draft = JournalDraft(
            entry_date=self.posting_date,
            description=f"Sales {order.order_no} ({channel})",
            reference_type=ReferenceType.SALES_ORDER,
            reference_id=order.id,
        )
        if paid_account_id is not None:
            draft.debit(paid_account_id, paid, f"Sales receipt ({payment_method.value})")
        if receivable_id is not None:
            draft.debit(receivable_id, on_account, "Sales on account")
        if discount_id is not None:
            draft.debit(discount_id, discount, "Sales discount")
        if fee_id is not None:
            draft.debit(fee_id, fee, f"Marketplace fee {channel}")
        for product_type, account_id in revenue_accounts.items():
            label = _TYPE_LABELS.get(product_type, product_type)
            draft.credit(account_id, revenue_by_type[product_type], f"Revenue - {label}")
        if general_revenue_id is not None:
            draft.credit(general_revenue_id, remainder, "Revenue")
        for (cogs_id, inventory_id), cost in cogs_pairs.items():
            draft.debit(cogs_id, cost, "Cost of goods sold")
            draft.credit(inventory_id, cost, "Inventory released")

        entry = self.journals.post(draft, EventType.SALES_ORDER.value)
        self._complete(order)
        return PostingResult(
            journal_entry_id=entry.id,
            details={"amount": gross, "net_amount": net, "paid_amount": paid},
        )

    @staticmethod
    def _stored_method(value: str | None) -> PaymentMethod:
        try:
            return PaymentMethod(value or PaymentMethod.CREDIT.value)
        except ValueError:
            raise PostingValidationError(f"Unsupported payment method '{value}'") from None

    def _paid_account(self, method: PaymentMethod, bank_account_id: int | None) -> int:
        """Cash or bank account receiving the paid part; a credit sale's down payment counts as cash."""
        if method == PaymentMethod.BANK:
            linked = self._linked_bank_account(bank_account_id)
            if linked is not None:
                return linked
            return self.resolver.require(
                AccountLookup(
                    EventType.SALES_PAYMENT, Side.DEBIT, context="bank",
                    setting_keys=(SettingKey.BANK,),
                ),
                label="Bank",
            )
        return self.resolver.require(
            AccountLookup(
                EventType.SALES_PAYMENT, Side.DEBIT, context="cash",
                setting_keys=(SettingKey.CASH,),
            ),
            label="Cash",
        )

    def _receivable_account(self, context: str, mp_code: str | None) -> int:
        return self.resolver.require(
            AccountLookup(
                EventType.SALES_ORDER, Side.DEBIT, context, mp_code,
                setting_keys=(SettingKey.RECEIVABLE,),
            ),
            label="Receivable",
        )

    def _revenue_account(self, context: str, mp_code: str | None, product_type: str | None) -> int:
        return self.resolver.require(
            AccountLookup(
                EventType.SALES_ORDER, Side.CREDIT, context, mp_code, product_type,
                setting_keys=_revenue_keys(product_type, mp_code),
            ),
            label="Revenue",
        )

    # --- Sales return / credit note ---

    def post_return(self, request: SalesReturnJournalRequest) -> PostingResult:
        return_id = request.target_id
        logger.info("Posting sales return %s", return_id)
        self._ensure_period_open()

        sales_return = self._load(SalesReturn, return_id, "Sales return")
        credit_note = bool(sales_return.is_credit_note)
        reference_type = ReferenceType.CREDIT_NOTE if credit_note else ReferenceType.SALES_RETURN
        if is_completed(sales_return):
            return self._already_processed(reference_type, sales_return.id)

        order = sales_return.sales_order
        mp_code = marketplace_code(order.marketplace)
        context = sales_context(order.marketplace)
        event = EventType.CREDIT_NOTE if credit_note else EventType.SALES_RETURN

        refund = sum(
            (money(Decimal(line.qty) * line.unit_price) for line in sales_return.lines),
            ZERO,
        )
        cost = sum(
            (money(Decimal(line.qty) * (line.order_item.hpp or ZERO)) for line in sales_return.lines),
            ZERO,
        )
        if refund <= 0:
            raise PostingValidationError(
                f"Sales return {sales_return.return_no} has no value to post"
            )

        contra_id = self.resolver.require(
            AccountLookup(
                event, Side.DEBIT, context, mp_code,
                setting_keys=(SettingKey.SALES_RETURN, *SettingKey.revenue_for(mp_code)),
            ),
            label="Sales returns",
        )
        refund_id = self._refund_account(sales_return, event, context, mp_code)

        inventory_id = cogs_id = None
        if not credit_note and cost > 0:
            inventory_id = self.resolver.require(
                AccountLookup(
                    EventType.SALES_RETURN_COST, Side.DEBIT, context, mp_code,
                    setting_keys=(SettingKey.INVENTORY,),
                ),
                label="Inventory",
            )
            cogs_id = self.resolver.require(
                AccountLookup(
                    EventType.SALES_RETURN_COST, Side.CREDIT, context, mp_code,
                    setting_keys=(SettingKey.COGS,),
                ),
                label="Cost of goods sold",
            )

        note = "Credit note" if credit_note else "Sales return"
        draft = JournalDraft(
            entry_date=sales_return.return_date,
            description=(
                f"{note} {sales_return.return_no} ex {order.order_no} "
                f"({order.marketplace or 'direct'})"
            ),
            reference_type=reference_type,
            reference_id=sales_return.id,
        )
        draft.debit(contra_id, refund, f"{note} {sales_return.return_no}")
        draft.credit(refund_id, refund, f"Refund ({sales_return.refund_method}) {sales_return.return_no}")
        if inventory_id is not None:
            draft.debit(inventory_id, cost, f"Restock {sales_return.return_no}")
            draft.credit(cogs_id, cost, f"COGS reversal {sales_return.return_no}")

        entry = self.journals.post(draft, event.value)
        self._complete(sales_return)
        return PostingResult(
            journal_entry_id=entry.id,
            details={"amount": refund},
        )

    def _refund_account(self, sales_return: SalesReturn, event: EventType, context: str, mp_code: str | None) -> int:
        method = sales_return.refund_method or PaymentMethod.CREDIT.value
        if method == PaymentMethod.CASH.value:
            return self.resolver.require(
                AccountLookup(
                    event, Side.CREDIT, context="cash",
                    setting_keys=(SettingKey.CASH,),
                ),
                label="Cash",
            )
        if method == PaymentMethod.BANK.value:
            linked = self._linked_bank_account(sales_return.bank_account_id)
            if linked is not None:
                return linked
            return self.resolver.require(
                AccountLookup(
                    event, Side.CREDIT, context="bank",
                    setting_keys=(SettingKey.BANK,),
                ),
                label="Bank",
            )
        return self.resolver.require(
            AccountLookup(event, Side.CREDIT, context, mp_code),
            AccountLookup(
                EventType.SALES_ORDER, Side.DEBIT, context, mp_code,
                setting_keys=(SettingKey.RECEIVABLE,),
            ),
            label="Receivable",
        )
