"""
Settlement postings: marketplace payouts and customer payments.

Marketplace payout:
    DEBIT  Bank                    net amount
    DEBIT  Marketplace Fee         fee (skipped when zero)
    CREDIT Marketplace Receivable  gross sales

Customer payment:
    DEBIT  Cash / Bank             amount
    CREDIT Receivable              amount

For a bank payment the receiving account is the first of:
the payment's bank account, the customer's linked bank
account, a mapping row, the default bank setting.
"""

import logging

from auto_journal.models.customer import CustomerPayment
from auto_journal.models.enums import EventType, PaymentMethod, ReferenceType, Side
from auto_journal.models.payout import MarketplacePayout
from auto_journal.schemas.posting import CustomerPaymentJournalRequest, PayoutJournalRequest
from auto_journal.services.account_resolver import (
    AccountLookup,
    LegacyCode,
    SettingKey,
    marketplace_code,
)
from auto_journal.services.exceptions import PostingValidationError
from auto_journal.services.handler import PostingHandler
from auto_journal.services.journal_service import JournalDraft, PostingResult, is_completed, money

logger = logging.getLogger(__name__)


class SettlementJournalService(PostingHandler):

    # --- Marketplace payout ---

    def post_payout(self, request: PayoutJournalRequest) -> PostingResult:
        logger.info("Posting marketplace payout %s", request.payout_id)
        self._ensure_period_open()

        payout = self._load(MarketplacePayout, request.payout_id, "Payout")
        if is_completed(payout):
            return self._already_processed(
                ReferenceType.MARKETPLACE_PAYOUT, payout.id,
                payout_reference=payout.payout_reference,
            )

        gross = money(payout.gross_sales)
        fee = money(payout.total_fee)
        net = money(payout.net_amount)
        if gross <= 0 or fee < 0 or net < 0:
            raise PostingValidationError(
                f"Payout {payout.payout_reference} has invalid amounts: "
                f"gross={gross}, fee={fee}, net={net}"
            )
        if net + fee != gross:
            raise PostingValidationError(
                f"Payout {payout.payout_reference} does not add up: "
                f"net {net} + fee {fee} != gross {gross}"
            )

        mp_code = marketplace_code(payout.marketplace_code) or payout.marketplace_code.lower()

        bank_id = self.resolver.bank_ledger_account(payout.bank_account_id)
        if bank_id is None:
            bank_id = self.resolver.require(
                AccountLookup(
                    EventType.MARKETPLACE_PAYOUT, Side.DEBIT, "bank", mp_code,
                    setting_keys=(SettingKey.BANK,),
                ),
                label="Bank",
            )
        fee_id = None
        if fee > 0:
            fee_id = self.resolver.require(
                AccountLookup(
                    EventType.MARKETPLACE_PAYOUT, Side.DEBIT, "fee", mp_code,
                    setting_keys=SettingKey.admin_fee_for(mp_code),
                    account_codes=(LegacyCode.MARKETPLACE_FEE,),
                ),
                label="Marketplace fee",
            )
        receivable_id = self.resolver.require(
            AccountLookup(
                EventType.MARKETPLACE_PAYOUT, Side.CREDIT, None, mp_code,
                setting_keys=(SettingKey.MARKETPLACE_RECEIVABLE,),
                account_codes=(LegacyCode.MARKETPLACE_RECEIVABLE,),
            ),
            label="Marketplace receivable",
        )

        draft = JournalDraft(
            entry_date=payout.payout_date,
            description=f"Payout {payout.marketplace_code} - {payout.payout_reference}",
            reference_type=ReferenceType.MARKETPLACE_PAYOUT,
            reference_id=payout.id,
        )
        draft.debit(bank_id, net, f"Bank - payout {payout.marketplace_code}")
        if fee_id is not None:
            draft.debit(fee_id, fee, f"Commission {payout.marketplace_code}")
        draft.credit(receivable_id, gross, f"Receivable {payout.marketplace_code}")

        entry = self.journals.post(draft, EventType.MARKETPLACE_PAYOUT.value)
        self._complete(payout)
        return PostingResult(
            journal_entry_id=entry.id,
            details={
                "payout_reference": payout.payout_reference,
                "net_amount": net,
            },
        )

    # --- Customer payment ---

    def post_customer_payment(self, request: CustomerPaymentJournalRequest) -> PostingResult:
        logger.info("Posting customer payment %s", request.payment_id)
        self._ensure_period_open()

        payment = self._load(CustomerPayment, request.payment_id, "Customer payment")
        if is_completed(payment):
            return self._already_processed(
                ReferenceType.CUSTOMER_PAYMENT, payment.id,
                payment_no=payment.payment_no,
            )

        amount = money(payment.amount)
        if amount <= 0:
            raise PostingValidationError(
                f"Customer payment {payment.payment_no} has no amount"
            )

        receivable_id = self.resolver.require(
            AccountLookup(
                EventType.CUSTOMER_PAYMENT, Side.CREDIT,
                setting_keys=(SettingKey.TRADE_RECEIVABLE, SettingKey.RECEIVABLE),
            ),
            label="Trade receivable",
        )
        money_account_id = self._money_account(payment)

        customer = payment.customer.name if payment.customer else "unknown customer"
        draft = JournalDraft(
            entry_date=payment.payment_date,
            description=f"Payment from {customer} - {payment.payment_no}",
            reference_type=ReferenceType.CUSTOMER_PAYMENT,
            reference_id=payment.id,
        )
        draft.debit(money_account_id, amount, f"Cash/bank - {payment.payment_no}")
        draft.credit(receivable_id, amount, f"Receivable - {customer}")

        entry = self.journals.post(draft, EventType.CUSTOMER_PAYMENT.value)
        self._complete(payment)
        return PostingResult(
            journal_entry_id=entry.id,
            details={"payment_no": payment.payment_no, "amount": amount},
        )

    def _money_account(self, payment: CustomerPayment) -> int:
        if payment.payment_method == PaymentMethod.CASH.value:
            return self.resolver.require(
                AccountLookup(
                    EventType.CUSTOMER_PAYMENT, Side.DEBIT, "cash",
                    setting_keys=(SettingKey.CASH,),
                ),
                label="Cash",
            )
        if payment.payment_method != PaymentMethod.BANK.value:
            raise PostingValidationError(
                f"Unsupported payment method '{payment.payment_method}'"
            )

        for bank_account_id in (
            payment.bank_account_id,
            payment.customer.bank_account_id if payment.customer else None,
        ):
            linked = self.resolver.bank_ledger_account(bank_account_id)
            if linked is not None:
                return linked

        return self.resolver.require(
            AccountLookup(
                EventType.CUSTOMER_PAYMENT, Side.DEBIT, "bank",
                setting_keys=(SettingKey.BANK,),
            ),
            label="Bank",
        )
