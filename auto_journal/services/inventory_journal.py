"""
Inventory postings: manual stock adjustment and stock count (opname).

Accounting, amount = |quantity difference| x unit cost:
    Surplus / increase:  DEBIT Inventory  CREDIT Stock Gain
    Shortage / decrease: DEBIT Stock Loss CREDIT Inventory

Gain and loss fall back to the stock adjustment setting and
then to the chart codes 7-101 (gain) and 6-101 (loss).
"""

import logging
from decimal import Decimal

from auto_journal.models.enums import DocumentStatus, EventType, ReferenceType, Side
from auto_journal.models.inventory import ProductVariant, StockMovement, StockOpname
from auto_journal.schemas.posting import OpnameJournalRequest, StockAdjustmentRequest
from auto_journal.services.account_resolver import AccountLookup, LegacyCode, SettingKey
from auto_journal.services.exceptions import PostingValidationError
from auto_journal.services.handler import PostingHandler
from auto_journal.services.journal_service import JournalDraft, PostingResult, is_completed, money

logger = logging.getLogger(__name__)

INCREASE = "increase"
DECREASE = "decrease"


class InventoryJournalService(PostingHandler):

    def _accounts(self, event_type: EventType, direction: str) -> tuple[int, int]:
        """(debit account, credit account) for one direction of a stock difference."""
        if direction == INCREASE:
            debit = AccountLookup(
                event_type, Side.DEBIT, INCREASE,
                setting_keys=(SettingKey.INVENTORY,),
            )
            credit = AccountLookup(
                event_type, Side.CREDIT, INCREASE,
                setting_keys=(SettingKey.STOCK_ADJUSTMENT,),
                account_codes=(LegacyCode.STOCK_GAIN,),
            )
            labels = ("Inventory", "Stock gain")
        else:
            debit = AccountLookup(
                event_type, Side.DEBIT, DECREASE,
                setting_keys=(SettingKey.STOCK_ADJUSTMENT,),
                account_codes=(LegacyCode.STOCK_LOSS,),
            )
            credit = AccountLookup(
                event_type, Side.CREDIT, DECREASE,
                setting_keys=(SettingKey.INVENTORY,),
            )
            labels = ("Stock loss", "Inventory")
        return (
            self.resolver.require(debit, label=labels[0]),
            self.resolver.require(credit, label=labels[1]),
        )

    # --- Stock adjustment ---

    def adjust(self, request: StockAdjustmentRequest) -> PostingResult:
        logger.info(
            "Posting stock adjustment for variant %s (%+d)",
            request.variant_id, request.adjustment_qty,
        )
        self._ensure_period_open()

        if request.adjustment_qty == 0:
            raise PostingValidationError("Adjustment quantity must not be zero")
        unit_cost = money(request.unit_cost)
        if unit_cost <= 0:
            raise PostingValidationError("Unit cost must be greater than zero")

        variant = self._load(ProductVariant, request.variant_id, "Product variant")
        if variant.stock_qty + request.adjustment_qty < 0:
            raise PostingValidationError(
                f"Cannot remove {-request.adjustment_qty} of {variant.sku_variant}: "
                f"only {variant.stock_qty} in stock"
            )

        direction = INCREASE if request.adjustment_qty > 0 else DECREASE
        debit_id, credit_id = self._accounts(EventType.STOCK_ADJUSTMENT, direction)
        amount = money(Decimal(abs(request.adjustment_qty)) * unit_cost)

        movement = StockMovement(
            variant_id=variant.id,
            movement_type="adjustment",
            qty=request.adjustment_qty,
            unit_cost=unit_cost,
            notes=request.reason,
        )
        self.db.add(movement)
        self.db.flush()

        draft = JournalDraft(
            entry_date=self.posting_date,
            description=f"Stock adjustment {variant.sku_variant}: {request.reason}",
            reference_type=ReferenceType.STOCK_ADJUSTMENT,
            reference_id=movement.id,
        )
        if direction == INCREASE:
            draft.debit(debit_id, amount, f"Stock in - {variant.sku_variant}")
            draft.credit(credit_id, amount, "Stock adjustment gain")
        else:
            draft.debit(debit_id, amount, "Stock adjustment loss")
            draft.credit(credit_id, amount, f"Stock out - {variant.sku_variant}")
        entry = self.journals.post(draft, EventType.STOCK_ADJUSTMENT.value)

        variant.stock_qty += request.adjustment_qty
        self._complete(movement)
        return PostingResult(
            journal_entry_id=entry.id,
            details={"movement_id": movement.id, "amount": amount},
        )

    # --- Stock opname ---

    def reconcile(self, request: OpnameJournalRequest) -> PostingResult:
        logger.info("Posting stock opname %s", request.opname_id)
        self._ensure_period_open()

        opname = self._load(StockOpname, request.opname_id, "Stock opname")
        if is_completed(opname):
            return self._already_processed(
                ReferenceType.STOCK_OPNAME, opname.id, opname_no=opname.opname_no,
            )

        differences = [
            (line, money(Decimal(abs(line.difference_qty)) * line.unit_cost))
            for line in opname.lines
            if line.difference_qty != 0
        ]
        differences = [(line, amount) for line, amount in differences if amount > 0]

        if not differences:
            self._apply_counts(opname)
            self._complete(opname)
            logger.info("Stock opname %s has no differences; no journal", opname.opname_no)
            return PostingResult(
                journal_entry_id=None,
                details={
                    "opname_no": opname.opname_no,
                    "message": "No differences to journal",
                },
            )

        accounts = {}
        if any(line.difference_qty > 0 for line, _ in differences):
            accounts[INCREASE] = self._accounts(EventType.STOCK_OPNAME, INCREASE)
        if any(line.difference_qty < 0 for line, _ in differences):
            accounts[DECREASE] = self._accounts(EventType.STOCK_OPNAME, DECREASE)

        draft = JournalDraft(
            entry_date=opname.opname_date,
            description=f"Stock opname {opname.opname_no}",
            reference_type=ReferenceType.STOCK_OPNAME,
            reference_id=opname.id,
        )
        for line, amount in differences:
            if line.difference_qty > 0:
                debit_id, credit_id = accounts[INCREASE]
                draft.debit(debit_id, amount, f"Surplus - variant {line.variant_id}")
                draft.credit(credit_id, amount, "Stock count gain")
            else:
                debit_id, credit_id = accounts[DECREASE]
                draft.debit(debit_id, amount, "Stock count loss")
                draft.credit(credit_id, amount, f"Shortage - variant {line.variant_id}")

        entry = self.journals.post(draft, EventType.STOCK_OPNAME.value)
        self._apply_counts(opname)
        self._complete(opname)
        return PostingResult(
            journal_entry_id=entry.id,
            details={
                "opname_no": opname.opname_no,
                "total_debit": draft.total_debit,
                "total_credit": draft.total_credit,
            },
        )

    def _apply_counts(self, opname: StockOpname) -> None:
        """Move each counted variant's stock by its count difference."""
        for line in opname.lines:
            if line.difference_qty == 0:
                continue
            variant = self.db.get(ProductVariant, line.variant_id)
            if variant is None:
                continue
            variant.stock_qty += line.difference_qty
            self.db.add(StockMovement(
                variant_id=variant.id,
                movement_type="opname",
                qty=line.difference_qty,
                unit_cost=line.unit_cost,
                notes=opname.opname_no,
                status=DocumentStatus.COMPLETED,
            ))
        self.db.flush()
