"""
Posting endpoints - one per business event.

Each request runs in its own session. The handler only
flushes; the commit happens here, once, after the whole
posting succeeded. Any failure rolls everything back and is
rendered by the exception handlers in api/errors.py.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auto_journal.models.base import get_db
from auto_journal.schemas.posting import (
    CustomerPaymentJournalRequest,
    OpnameJournalRequest,
    PayoutJournalRequest,
    PostingResponse,
    PurchaseJournalRequest,
    PurchaseReturnJournalRequest,
    SalesJournalRequest,
    SalesReturnJournalRequest,
    StockAdjustmentRequest,
)
from auto_journal.services.inventory_journal import InventoryJournalService
from auto_journal.services.journal_service import PostingResult
from auto_journal.services.purchase_journal import PurchaseJournalService
from auto_journal.services.sales_journal import SalesJournalService
from auto_journal.services.settlement_journal import SettlementJournalService

router = APIRouter(prefix="/journals", tags=["Journals"])


def _run(db: Session, operation, request) -> PostingResponse:
    try:
        result: PostingResult = operation(request)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return PostingResponse(
        success=True,
        journal_entry_id=result.journal_entry_id,
        already_processed=result.already_processed,
        **result.details,
    )


@router.post("/purchase", response_model=PostingResponse, response_model_exclude_unset=True)
def post_purchase(request: PurchaseJournalRequest, db: Session = Depends(get_db)):
    """Post a goods receipt (operationType=receive) or supplier payment (payment)."""
    return _run(db, PurchaseJournalService(db).post, request)


@router.post("/purchase-return", response_model=PostingResponse, response_model_exclude_unset=True)
def post_purchase_return(request: PurchaseReturnJournalRequest, db: Session = Depends(get_db)):
    """Post a return of goods to the supplier."""
    return _run(db, PurchaseJournalService(db).return_goods, request)


@router.post("/sales", response_model=PostingResponse, response_model_exclude_unset=True)
def post_sales_order(request: SalesJournalRequest, db: Session = Depends(get_db)):
    """Post a confirmed sales order."""
    return _run(db, SalesJournalService(db).post_order, request)


@router.post("/sales-return", response_model=PostingResponse, response_model_exclude_unset=True)
def post_sales_return(request: SalesReturnJournalRequest, db: Session = Depends(get_db)):
    """Post a sales return or credit note."""
    return _run(db, SalesJournalService(db).post_return, request)


@router.post("/stock-adjustment", response_model=PostingResponse, response_model_exclude_unset=True)
def post_stock_adjustment(request: StockAdjustmentRequest, db: Session = Depends(get_db)):
    """Adjust a variant's stock and post the difference."""
    return _run(db, InventoryJournalService(db).adjust, request)


@router.post("/opname", response_model=PostingResponse, response_model_exclude_unset=True)
def post_opname(request: OpnameJournalRequest, db: Session = Depends(get_db)):
    """Post the differences found by a stock count."""
    return _run(db, InventoryJournalService(db).reconcile, request)


@router.post("/payout", response_model=PostingResponse, response_model_exclude_unset=True)
def post_payout(request: PayoutJournalRequest, db: Session = Depends(get_db)):
    """Post a marketplace payout."""
    return _run(db, SettlementJournalService(db).post_payout, request)


@router.post("/customer-payment", response_model=PostingResponse, response_model_exclude_unset=True)
def post_customer_payment(request: CustomerPaymentJournalRequest, db: Session = Depends(get_db)):
    """Post money received from a customer."""
    return _run(db, SettlementJournalService(db).post_customer_payment, request)
