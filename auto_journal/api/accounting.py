"""
Accounting read and configuration endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from auto_journal.models.account_mapping import AccountMapping
from auto_journal.models.base import get_db
from auto_journal.models.chart_account import ChartAccount
from auto_journal.schemas.accounting import (
    AccountMappingCreate,
    AccountMappingResponse,
    PeriodStatusResponse,
)
from auto_journal.schemas.journal import JournalEntryResponse
from auto_journal.services.exceptions import PostingValidationError
from auto_journal.services.journal_service import JournalService
from auto_journal.services.period_guard import PeriodGuard

router = APIRouter(tags=["Accounting"])


@router.get("/journal-entries/{entry_id}", response_model=JournalEntryResponse)
def get_journal_entry(entry_id: int, db: Session = Depends(get_db)):
    """Get a posted journal entry with its lines."""
    return JournalService(db).get_entry(entry_id)


@router.get("/accounting/period-status", response_model=PeriodStatusResponse)
def get_period_status(db: Session = Depends(get_db)):
    """Is today inside an open accounting period?"""
    return PeriodGuard(db).current_status()


@router.get("/accounting/mappings", response_model=list[AccountMappingResponse])
def list_mappings(event_type: str | None = None, db: Session = Depends(get_db)):
    """List account mapping rules, optionally for one event type."""
    query = select(AccountMapping).order_by(
        AccountMapping.event_type,
        AccountMapping.side,
        AccountMapping.priority.desc(),
        AccountMapping.id,
    )
    if event_type:
        query = query.where(AccountMapping.event_type == event_type)
    return db.execute(query).scalars().all()


@router.post("/accounting/mappings", response_model=AccountMappingResponse, status_code=201)
def create_mapping(request: AccountMappingCreate, db: Session = Depends(get_db)):
    """Add an account mapping rule."""
    try:
        if db.get(ChartAccount, request.account_id) is None:
            raise PostingValidationError(f"Account {request.account_id} not found")
        mapping = AccountMapping(**request.model_dump())
        db.add(mapping)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(mapping)
    return mapping
