"""
Pydantic schemas for accounting configuration endpoints:
period status and the account mapping table.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from auto_journal.models.enums import Side
from auto_journal.schemas.base import CamelModel
from auto_journal.services.account_resolver import marketplace_code as canonical_marketplace


class PeriodStatusResponse(BaseModel):
    """Same shape as the period status query, so snake_case on the wire."""
    has_period: bool
    is_open: bool
    period_name: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    message: str

    model_config = {"from_attributes": True}


class AccountMappingCreate(CamelModel):
    event_type: str = Field(min_length=1, max_length=50)
    event_context: str | None = Field(default=None, max_length=50)
    side: Side
    account_id: int
    product_type: str | None = Field(default=None, max_length=20)
    marketplace_code: str | None = Field(default=None, max_length=30)
    priority: int = 0
    is_active: bool = True

    @field_validator("marketplace_code")
    @classmethod
    def canonical_marketplace_code(cls, v: str | None) -> str | None:
        """Orders are matched on the lowercase code, so store it that way."""
        if v is None or not v.strip():
            return None
        return canonical_marketplace(v) or v.strip().lower()


class AccountMappingResponse(CamelModel):
    id: int
    event_type: str
    event_context: str | None
    side: Side
    account_id: int
    product_type: str | None
    marketplace_code: str | None
    priority: int
    is_active: bool
    updated_at: datetime
