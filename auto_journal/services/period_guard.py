"""
Accounting period guard.

Every posting asks the guard first. A posting is allowed only
when an accounting period covers today and that period is
open; "no period defined" blocks just like "period closed".
"""

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from auto_journal.models.accounting_period import AccountingPeriod
from auto_journal.services.exceptions import PeriodClosedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeriodStatus:
    has_period: bool
    is_open: bool
    period_name: str | None
    start_date: date | None
    end_date: date | None
    message: str


class PeriodGuard:

    def __init__(self, db: Session):
        self.db = db

    def current_status(self, today: date | None = None) -> PeriodStatus:
        """
        Status of the period covering today.

        If several periods overlap today, the one that started
        last decides.
        """
        today = today or date.today()
        period = self.db.execute(
            select(AccountingPeriod)
            .where(
                AccountingPeriod.start_date <= today,
                AccountingPeriod.end_date >= today,
            )
            .order_by(AccountingPeriod.start_date.desc(), AccountingPeriod.id.desc())
            .limit(1)
        ).scalar_one_or_none()

        if period is None:
            return PeriodStatus(
                has_period=False,
                is_open=False,
                period_name=None,
                start_date=None,
                end_date=None,
                message=(
                    f"No accounting period defined for {today.isoformat()}. "
                    "Create an open period before posting."
                ),
            )

        if not period.is_open:
            message = (
                f"Accounting period {period.period_name} is closed. "
                "Postings are not allowed."
            )
        else:
            message = f"Accounting period {period.period_name} is open."

        return PeriodStatus(
            has_period=True,
            is_open=period.is_open,
            period_name=period.period_name,
            start_date=period.start_date,
            end_date=period.end_date,
            message=message,
        )

    def ensure_open(self, today: date | None = None) -> PeriodStatus:
        """Raise PeriodClosedError carrying the guard's message unless open."""
        status = self.current_status(today)
        if not status.is_open:
            logger.warning("Posting blocked: %s", status.message)
            raise PeriodClosedError(status.message)
        return status
