"""
Account mapping configuration.

Two generations of configuration live side by side:

- journal_account_mappings: data-driven rules keyed by event
  type, optional context, side, and optional marketplace or
  product type. Higher priority wins.
- app_settings: the older flat key/value store mapping a
  setting key to an account id. Still the steady-state
  configuration for many installations, so every handler
  falls back to it.

Both are edited through the settings screen and are read-only
from the posting engine's point of view.
"""

from datetime import datetime

from sqlalchemy import (
    String, Integer, Boolean, DateTime, ForeignKey, Index,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from auto_journal.models.base import Base
from auto_journal.models.enums import Side


class AccountMapping(Base):
    __tablename__ = "journal_account_mappings"
    __table_args__ = (
        Index("ix_mapping_lookup", "event_type", "side", "is_active"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    # NULL means "default" - used when no context-specific row exists
    event_context: Mapped[str | None] = mapped_column(
        String(50), nullable=True
    )
    side: Mapped[Side] = mapped_column(
        SAEnum(
            Side,
            name="mapping_side_enum",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    account_id: Mapped[int] = mapped_column(
        ForeignKey("chart_of_accounts.id"), nullable=False
    )
    product_type: Mapped[str | None] = mapped_column(
        String(20), nullable=True
    )
    marketplace_code: Mapped[str | None] = mapped_column(
        String(30), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    priority: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    account: Mapped["ChartAccount"] = relationship()

    def __repr__(self) -> str:
        return (
            f"<AccountMapping {self.event_type}/{self.event_context or 'default'}"
            f"/{self.side.value} -> {self.account_id} (p={self.priority})>"
        )


class AppSetting(Base):
    """Legacy flat setting: setting_key -> account id (as text)."""

    __tablename__ = "app_settings"

    setting_key: Mapped[str] = mapped_column(String(100), primary_key=True)
    setting_value: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )

    def __repr__(self) -> str:
        return f"<AppSetting {self.setting_key}={self.setting_value}>"
