"""
Account resolver.

Answers one question for every journal line: which ledger
account does this (event type, context, side) post to?

Three strategies are consulted in order and the first hit
wins:

1. MappingRuleStrategy   - journal_account_mappings rows
2. LegacySettingStrategy - app_settings keys named by the caller
3. ChartCodeStrategy     - chart accounts by hard-coded code

The resolver only reads. An empty mapping table is a normal
installation (the legacy settings carry it); only require()
treats a miss as an error, and it does so before anything
has been written.
"""

import enum
import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from auto_journal.models.account_mapping import AccountMapping, AppSetting
from auto_journal.models.chart_account import ChartAccount, BankAccount
from auto_journal.models.enums import Side
from auto_journal.services.exceptions import AccountResolutionError

logger = logging.getLogger(__name__)


class SettingKey:
    """Legacy app_settings keys, each holding an account id."""
    CASH = "account_kas"
    BANK = "account_bank"
    RECEIVABLE = "account_piutang"
    TRADE_RECEIVABLE = "account_piutang_usaha"
    MARKETPLACE_RECEIVABLE = "account_piutang_marketplace"
    REVENUE = "account_penjualan"
    REVENUE_PRODUCTION = "account_penjualan_produksi"
    REVENUE_SERVICE = "account_pendapatan_jasa"
    COGS = "account_hpp"
    COGS_PRODUCTION = "account_hpp_production"
    COGS_PURCHASED = "account_hpp_purchased"
    INVENTORY = "account_persediaan"
    PAYABLE = "account_hutang_supplier"
    SALES_RETURN = "account_retur_penjualan"
    SALES_DISCOUNT = "account_diskon_penjualan"
    ADMIN_FEE = "account_biaya_admin"
    STOCK_ADJUSTMENT = "account_biaya_penyesuaian_stok"

    @staticmethod
    def revenue_for(marketplace_code: str | None) -> tuple[str, ...]:
        if marketplace_code:
            return (f"{SettingKey.REVENUE}_{marketplace_code}", SettingKey.REVENUE)
        return (SettingKey.REVENUE,)

    @staticmethod
    def admin_fee_for(marketplace_code: str | None) -> tuple[str, ...]:
        if marketplace_code:
            return (f"{SettingKey.ADMIN_FEE}_{marketplace_code}", SettingKey.ADMIN_FEE)
        return (SettingKey.ADMIN_FEE,)


class LegacyCode:
    """Chart codes used as the last-resort fallback."""
    STOCK_GAIN = "7-101"
    STOCK_LOSS = "6-101"
    MARKETPLACE_RECEIVABLE = "1-106"
    MARKETPLACE_FEE = "6-102"


# Substring aliases, checked in order.
_MARKETPLACE_ALIASES = (
    ("shopee", "shopee"),
    ("tokopedia", "tokopedia"),
    ("tokped", "tokopedia"),
    ("lazada", "lazada"),
    ("tiktok", "tiktok"),
    ("tik tok", "tiktok"),
)


def marketplace_code(name: str | None) -> str | None:
    """Map a free-text marketplace name to its canonical code."""
    lowered = (name or "").lower()
    for alias, code in _MARKETPLACE_ALIASES:
        if alias in lowered:
            return code
    return None


def sales_context(name: str | None) -> str:
    """Offline and manual sales use the 'manual' context."""
    lowered = (name or "").lower()
    if "offline" in lowered or "manual" in lowered:
        return "manual"
    return "marketplace"


def _value(item) -> str | None:
    if isinstance(item, enum.Enum):
        return item.value
    return item


@dataclass(frozen=True)
class AccountLookup:
    """
    One account request.

    setting_keys and account_codes are the caller's fallback
    tiers, tried in the order given.
    """
    event_type: str
    side: Side
    context: str | None = None
    marketplace_code: str | None = None
    product_type: str | None = None
    setting_keys: tuple[str, ...] = ()
    account_codes: tuple[str, ...] = ()

    @property
    def event_name(self) -> str:
        return _value(self.event_type)

    @property
    def side_enum(self) -> Side:
        return Side(_value(self.side))

    def describe(self) -> str:
        parts = [
            f"event={self.event_name}",
            f"context={self.context or 'default'}",
            f"side={self.side_enum.value}",
        ]
        if self.marketplace_code:
            parts.append(f"marketplace={self.marketplace_code}")
        if self.product_type:
            parts.append(f"product_type={self.product_type}")
        if self.setting_keys:
            parts.append(f"settings={list(self.setting_keys)}")
        if self.account_codes:
            parts.append(f"codes={list(self.account_codes)}")
        return ", ".join(parts)


class MappingRuleStrategy:
    """
    Resolve from journal_account_mappings.

    The context is a two-level key: rows for the lookup's
    context are consulted first, and the default rows
    (event_context IS NULL) only when none of them qualify.
    Within a level the winner is the highest priority, then the
    most specific row, then the most recently updated, then the
    highest id.
    """

    def __init__(self, db: Session):
        self.db = db

    def resolve(self, lookup: AccountLookup) -> int | None:
        rows = self.db.execute(
            select(AccountMapping).where(
                AccountMapping.event_type == lookup.event_name,
                AccountMapping.side == lookup.side_enum,
                AccountMapping.is_active.is_(True),
            )
        ).scalars().all()

        levels = [lookup.context, None] if lookup.context else [None]
        for level in levels:
            candidates = [
                row for row in rows
                if row.event_context == level and self._qualifies(row, lookup)
            ]
            if candidates:
                return self._pick(candidates, lookup).account_id
        return None

    @staticmethod
    def _qualifies(row: AccountMapping, lookup: AccountLookup) -> bool:
        if row.marketplace_code is not None and row.marketplace_code != lookup.marketplace_code:
            return False
        if row.product_type is not None and row.product_type != lookup.product_type:
            return False
        return True

    @staticmethod
    def _specificity(row: AccountMapping) -> int:
        return int(row.marketplace_code is not None) + int(row.product_type is not None)

    def _pick(self, candidates: list[AccountMapping], lookup: AccountLookup) -> AccountMapping:
        ranked = sorted(
            candidates,
            key=lambda r: (r.priority, self._specificity(r), r.updated_at, r.id),
            reverse=True,
        )
        best = ranked[0]
        if len(ranked) > 1:
            runner_up = ranked[1]
            if (best.priority, self._specificity(best)) == (
                runner_up.priority, self._specificity(runner_up)
            ):
                logger.warning(
                    "Ambiguous account mapping for %s: rows %s and %s share "
                    "priority %s; using row %s",
                    lookup.describe(), best.id, runner_up.id,
                    best.priority, best.id,
                )
        return best


class LegacySettingStrategy:
    """Resolve from the first app_settings key naming an existing account."""

    def __init__(self, db: Session):
        self.db = db

    def resolve(self, lookup: AccountLookup) -> int | None:
        for key in lookup.setting_keys:
            setting = self.db.get(AppSetting, key)
            if setting is None or not setting.setting_value:
                continue
            try:
                account_id = int(setting.setting_value)
            except ValueError:
                logger.warning(
                    "Setting %s holds %r, which is not an account id",
                    key, setting.setting_value,
                )
                continue
            if self.db.get(ChartAccount, account_id) is None:
                logger.warning(
                    "Setting %s points to missing account %s", key, account_id
                )
                continue
            return account_id
        return None


class ChartCodeStrategy:
    """Resolve from active chart accounts by code."""

    def __init__(self, db: Session):
        self.db = db

    def resolve(self, lookup: AccountLookup) -> int | None:
        for code in lookup.account_codes:
            account_id = self.db.execute(
                select(ChartAccount.id).where(
                    ChartAccount.code == code,
                    ChartAccount.is_active.is_(True),
                )
            ).scalar_one_or_none()
            if account_id is not None:
                return account_id
        return None


class AccountResolver:
    """
    Layered account resolution.

    Strategies are injected so tests (and installations that
    have retired the legacy settings) can run a different
    chain; the default chain is mappings, settings, chart codes.
    """

    def __init__(self, db: Session, strategies=None):
        self.db = db
        if strategies is None:
            strategies = [
                MappingRuleStrategy(db),
                LegacySettingStrategy(db),
                ChartCodeStrategy(db),
            ]
        self.strategies = list(strategies)

    def resolve(self, *lookups: AccountLookup) -> int | None:
        """
        Return the first account any strategy finds, or None.

        Several lookups may be given; each is run through the
        whole strategy chain before the next one is tried.
        """
        for lookup in lookups:
            for strategy in self.strategies:
                account_id = strategy.resolve(lookup)
                if account_id is not None:
                    logger.debug(
                        "Resolved %s -> account %s via %s",
                        lookup.describe(), account_id, type(strategy).__name__,
                    )
                    return account_id
        return None

    def require(self, *lookups: AccountLookup, label: str | None = None) -> int:
        """Like resolve(), but a miss raises AccountResolutionError."""
        account_id = self.resolve(*lookups)
        if account_id is None:
            tried = "; then ".join(lookup.describe() for lookup in lookups)
            name = f"{label} account" if label else "Account"
            message = f"{name} not configured ({tried})"
            logger.warning(message)
            raise AccountResolutionError(message)
        return account_id

    def bank_ledger_account(self, bank_account_id: int | None) -> int | None:
        """Chart account linked to a company bank account, if any."""
        if bank_account_id is None:
            return None
        bank = self.db.get(BankAccount, bank_account_id)
        if bank is None or not bank.is_active:
            return None
        return bank.account_id
