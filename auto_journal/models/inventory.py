"""
Inventory models: product variants, stock movements and
stock counts (opname).
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import String, Integer, Date, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from auto_journal.models.base import Base
from auto_journal.models.enums import DocumentStatus, ProductType


class ProductVariant(Base):
    __tablename__ = "product_variants"

    id: Mapped[int] = mapped_column(primary_key=True)
    sku_variant: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False
    )
    product_name: Mapped[str] = mapped_column(String(150), nullable=False)
    product_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ProductType.PURCHASED.value
    )
    hpp: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    stock_qty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<ProductVariant {self.sku_variant} qty={self.stock_qty}>"


class StockMovement(Base):
    """
    One change to a variant's stock.

    qty is signed: positive for stock in, negative for stock
    out. A manual adjustment is its own source document and
    its journal entry points back at the movement row.
    """

    __tablename__ = "stock_movements"

    id: Mapped[int] = mapped_column(primary_key=True)
    variant_id: Mapped[int] = mapped_column(
        ForeignKey("product_variants.id"), nullable=False, index=True
    )
    movement_type: Mapped[str] = mapped_column(String(30), nullable=False)
    qty: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_cost: Mapped[Decimal] = mapped_column(Numeric(19, 4), nullable=False)
    notes: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DocumentStatus.PENDING
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    variant: Mapped["ProductVariant"] = relationship()


class StockOpname(Base):
    __tablename__ = "stock_opnames"

    id: Mapped[int] = mapped_column(primary_key=True)
    opname_no: Mapped[str] = mapped_column(
        String(30), unique=True, nullable=False
    )
    opname_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DocumentStatus.DRAFT
    )

    lines: Mapped[list["StockOpnameLine"]] = relationship(
        back_populates="opname", order_by="StockOpnameLine.id"
    )


class StockOpnameLine(Base):
    __tablename__ = "stock_opname_lines"

    id: Mapped[int] = mapped_column(primary_key=True)
    opname_id: Mapped[int] = mapped_column(
        ForeignKey("stock_opnames.id"), nullable=False, index=True
    )
    variant_id: Mapped[int] = mapped_column(
        ForeignKey("product_variants.id"), nullable=False
    )
    system_qty: Mapped[int] = mapped_column(Integer, nullable=False)
    physical_qty: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_cost: Mapped[Decimal] = mapped_column(Numeric(19, 4), nullable=False)

    opname: Mapped["StockOpname"] = relationship(back_populates="lines")

    @property
    def difference_qty(self) -> int:
        return self.physical_qty - self.system_qty
