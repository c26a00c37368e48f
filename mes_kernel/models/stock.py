"""
Module: mes_kernel.models.stock
Responsibility: ORM persistence for lot-tracked stock and the bridge rows that
    tie a production lot to the stock lots it consumed.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - (material_id, lot_number) is unique (uq_stock_lot_material_lot).
    - used_qty may exceed quantity when negative stock is allowed; the
      available quantity is derived and never stored.
    - For a production lot, each LotMaterialConsumptionModel row pairs with
      exactly the used_qty increment it recorded; rollback reverses both.

Failure modes:
    - IntegrityError on a duplicate (material_id, lot_number) that slipped
      past the service-level check.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from mes_kernel.db.base import TrackedBase, UUIDString


class StockLotModel(TrackedBase):
    """
    A received, lot-tracked quantity of one material.

    Guarantees:
        - (material_id, received_at, lot_number) index supports FIFO scans.
        - used_qty starts at zero.
    """

    __tablename__ = "stock_lots"

    __table_args__ = (
        UniqueConstraint(
            "material_id", "lot_number", name="uq_stock_lot_material_lot"
        ),
        Index("idx_stock_lot_fifo", "material_id", "received_at", "lot_number"),
        Index("idx_stock_lot_location", "location"),
    )

    material_id: Mapped[UUID] = mapped_column(
        ForeignKey("materials.id", ondelete="RESTRICT"),
        nullable=False,
    )

    lot_number: Mapped[str] = mapped_column(String(100), nullable=False)

    # Received amount
    quantity: Mapped[Decimal] = mapped_column(nullable=False)

    # Cumulative consumption
    used_qty: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=Decimal("0"),
    )

    received_at: Mapped[datetime] = mapped_column(nullable=False)

    location: Mapped[str | None] = mapped_column(String(100), nullable=True)

    @property
    def available_qty(self) -> Decimal:
        return self.quantity - self.used_qty

    def __repr__(self) -> str:
        return (
            f"<StockLot {self.lot_number}: qty={self.quantity} used={self.used_qty}>"
        )


class LotMaterialConsumptionModel(TrackedBase):
    """
    Bridge row: production lot X consumed Q of material M from stock lot L.

    Non-goals:
        - No FK to stock_lots: rows are matched by (material_id, lot_number)
          so history survives a lot renumbering done outside the kernel.
    """

    __tablename__ = "lot_material_consumptions"

    __table_args__ = (
        Index("idx_consumption_production_lot", "production_lot_id"),
        Index("idx_consumption_material_lot", "material_id", "lot_number"),
    )

    # Production lots live outside this kernel; no FK
    production_lot_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    material_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    lot_number: Mapped[str] = mapped_column(String(100), nullable=False)

    quantity: Mapped[Decimal] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return (
            f"<Consumption lot={self.production_lot_id} "
            f"{self.lot_number} qty={self.quantity}>"
        )
