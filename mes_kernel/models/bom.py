"""
Module: mes_kernel.models.bom
Responsibility: ORM persistence for bill-of-materials lines: how much of a
    material one unit of a product needs at a given process.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - (product_id, process_code, material_id) is unique (uq_bom_item).
    - process_code NULL marks a product-level line.  Process-scoped
      deduction matches process_code exactly, so such lines are reported by
      requirements() but never deducted by a process run.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mes_kernel.db.base import TrackedBase, UUIDString
from mes_kernel.models.material import MaterialModel


class BomItemModel(TrackedBase):
    """One BOM line."""

    __tablename__ = "bom_items"

    __table_args__ = (
        UniqueConstraint(
            "product_id", "process_code", "material_id", name="uq_bom_item"
        ),
        Index("idx_bom_product_process", "product_id", "process_code"),
    )

    product_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    process_code: Mapped[str | None] = mapped_column(
        String(10),
        ForeignKey("processes.code", ondelete="RESTRICT"),
        nullable=True,
    )

    material_id: Mapped[UUID] = mapped_column(
        ForeignKey("materials.id", ondelete="RESTRICT"),
        nullable=False,
    )

    quantity_per_unit: Mapped[Decimal] = mapped_column(nullable=False)

    material: Mapped[MaterialModel] = relationship(MaterialModel, lazy="joined")

    def __repr__(self) -> str:
        return (
            f"<BomItem product={self.product_id} {self.process_code} "
            f"material={self.material_id} x{self.quantity_per_unit}>"
        )
