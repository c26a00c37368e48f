"""
Module: mes_kernel.models.material
Responsibility: ORM persistence for the material master (wire, terminals,
    connectors, tubes...).  Minimal: only what stock summaries and BOM
    resolution need.
Architecture position: Kernel > Models.  May import from db/ only.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Boolean, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from mes_kernel.db.base import TrackedBase


class MaterialModel(TrackedBase):
    """A stock-keeping material.  safe_stock drives low-stock classification."""

    __tablename__ = "materials"

    __table_args__ = (UniqueConstraint("code", name="uq_material_code"),)

    code: Mapped[str] = mapped_column(String(50), nullable=False)

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    unit: Mapped[str] = mapped_column(String(20), nullable=False, default="EA")

    safe_stock: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=Decimal("0"),
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Material {self.code}>"
