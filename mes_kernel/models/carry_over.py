"""
Module: mes_kernel.models.carry_over
Responsibility: ORM persistence for carry-over quantities: semi-finished
    output reserved from a prior period or process for use by a line.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - 0 <= used_qty <= quantity (service-level; carry-overs never go negative).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from mes_kernel.db.base import TrackedBase, UUIDString


class CarryOverModel(TrackedBase):
    """A carried-forward quantity with the quantity/used/available triad."""

    __tablename__ = "carry_overs"

    __table_args__ = (
        Index("idx_carry_over_product_process", "product_id", "process_code"),
        Index("idx_carry_over_carried_at", "carried_at"),
    )

    product_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    process_code: Mapped[str] = mapped_column(String(10), nullable=False)

    line_code: Mapped[str | None] = mapped_column(String(50), nullable=True)

    source_lot_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    quantity: Mapped[Decimal] = mapped_column(nullable=False)

    used_qty: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=Decimal("0"),
    )

    carried_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<CarryOver {self.process_code} qty={self.quantity} used={self.used_qty}>"
