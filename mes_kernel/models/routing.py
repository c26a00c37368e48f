"""
Module: mes_kernel.models.routing
Responsibility: ORM persistence for per-product routing entries (the
    "traveler": the ordered processes a product passes through).
Architecture position: Kernel > Models.  May import from db/ and sibling models.

Invariants enforced:
    - (product_id, process_code) is unique (uq_routing_product_process).
    - process_code references processes.code.
    - Step order is seq ascending.  seq is intentionally NOT unique at the
      storage level so that a malformed routing can be stored by direct entry
      edits and then reported by the routing validator.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mes_kernel.db.base import TrackedBase, UUIDString
from mes_kernel.models.process import ProcessModel


class RoutingEntryModel(TrackedBase):
    """One (product, process) membership in a product's routing."""

    __tablename__ = "routing_entries"

    __table_args__ = (
        UniqueConstraint(
            "product_id", "process_code", name="uq_routing_product_process"
        ),
        Index("idx_routing_product_seq", "product_id", "seq"),
        Index("idx_routing_process", "process_code"),
    )

    # Products live outside this kernel; no FK
    product_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    process_code: Mapped[str] = mapped_column(
        String(10),
        ForeignKey("processes.code", ondelete="RESTRICT"),
        nullable=False,
    )

    seq: Mapped[int] = mapped_column(nullable=False)

    is_required: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    process: Mapped[ProcessModel] = relationship(
        ProcessModel,
        lazy="joined",
    )

    def __repr__(self) -> str:
        return f"<RoutingEntry product={self.product_id} {self.process_code}@{self.seq}>"
