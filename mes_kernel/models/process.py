"""
Module: mes_kernel.models.process
Responsibility: ORM persistence for the process catalog, the master list of
    manufacturing steps (cutting, crimping, soldering, inspection...).
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - code is globally unique and stored uppercase (uq_process_code).
    - short_code, when present, is unique (uq_process_short_code).
    - Rows are soft-deleted via is_active; hard deletion is refused by the
      service while routing entries reference the code.
"""

from __future__ import annotations

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from mes_kernel.db.base import TrackedBase


class ProcessModel(TrackedBase):
    """
    A manufacturing step definition.

    Guarantees:
        - code and short_code are normalized by the service before insert.
        - seq is the default catalog ordering weight.

    Non-goals:
        - This model does NOT order a product's steps; that is
          RoutingEntryModel.seq.
    """

    __tablename__ = "processes"

    __table_args__ = (
        UniqueConstraint("code", name="uq_process_code"),
        UniqueConstraint("short_code", name="uq_process_short_code"),
        Index("idx_process_seq", "seq"),
        Index("idx_process_active", "is_active"),
    )

    code: Mapped[str] = mapped_column(String(10), nullable=False)

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    seq: Mapped[int] = mapped_column(nullable=False)

    # Capability flags
    has_material_input: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    is_inspection: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    # Single-letter alias used in production lot numbers
    short_code: Mapped[str | None] = mapped_column(String(4), nullable=True)

    description: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    def __repr__(self) -> str:
        return f"<Process {self.code} seq={self.seq}>"
