"""
Service layer for product routings (the Routing Store write side).

Key design decisions:
- set_routing() is a full replace: clear, then recreate with seq values
  step, 2*step, 3*step...  Stale entries always disappear.
- The clear and the insert run in the caller's transaction, so no
  observer sees an empty routing mid-replace.
- Every process code is normalized and must resolve to an ACTIVE process.
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import delete, select

from mes_kernel.domain.codes import normalize_process_code, normalize_process_codes
from mes_kernel.domain.dtos import RoutingStep
from mes_kernel.exceptions import (
    DuplicateRoutingEntryError,
    EmptyRoutingInputError,
    InvalidProcessCodeError,
    NothingToCopyError,
    RoutingEntryNotFoundError,
)
from mes_kernel.logging_config import get_logger
from mes_kernel.models.process import ProcessModel
from mes_kernel.models.routing import RoutingEntryModel
from mes_kernel.selectors.routing_selector import RoutingSelector
from mes_kernel.services.base import BaseService

logger = get_logger("services.routing")

DEFAULT_SEQ_STEP = 10


class RoutingService(BaseService[RoutingEntryModel]):
    """
    Routing CRUD.

    Args:
        session: Caller-owned session.
        seq_step: Gap between generated seq values (configuration).
    """

    def __init__(self, session, seq_step: int = DEFAULT_SEQ_STEP):
        super().__init__(session)
        self.seq_step = seq_step
        self._selector = RoutingSelector(session)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_active(self, codes: Sequence[str]) -> None:
        active = set(
            self.session.execute(
                select(ProcessModel.code).where(
                    ProcessModel.code.in_(set(codes)),
                    ProcessModel.is_active.is_(True),
                )
            ).scalars().all()
        )
        for code in codes:
            if code not in active:
                raise InvalidProcessCodeError(code)

    def _get_entry(self, entry_id: UUID) -> RoutingEntryModel:
        entry = self.session.get(RoutingEntryModel, entry_id)
        if entry is None:
            raise RoutingEntryNotFoundError(str(entry_id))
        return entry

    def _delete_all(self, product_id: UUID) -> int:
        result = self.session.execute(
            delete(RoutingEntryModel).where(RoutingEntryModel.product_id == product_id)
        )
        return result.rowcount or 0

    def _insert(
        self,
        product_id: UUID,
        rows: Sequence[tuple[str, int, bool]],
        actor_id: UUID,
    ) -> None:
        for code, seq, is_required in rows:
            self.session.add(
                RoutingEntryModel(
                    product_id=product_id,
                    process_code=code,
                    seq=seq,
                    is_required=is_required,
                    created_by_id=actor_id,
                )
            )
        self.session.flush()

    # =========================================================================
    # Full replace
    # =========================================================================

    def set_routing(
        self,
        product_id: UUID,
        process_codes: Sequence[str],
        actor_id: UUID,
    ) -> list[RoutingStep]:
        """
        Replace a product's routing with process_codes, in order.

        Raises:
            EmptyRoutingInputError: If process_codes is empty.
            InvalidProcessCodeError: If any code is unknown or inactive.
            DuplicateRoutingEntryError: If a code repeats.

        Returns:
            The new routing ordered by seq.
        """
        if not process_codes:
            raise EmptyRoutingInputError(str(product_id))

        codes = normalize_process_codes(process_codes)
        self._require_active(codes)

        seen: set[str] = set()
        for code in codes:
            if code in seen:
                raise DuplicateRoutingEntryError(str(product_id), code)
            seen.add(code)

        removed = self._delete_all(product_id)
        self._insert(
            product_id,
            [(code, self.seq_step * (i + 1), True) for i, code in enumerate(codes)],
            actor_id,
        )

        logger.info(
            "routing_replaced",
            extra={
                "product_id": str(product_id),
                "process_codes": list(codes),
                "removed": removed,
                "created_count": len(codes),
            },
        )
        return self._selector.get_routing(product_id)

    def update_routing(
        self,
        product_id: UUID,
        process_codes: Sequence[str],
        actor_id: UUID,
    ) -> list[RoutingStep]:
        """Same full-replace semantics as set_routing()."""
        return self.set_routing(product_id, process_codes, actor_id)

    def copy_routing(
        self,
        source_product_id: UUID,
        target_product_id: UUID,
        actor_id: UUID,
    ) -> list[RoutingStep]:
        """
        Replace the target's routing with a copy of the source's.

        seq and is_required are copied as-is.

        Raises:
            NothingToCopyError: If the source has no routing.
        """
        source = self._selector.get_routing(source_product_id)
        if not source:
            raise NothingToCopyError(str(source_product_id))

        rows = [(s.process_code, s.seq, s.is_required) for s in source]
        self._delete_all(target_product_id)
        self._insert(target_product_id, rows, actor_id)

        logger.info(
            "routing_copied",
            extra={
                "source_product_id": str(source_product_id),
                "target_product_id": str(target_product_id),
                "count": len(rows),
            },
        )
        return self._selector.get_routing(target_product_id)

    def clear_routing(self, product_id: UUID) -> int:
        """Delete every entry of a product.  Returns the number removed."""
        removed = self._delete_all(product_id)
        self.session.flush()
        logger.info("routing_cleared", extra={"product_id": str(product_id), "removed": removed})
        return removed

    # =========================================================================
    # Single-entry edits
    # =========================================================================

    def create_single_entry(
        self,
        product_id: UUID,
        process_code: str,
        seq: int,
        actor_id: UUID,
        is_required: bool = True,
    ) -> RoutingStep:
        """
        Insert one entry (manual fine-tuning).

        Raises:
            InvalidProcessCodeError: If the code is unknown or inactive.
            DuplicateRoutingEntryError: If the product already routes this process.
        """
        code = normalize_process_code(process_code)
        self._require_active([code])

        existing = self.session.execute(
            select(RoutingEntryModel).where(
                RoutingEntryModel.product_id == product_id,
                RoutingEntryModel.process_code == code,
            )
        ).scalar_one_or_none()
        if existing is not None:
            raise DuplicateRoutingEntryError(str(product_id), code)

        entry = RoutingEntryModel(
            product_id=product_id,
            process_code=code,
            seq=seq,
            is_required=is_required,
            created_by_id=actor_id,
        )
        self.session.add(entry)
        self.session.flush()

        logger.info(
            "routing_entry_created",
            extra={"product_id": str(product_id), "process_code": code, "seq": seq},
        )
        return RoutingStep.from_model(entry)

    def update_entry(
        self,
        entry_id: UUID,
        actor_id: UUID,
        seq: int | None = None,
        is_required: bool | None = None,
    ) -> RoutingStep:
        """Edit seq and/or is_required of one entry."""
        entry = self._get_entry(entry_id)
        if seq is not None:
            entry.seq = seq
        if is_required is not None:
            entry.is_required = is_required
        entry.updated_by_id = actor_id
        self.session.flush()
        return RoutingStep.from_model(entry)

    def delete_entry(self, entry_id: UUID) -> None:
        entry = self._get_entry(entry_id)
        self.session.delete(entry)
        self.session.flush()
        logger.info(
            "routing_entry_deleted",
            extra={"product_id": str(entry.product_id), "process_code": entry.process_code},
        )
