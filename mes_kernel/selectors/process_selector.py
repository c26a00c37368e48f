"""
Process catalog query selector.

Read-only access to process definitions.  Every code argument is
normalized before lookup; simple lookups return None for unknown codes
instead of raising.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select

from mes_kernel.domain.codes import normalize_process_code, normalize_short_code
from mes_kernel.domain.dtos import ProcessInfo
from mes_kernel.models.process import ProcessModel
from mes_kernel.selectors.base import BaseSelector


class ProcessSelector(BaseSelector[ProcessModel]):
    """Queries over the process catalog."""

    def _ordered(self):
        # seq ascending, code as the stable tie-break
        return select(ProcessModel).order_by(ProcessModel.seq, ProcessModel.code)

    def get(self, code: str) -> ProcessInfo | None:
        """Process by code (case-insensitive), active or not."""
        model = self.session.execute(
            select(ProcessModel).where(ProcessModel.code == normalize_process_code(code))
        ).scalar_one_or_none()
        return ProcessInfo.from_model(model) if model is not None else None

    def get_by_id(self, process_id: UUID) -> ProcessInfo | None:
        model = self.session.get(ProcessModel, process_id)
        return ProcessInfo.from_model(model) if model is not None else None

    def get_by_short_code(self, short_code: str) -> ProcessInfo | None:
        model = self.session.execute(
            select(ProcessModel).where(
                ProcessModel.short_code == normalize_short_code(short_code)
            )
        ).scalar_one_or_none()
        return ProcessInfo.from_model(model) if model is not None else None

    def exists(self, code: str) -> bool:
        """True if a process with this code exists (active or not)."""
        return self.get(code) is not None

    def is_valid_code(self, code: str) -> bool:
        """True if the code resolves to an ACTIVE process."""
        info = self.get(code)
        return info is not None and info.is_active

    def list(
        self,
        is_active: bool | None = None,
        has_material_input: bool | None = None,
        is_inspection: bool | None = None,
    ) -> list[ProcessInfo]:
        """
        Filtered catalog, ordered by seq ascending.

        Args:
            is_active: Optional active filter.
            has_material_input: Optional material-input capability filter.
            is_inspection: Optional inspection capability filter.
        """
        query = self._ordered()
        if is_active is not None:
            query = query.where(ProcessModel.is_active == is_active)
        if has_material_input is not None:
            query = query.where(ProcessModel.has_material_input == has_material_input)
        if is_inspection is not None:
            query = query.where(ProcessModel.is_inspection == is_inspection)
        return [ProcessInfo.from_model(m) for m in self.session.execute(query).scalars().all()]

    def active_codes(self) -> frozenset[str]:
        rows = self.session.execute(
            select(ProcessModel.code).where(ProcessModel.is_active.is_(True))
        ).scalars().all()
        return frozenset(rows)

    def material_input_processes(self) -> list[ProcessInfo]:
        return self.list(is_active=True, has_material_input=True)

    def inspection_processes(self) -> list[ProcessInfo]:
        return self.list(is_active=True, is_inspection=True)

    def process_sequence(self, codes: list[str]) -> list[ProcessInfo]:
        """The active processes among codes, reordered by catalog seq."""
        wanted = {normalize_process_code(c) for c in codes}
        if not wanted:
            return []
        query = self._ordered().where(
            ProcessModel.code.in_(wanted), ProcessModel.is_active.is_(True)
        )
        return [ProcessInfo.from_model(m) for m in self.session.execute(query).scalars().all()]

    def seq_of(self, code: str) -> int | None:
        info = self.get(code)
        return info.seq if info is not None else None

    def next_by_seq(self, seq: int) -> ProcessInfo | None:
        """Active process with the smallest seq strictly greater than seq."""
        model = self.session.execute(
            self._ordered()
            .where(ProcessModel.seq > seq, ProcessModel.is_active.is_(True))
            .limit(1)
        ).scalar_one_or_none()
        return ProcessInfo.from_model(model) if model is not None else None

    def previous_by_seq(self, seq: int) -> ProcessInfo | None:
        """Active process with the largest seq strictly less than seq."""
        model = self.session.execute(
            select(ProcessModel)
            .where(ProcessModel.seq < seq, ProcessModel.is_active.is_(True))
            .order_by(ProcessModel.seq.desc(), ProcessModel.code.desc())
            .limit(1)
        ).scalar_one_or_none()
        return ProcessInfo.from_model(model) if model is not None else None

    def count(self, is_active: bool | None = None) -> int:
        query = select(func.count(ProcessModel.id))
        if is_active is not None:
            query = query.where(ProcessModel.is_active == is_active)
        return self.session.execute(query).scalar_one()

    def has_processes(self) -> bool:
        return self.count() > 0

    def short_code_for(self, code: str) -> str | None:
        info = self.get(code)
        return info.short_code if info is not None else None

    def process_code_for_short(self, short_code: str) -> str | None:
        info = self.get_by_short_code(short_code)
        return info.code if info is not None else None
