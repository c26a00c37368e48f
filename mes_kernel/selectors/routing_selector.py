"""
Routing query selector.

Read-only access to a product's routing.  Every list is ordered by seq
ascending (process code as a stable tie-break), never by insertion order.
"""

from uuid import UUID

from sqlalchemy import func, select

from mes_kernel.domain.codes import normalize_process_code
from mes_kernel.domain.dtos import RoutingStep
from mes_kernel.models.process import ProcessModel
from mes_kernel.models.routing import RoutingEntryModel
from mes_kernel.selectors.base import BaseSelector


class RoutingSelector(BaseSelector[RoutingEntryModel]):
    """Queries over routing entries."""

    def get_routing(self, product_id: UUID) -> list[RoutingStep]:
        """
        A product's routing, ordered by seq.

        Returns:
            List of RoutingStep; empty when the product has no routing.
        """
        entries = self.session.execute(
            select(RoutingEntryModel)
            .where(RoutingEntryModel.product_id == product_id)
            .order_by(RoutingEntryModel.seq, RoutingEntryModel.process_code)
        ).scalars().all()
        return [RoutingStep.from_model(e) for e in entries]

    def get_entry(self, entry_id: UUID) -> RoutingStep | None:
        entry = self.session.get(RoutingEntryModel, entry_id)
        return RoutingStep.from_model(entry) if entry is not None else None

    def get_process_codes(self, product_id: UUID) -> list[str]:
        return [step.process_code for step in self.get_routing(product_id)]

    def count_routings(self, product_id: UUID) -> int:
        return self.session.execute(
            select(func.count(RoutingEntryModel.id)).where(
                RoutingEntryModel.product_id == product_id
            )
        ).scalar_one()

    def has_routing(self, product_id: UUID) -> bool:
        return self.count_routings(product_id) > 0

    def required_entries(self, product_id: UUID) -> list[RoutingStep]:
        return [s for s in self.get_routing(product_id) if s.is_required]

    def material_input_entries(self, product_id: UUID) -> list[RoutingStep]:
        return [s for s in self.get_routing(product_id) if s.has_material_input]

    def inspection_entries(self, product_id: UUID) -> list[RoutingStep]:
        return [s for s in self.get_routing(product_id) if s.is_inspection]

    def count_by_process(self, process_code: str) -> int:
        """Routing rows (across all products) referencing a process."""
        return self.session.execute(
            select(func.count(RoutingEntryModel.id)).where(
                RoutingEntryModel.process_code == normalize_process_code(process_code)
            )
        ).scalar_one()

    def products_using_process(self, process_code: str) -> list[UUID]:
        rows = self.session.execute(
            select(RoutingEntryModel.product_id)
            .join(ProcessModel, ProcessModel.code == RoutingEntryModel.process_code)
            .where(RoutingEntryModel.process_code == normalize_process_code(process_code))
            .distinct()
        ).scalars().all()
        return sorted(rows, key=str)
