"""
Routing navigator.

Stepwise traversal over a product's routing: next, previous, first, last,
membership and position.  Every query reads the routing ordered by seq and
normalizes the code argument.  A code that is not routed yields None (or
False), never an exception.
"""

from uuid import UUID

from mes_kernel.domain.codes import normalize_process_code
from mes_kernel.domain.dtos import RoutingStep
from mes_kernel.models.routing import RoutingEntryModel
from mes_kernel.selectors.base import BaseSelector
from mes_kernel.selectors.routing_selector import RoutingSelector


class RoutingNavigator(BaseSelector[RoutingEntryModel]):
    """Traversal queries over a product's routing."""

    def __init__(self, session):
        super().__init__(session)
        self._routing = RoutingSelector(session)

    def _steps(self, product_id: UUID) -> list[RoutingStep]:
        return self._routing.get_routing(product_id)

    def _find(self, steps: list[RoutingStep], code: str) -> RoutingStep | None:
        target = normalize_process_code(code)
        for step in steps:
            if step.process_code == target:
                return step
        return None

    def next(self, product_id: UUID, from_code: str) -> str | None:
        """Code with the smallest seq strictly greater than from_code's seq."""
        steps = self._steps(product_id)
        current = self._find(steps, from_code)
        if current is None:
            return None
        later = [s for s in steps if s.seq > current.seq]
        return later[0].process_code if later else None

    def previous(self, product_id: UUID, from_code: str) -> str | None:
        """Code with the largest seq strictly less than from_code's seq."""
        steps = self._steps(product_id)
        current = self._find(steps, from_code)
        if current is None:
            return None
        earlier = [s for s in steps if s.seq < current.seq]
        return earlier[-1].process_code if earlier else None

    def first(self, product_id: UUID) -> str | None:
        steps = self._steps(product_id)
        return steps[0].process_code if steps else None

    def last(self, product_id: UUID) -> str | None:
        steps = self._steps(product_id)
        return steps[-1].process_code if steps else None

    def contains(self, product_id: UUID, code: str) -> bool:
        return self._find(self._steps(product_id), code) is not None

    def seq_of(self, product_id: UUID, code: str) -> int | None:
        step = self._find(self._steps(product_id), code)
        return step.seq if step is not None else None

    def position_of(self, product_id: UUID, code: str) -> int | None:
        """Zero-based index of code in the ordered routing."""
        steps = self._steps(product_id)
        target = normalize_process_code(code)
        for index, step in enumerate(steps):
            if step.process_code == target:
                return index
        return None
