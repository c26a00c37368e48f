"""
mes_services.routing_validator -- Structural checks on routings.

Responsibility:
    Validate a product's stored routing, a move between two routed
    processes, and a raw list of process codes.

Architecture position:
    Services -- loads routing and catalog facts through selectors and hands
    them to the pure rules in mes_engines.routing_rules.

Invariants enforced:
    - Never raises for a validation failure; always returns a
      ValidationResult carrying an enumerable kind and display text.
    - validate_routing() checks, in order: empty, duplicate seq, duplicate
      process, start process present, last step is an inspection.
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from mes_config import MesConfig
from mes_engines.routing_rules import (
    validate_code_list,
    validate_routing_steps,
    validate_step_order,
)
from mes_kernel.domain.dtos import ValidationResult
from mes_kernel.logging_config import get_logger
from mes_kernel.selectors.process_selector import ProcessSelector
from mes_kernel.selectors.routing_selector import RoutingSelector

logger = get_logger("services.routing_validator")


class RoutingValidator:
    """Routing validation against the stored routing and active catalog."""

    def __init__(self, session: Session, config: MesConfig):
        self.session = session
        self.config = config
        self.routings = RoutingSelector(session)
        self.processes = ProcessSelector(session)

    def validate_routing(self, product_id: UUID) -> ValidationResult:
        result = validate_routing_steps(
            steps=self.routings.get_routing(product_id),
            start_codes=self.config.start_processes,
        )
        if not result:
            logger.debug(
                "routing_invalid",
                extra={"product_id": str(product_id), "kind": result.kind.value},
            )
        return result

    def validate_order(
        self,
        product_id: UUID,
        from_code: str,
        to_code: str,
    ) -> ValidationResult:
        return validate_step_order(self.routings.get_routing(product_id), from_code, to_code)

    def validate_process_codes(self, codes: Sequence[str]) -> ValidationResult:
        """Codes-level check: non-empty, all active in the catalog, no repeats."""
        return validate_code_list(codes, self.processes.active_codes())
