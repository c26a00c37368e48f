"""
mes_services.routing_patterns -- Named routing presets.

Responsibility:
    Apply a configured routing pattern ("simple", "medium", "complex") to a
    product and recognise which pattern, if any, a routing matches.

Architecture position:
    Services -- orchestration over config + engines + kernel.
    Pattern sequences come from MesConfig; the replace itself is
    RoutingService.set_routing().
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from mes_config import MesConfig
from mes_engines.routing_rules import identify_pattern
from mes_kernel.domain.dtos import RoutingStep
from mes_kernel.logging_config import get_logger
from mes_kernel.selectors.routing_selector import RoutingSelector
from mes_kernel.services.routing_service import RoutingService

logger = get_logger("services.routing_patterns")


class RoutingPatternService:
    """
    Pattern-based routing creation.

    Contract:
        Pattern names are case-insensitive.  Unknown names raise
        UnknownPatternError before the stored routing is touched.
    """

    def __init__(self, session: Session, config: MesConfig):
        self.session = session
        self.config = config
        self.routing = RoutingService(session, seq_step=config.seq_step)
        self.selector = RoutingSelector(session)

    def available_patterns(self) -> tuple[str, ...]:
        return self.config.available_patterns()

    def pattern_processes(self, pattern_name: str) -> tuple[str, ...]:
        return self.config.get_pattern(pattern_name)

    def set_routing_from_pattern(
        self,
        product_id: UUID,
        pattern_name: str,
        actor_id: UUID,
    ) -> list[RoutingStep]:
        """Replace the product's routing with the pattern's sequence."""
        codes = self.config.get_pattern(pattern_name)
        steps = self.routing.set_routing(product_id, codes, actor_id)
        logger.info(
            "routing_pattern_applied",
            extra={"product_id": str(product_id), "pattern": pattern_name.strip().lower()},
        )
        return steps

    def identify_pattern(self, process_codes: Sequence[str]) -> str | None:
        """Name of the pattern matching these codes exactly (any case), else None."""
        return identify_pattern(process_codes, self.config.pattern_map())

    def identify_product_pattern(self, product_id: UUID) -> str | None:
        return self.identify_pattern(self.selector.get_process_codes(product_id))
