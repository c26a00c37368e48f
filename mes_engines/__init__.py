"""
Module: mes_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import mes_kernel.domain and mes_kernel.logging_config.
    MUST NOT import mes_services, mes_config, or kernel services/selectors.

Invariants enforced:
    - Purity: engines never read the clock or the database.
    - Decimal-only quantities.
    - Determinism: identical inputs always produce identical outputs.
"""

from mes_engines.fifo import FifoAllocation, FifoEngine, FifoPlan, LotBalance
from mes_engines.requirements import (
    HintUse,
    group_inputs_by_material,
    plan_hint_use,
)
from mes_engines.routing_rules import (
    identify_pattern,
    ordered_steps,
    validate_code_list,
    validate_routing_steps,
    validate_step_order,
)
from mes_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "FifoAllocation",
    "FifoEngine",
    "FifoPlan",
    "LotBalance",
    "HintUse",
    "group_inputs_by_material",
    "plan_hint_use",
    "identify_pattern",
    "ordered_steps",
    "validate_code_list",
    "validate_routing_steps",
    "validate_step_order",
    "compute_input_fingerprint",
    "traced_engine",
]
