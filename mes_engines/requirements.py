"""
Module: mes_engines.requirements
Responsibility:
    Pure helpers for the BOM deduction flow: grouping caller-supplied lot
    hints by material and deciding how much a single hinted lot absorbs.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - A hint never takes more than the material still needs.
    - A hint without an explicit quantity takes what the lot holds (capped
      by need); if the lot holds nothing it takes the whole remainder,
      which only succeeds when negative stock is allowed.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from mes_kernel.domain.dtos import MaterialInput

_ZERO = Decimal("0")


@dataclass(frozen=True)
class HintUse:
    """
    Decision for one hinted lot.

    blocked is True when the lot cannot cover quantity and negative stock is
    disallowed; nothing should be taken from it in that case.
    """

    quantity: Decimal
    pushes_negative: bool = False
    blocked: bool = False


def group_inputs_by_material(
    inputs: Iterable[MaterialInput],
) -> dict[UUID, list[MaterialInput]]:
    """Group lot hints by material, keeping scan order within each group."""
    grouped: dict[UUID, list[MaterialInput]] = {}
    for hint in inputs:
        grouped.setdefault(hint.material_id, []).append(hint)
    return grouped


def plan_hint_use(
    *,
    hint_qty: Decimal | None,
    available: Decimal,
    remaining: Decimal,
    allow_negative: bool,
) -> HintUse:
    if remaining <= 0:
        return HintUse(quantity=_ZERO)

    if hint_qty is not None and hint_qty > 0:
        use = min(hint_qty, remaining)
    else:
        use = min(available if available > 0 else remaining, remaining)

    if use <= 0:
        return HintUse(quantity=_ZERO)

    if use > available:
        if not allow_negative:
            return HintUse(quantity=use, blocked=True)
        return HintUse(quantity=use, pushes_negative=True)

    return HintUse(quantity=use)
