"""
Module: mes_engines.routing_rules
Responsibility:
    Pure structural rules over a product's routing: routing validation,
    move-order validation, process-code list validation and
    reverse pattern lookup.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Callers load the routing (RoutingStep tuples) and the catalog facts;
    this module only decides.

Invariants enforced:
    - Checks run in a fixed order and short-circuit at the first failure,
      so the reported kind is deterministic for a given routing.
    - Routing order is seq ascending; input order is never trusted.
    - All code comparisons are on normalized (uppercase) codes.

Failure modes:
    - None raised.  Every rule returns a ValidationResult.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping, Sequence

from mes_engines.tracer import traced_engine
from mes_kernel.domain.codes import normalize_process_code, normalize_process_codes
from mes_kernel.domain.dtos import RoutingStep, ValidationErrorKind, ValidationResult
from mes_kernel.logging_config import get_logger

logger = get_logger("engines.routing_rules")


def ordered_steps(steps: Sequence[RoutingStep]) -> list[RoutingStep]:
    """Steps sorted by seq ascending (stable for equal seq)."""
    return sorted(steps, key=lambda s: s.seq)


@traced_engine("routing_validation", "1.0", fingerprint_fields=("steps", "start_codes"))
def validate_routing_steps(
    *,
    steps: Sequence[RoutingStep],
    start_codes: Collection[str],
) -> ValidationResult:
    """
    Validate a whole routing.

    Order: empty, duplicate seq, duplicate process, start process present,
    last step (by seq) is an inspection.
    """
    if not steps:
        return ValidationResult.fail(
            ValidationErrorKind.EMPTY_ROUTING, "No routing is set for this product"
        )

    seqs = [s.seq for s in steps]
    if len(set(seqs)) != len(seqs):
        dup = sorted({s for s in seqs if seqs.count(s) > 1})
        return ValidationResult.fail(
            ValidationErrorKind.DUPLICATE_SEQUENCE,
            f"Duplicate sequence numbers: {', '.join(str(s) for s in dup)}",
        )

    codes = [s.process_code for s in steps]
    if len(set(codes)) != len(codes):
        dup_codes = sorted({c for c in codes if codes.count(c) > 1})
        return ValidationResult.fail(
            ValidationErrorKind.DUPLICATE_PROCESS,
            f"Duplicate processes: {', '.join(dup_codes)}",
        )

    starts = {normalize_process_code(c) for c in start_codes}
    if not any(c in starts for c in codes):
        return ValidationResult.fail(
            ValidationErrorKind.MISSING_START_PROCESS,
            f"Routing must include a start process ({', '.join(sorted(starts))})",
        )

    last = ordered_steps(steps)[-1]
    if not last.is_inspection:
        return ValidationResult.fail(
            ValidationErrorKind.END_NOT_INSPECTION,
            f"Last process must be an inspection process (got {last.process_code})",
        )

    return ValidationResult.ok()


def validate_step_order(
    steps: Sequence[RoutingStep],
    from_code: str,
    to_code: str,
) -> ValidationResult:
    """
    Validate moving work from one routed process to another.

    Order: same process, from missing, to missing, to not strictly later.
    """
    src = normalize_process_code(from_code)
    dst = normalize_process_code(to_code)

    if src == dst:
        return ValidationResult.fail(
            ValidationErrorKind.SAME_PROCESS, "Cannot move to the same process"
        )

    by_code = {s.process_code: s for s in steps}
    if src not in by_code:
        return ValidationResult.fail(
            ValidationErrorKind.NOT_IN_ROUTING,
            f"Process {src} is not in the routing",
        )
    if dst not in by_code:
        return ValidationResult.fail(
            ValidationErrorKind.NOT_IN_ROUTING,
            f"Process {dst} is not in the routing",
        )

    if by_code[dst].seq <= by_code[src].seq:
        return ValidationResult.fail(
            ValidationErrorKind.BACKWARD_ORDER,
            f"{dst} must be a later process than {src}",
        )

    return ValidationResult.ok()


def validate_code_list(
    codes: Sequence[str],
    known_codes: Collection[str],
) -> ValidationResult:
    """
    Codes-level sanity check independent of any stored routing.

    Order: empty, unknown code (first offender), repeated code.
    """
    if not codes:
        return ValidationResult.fail(
            ValidationErrorKind.EMPTY_CODES, "Process code list is empty"
        )

    normalized = normalize_process_codes(codes)
    known = {normalize_process_code(c) for c in known_codes}
    for code in normalized:
        if code not in known:
            return ValidationResult.fail(
                ValidationErrorKind.INVALID_PROCESS_CODE,
                f"Invalid process code: {code}",
            )

    seen: set[str] = set()
    for code in normalized:
        if code in seen:
            return ValidationResult.fail(
                ValidationErrorKind.DUPLICATE_CODE,
                f"Duplicate process code: {code}",
            )
        seen.add(code)

    return ValidationResult.ok()


def identify_pattern(
    codes: Sequence[str],
    patterns: Mapping[str, Sequence[str]],
) -> str | None:
    """
    Reverse pattern lookup.

    Case-insensitive, order-sensitive exact match; supersets, subsets and
    reorderings return None.
    """
    normalized = normalize_process_codes(codes)
    for name, pattern in patterns.items():
        if normalized == normalize_process_codes(pattern):
            return name
    return None
