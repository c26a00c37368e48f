"""
Module: mes_kernel.db.types
Responsibility: Quantity precision constants and the one sanctioned
    conversion from user input to a Decimal quantity.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats for material quantities.  Columns are Numeric(38, 9) via
      Base.type_annotation_map and to_quantity() rejects float input.
    - NaN and infinities never reach a quantity column.

Failure modes:
    - InvalidQuantityError from to_quantity() on a float, a bool, a
      non-numeric string or a non-finite value.
"""

from decimal import Decimal, InvalidOperation

from mes_kernel.exceptions import InvalidQuantityError

QUANTITY_DECIMAL_PLACES = 9
ZERO = Decimal("0")


def to_quantity(value: Decimal | int | str, field: str = "quantity") -> Decimal:
    """
    Convert user input to a Decimal quantity.

    Floats are rejected; pass a string if the value came from a text field.
    """
    if isinstance(value, (bool, float)):
        raise InvalidQuantityError(
            repr(value),
            field=field,
            reason=f"must be Decimal, int or str, not {type(value).__name__}",
        )
    if isinstance(value, Decimal):
        qty = value
    else:
        try:
            qty = Decimal(value)
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidQuantityError(repr(value), field=field, reason="is not a number") from None
    if not qty.is_finite():
        raise InvalidQuantityError(str(qty), field=field, reason="must be finite")
    return qty
