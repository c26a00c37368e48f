"""
Typed Exception Hierarchy for the MES Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Production screens, import tooling and the production-lot lifecycle all call
into the routing and stock services.  They must be able to tell a bad process
code from a missing routing row from a stock shortage without parsing
message text.  Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE attribute (machine-readable, UI/IPC-safe)
  3. Structured DATA attributes (not just a message string)

Example:
    try:
        routing_service.set_routing(product_id, ["CA", "XX"], actor_id)
    except InvalidProcessCodeError as e:
        show_error(code=e.code, process_code=e.process_code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    MesKernelError (base)
    |
    +-- ProcessError
    |   +-- ProcessNotFoundError
    |   +-- ProcessAlreadyExistsError
    |   +-- DuplicateShortCodeError
    |   +-- ProcessReferencedError
    |
    +-- RoutingError
    |   +-- EmptyRoutingInputError
    |   +-- InvalidProcessCodeError
    |   +-- UnknownPatternError
    |   +-- NothingToCopyError
    |   +-- RoutingEntryNotFoundError
    |   +-- DuplicateRoutingEntryError
    |
    +-- StockError
    |   +-- InsufficientStockError
    |   +-- StockLotNotFoundError
    |   +-- DuplicateStockLotError
    |   +-- StockLotReferencedError
    |   +-- InvalidQuantityError
    |   +-- MaterialNotFoundError
    |   +-- MaterialAlreadyExistsError
    |
    +-- CarryOverError
    |   +-- CarryOverNotFoundError
    |   +-- CarryOverShortageError
    |   +-- CarryOverCancelExceedsUsageError
    |
    +-- ConfigError
        +-- ConfigValidationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category   | Code                          | When Raised
-----------|-------------------------------|-----------------------------------------
Process    | PROCESS_NOT_FOUND             | Process code/id doesn't exist
           | PROCESS_ALREADY_EXISTS        | Duplicate process code
           | DUPLICATE_SHORT_CODE          | Short code already taken
           | PROCESS_REFERENCED            | Hard delete while routings reference it
-----------|-------------------------------|-----------------------------------------
Routing    | EMPTY_ROUTING_INPUT           | set_routing called with no codes
           | INVALID_PROCESS_CODE          | Unknown or inactive process code
           | UNKNOWN_PATTERN               | Pattern name is not a built-in preset
           | NOTHING_TO_COPY               | copy_routing source has no entries
           | ROUTING_ENTRY_NOT_FOUND       | update/delete on a missing entry id
           | DUPLICATE_ROUTING_ENTRY       | (product, process) already routed
-----------|-------------------------------|-----------------------------------------
Stock      | INSUFFICIENT_STOCK            | Shortage with negative stock disabled
           | STOCK_LOT_NOT_FOUND           | (material, lot) doesn't exist
           | DUPLICATE_STOCK_LOT           | (material, lot) already received
           | STOCK_LOT_REFERENCED          | Delete while consumption history exists
           | INVALID_QUANTITY              | Non-positive or non-numeric quantity
           | MATERIAL_NOT_FOUND            | Material id/code doesn't exist
           | MATERIAL_ALREADY_EXISTS       | Duplicate material code
-----------|-------------------------------|-----------------------------------------
CarryOver  | CARRY_OVER_NOT_FOUND          | Carry-over id doesn't exist
           | CARRY_OVER_SHORTAGE           | Use exceeds available carry-over
           | CARRY_OVER_CANCEL_EXCEEDS     | Cancel exceeds recorded usage
-----------|-------------------------------|-----------------------------------------
Config     | CONFIG_VALIDATION_FAILED      | Configuration document is inconsistent

Routing *validators* do not raise any of these: they return a
``ValidationResult`` so batch UI validation can show every problem at once.
Stock shortage under ``allow_negative=True`` is not an error either; it is
absorbed into the ledger as negative availability.
"""


class MesKernelError(Exception):
    """
    Base exception for all MES kernel errors.

    All subclasses must have a `code` class attribute
    for machine-readable error identification.
    """

    code: str = "MES_KERNEL_ERROR"


# Process catalog exceptions


class ProcessError(MesKernelError):
    """Base exception for process catalog errors."""

    code: str = "PROCESS_ERROR"


class ProcessNotFoundError(ProcessError):
    """Process with given code or id was not found."""

    code: str = "PROCESS_NOT_FOUND"

    def __init__(self, process_ref: str):
        self.process_ref = process_ref
        super().__init__(f"Process not found: {process_ref}")


class ProcessAlreadyExistsError(ProcessError):
    """A process with the same code already exists."""

    code: str = "PROCESS_ALREADY_EXISTS"

    def __init__(self, process_code: str):
        self.process_code = process_code
        super().__init__(f"Process already exists: {process_code}")


class DuplicateShortCodeError(ProcessError):
    """Short code is already assigned to another process."""

    code: str = "DUPLICATE_SHORT_CODE"

    def __init__(self, short_code: str, owner_code: str):
        self.short_code = short_code
        self.owner_code = owner_code
        super().__init__(
            f"Short code '{short_code}' is already used by process {owner_code}"
        )


class ProcessReferencedError(ProcessError):
    """Process cannot be hard-deleted while routing or BOM rows reference it."""

    code: str = "PROCESS_REFERENCED"

    def __init__(self, process_code: str, routing_count: int, bom_count: int = 0):
        self.process_code = process_code
        self.routing_count = routing_count
        self.bom_count = bom_count
        super().__init__(
            f"Process {process_code} is referenced by {routing_count} routing entries"
            f" and {bom_count} BOM lines"
        )


# Routing exceptions


class RoutingError(MesKernelError):
    """Base exception for routing errors."""

    code: str = "ROUTING_ERROR"


class EmptyRoutingInputError(RoutingError):
    """Routing replace was requested with an empty code list."""

    code: str = "EMPTY_ROUTING_INPUT"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Process code list is empty for product {product_id}")


class InvalidProcessCodeError(RoutingError):
    """Process code does not resolve to an active process."""

    code: str = "INVALID_PROCESS_CODE"

    def __init__(self, process_code: str):
        self.process_code = process_code
        super().__init__(f"Invalid process code: {process_code}")


class UnknownPatternError(RoutingError):
    """Pattern name is not one of the configured routing presets."""

    code: str = "UNKNOWN_PATTERN"

    def __init__(self, pattern_name: str, available: tuple[str, ...] = ()):
        self.pattern_name = pattern_name
        self.available = available
        super().__init__(
            f"Unknown routing pattern: {pattern_name!r} "
            f"(available: {', '.join(available) or 'none'})"
        )


class NothingToCopyError(RoutingError):
    """Source product has no routing entries to copy."""

    code: str = "NOTHING_TO_COPY"

    def __init__(self, source_product_id: str):
        self.source_product_id = source_product_id
        super().__init__(f"Product {source_product_id} has no routing to copy")


class RoutingEntryNotFoundError(RoutingError):
    """Routing entry with given id was not found."""

    code: str = "ROUTING_ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Routing entry not found: {entry_id}")


class DuplicateRoutingEntryError(RoutingError):
    """The (product, process) pair is already present in the routing."""

    code: str = "DUPLICATE_ROUTING_ENTRY"

    def __init__(self, product_id: str, process_code: str):
        self.product_id = product_id
        self.process_code = process_code
        super().__init__(
            f"Process {process_code} is already in the routing of product {product_id}"
        )


# Stock exceptions


class StockError(MesKernelError):
    """Base exception for stock ledger errors."""

    code: str = "STOCK_ERROR"


class InsufficientStockError(StockError):
    """Requested quantity exceeds availability and negative stock is disabled."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        material_id: str,
        requested: str,
        available: str,
        lot_number: str | None = None,
    ):
        self.material_id = material_id
        self.requested = requested
        self.available = available
        self.lot_number = lot_number
        where = f" lot {lot_number}" if lot_number else ""
        super().__init__(
            f"Insufficient stock for material {material_id}{where}: "
            f"requested {requested}, available {available}"
        )


class StockLotNotFoundError(StockError):
    """Stock lot was not found."""

    code: str = "STOCK_LOT_NOT_FOUND"

    def __init__(self, lot_ref: str, material_id: str | None = None):
        self.lot_ref = lot_ref
        self.material_id = material_id
        suffix = f" for material {material_id}" if material_id else ""
        super().__init__(f"Stock lot not found: {lot_ref}{suffix}")


class DuplicateStockLotError(StockError):
    """The (material, lot number) pair has already been received."""

    code: str = "DUPLICATE_STOCK_LOT"

    def __init__(self, material_id: str, lot_number: str):
        self.material_id = material_id
        self.lot_number = lot_number
        super().__init__(
            f"Lot {lot_number} already received for material {material_id}"
        )


class StockLotReferencedError(StockError):
    """Stock lot cannot be deleted while consumption history references it."""

    code: str = "STOCK_LOT_REFERENCED"

    def __init__(self, lot_number: str, consumption_count: int):
        self.lot_number = lot_number
        self.consumption_count = consumption_count
        super().__init__(
            f"Stock lot {lot_number} is referenced by {consumption_count} consumption records"
        )


class InvalidQuantityError(StockError):
    """Quantity is not a positive, finite number."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, quantity: str, field: str = "quantity", reason: str = "must be positive"):
        self.quantity = quantity
        self.field = field
        self.reason = reason
        super().__init__(f"{field} {reason}, got {quantity}")


class MaterialNotFoundError(StockError):
    """Material with given id or code was not found."""

    code: str = "MATERIAL_NOT_FOUND"

    def __init__(self, material_ref: str):
        self.material_ref = material_ref
        super().__init__(f"Material not found: {material_ref}")


class MaterialAlreadyExistsError(StockError):
    """A material with the same code already exists."""

    code: str = "MATERIAL_ALREADY_EXISTS"

    def __init__(self, material_code: str):
        self.material_code = material_code
        super().__init__(f"Material already exists: {material_code}")


# Carry-over exceptions


class CarryOverError(MesKernelError):
    """Base exception for carry-over errors."""

    code: str = "CARRY_OVER_ERROR"


class CarryOverNotFoundError(CarryOverError):
    """Carry-over record was not found."""

    code: str = "CARRY_OVER_NOT_FOUND"

    def __init__(self, carry_over_id: str):
        self.carry_over_id = carry_over_id
        super().__init__(f"Carry-over not found: {carry_over_id}")


class CarryOverShortageError(CarryOverError):
    """Requested carry-over quantity exceeds what is available."""

    code: str = "CARRY_OVER_SHORTAGE"

    def __init__(self, requested: str, available: str):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Carry-over shortage: requested {requested}, available {available}"
        )


class CarryOverCancelExceedsUsageError(CarryOverError):
    """Cancellation would restore more than was used."""

    code: str = "CARRY_OVER_CANCEL_EXCEEDS"

    def __init__(self, requested: str, used: str):
        self.requested = requested
        self.used = used
        super().__init__(
            f"Cannot cancel {requested}: only {used} has been used"
        )


# Configuration exceptions


class ConfigError(MesKernelError):
    """Base exception for configuration errors."""

    code: str = "CONFIG_ERROR"


class ConfigValidationError(ConfigError):
    """Configuration document failed validation."""

    code: str = "CONFIG_VALIDATION_FAILED"

    def __init__(self, errors: list[str], source: str | None = None):
        self.errors = errors
        self.source = source
        super().__init__(
            "Configuration validation failed"
            + (f" ({source})" if source else "")
            + ":\n"
            + "\n".join(f"  - {e}" for e in errors)
        )
