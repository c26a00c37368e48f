"""
MES Kernel

Routing and stock core for a wire-harness production line:
- Process catalog with normalized codes and single-letter short codes
- Per-product routings ordered by seq, replaced atomically
- Lot-tracked stock ledger with FIFO consumption and negative-stock tolerance
- Consumption bridge rows that make BOM deductions reversible
"""

__version__ = "0.1.0"
