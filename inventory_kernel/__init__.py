"""
Inventory Kernel

A transactional batch ledger for event inventory with:
- FEFO (first-expired-first-out) batch allocation
- Plan-then-commit consumption and waste
- Row-locked, atomic stock mutations
- Immutable waste and audit trails
"""

__version__ = "0.1.0"
