"""
Inventory Kernel - consistency core

The transactional heart of the inventory backend:
- Atomic stock mutation (sales, returns, bulk adjustments)
- Append-only inventory ledger (one log entry per quantity change)
- Low-stock alert lifecycle with hysteresis
- Bounded, expiring cache for derived data
- Demand prediction and seasonal trend persistence
"""

__version__ = "0.1.0"
