"""
Inventory module.

Owns the item catalog, the authoritative stock level per item and the
append-only stock adjustment ledger that explains every movement.
"""
