"""
Purchasing module.

Suppliers and purchase orders. A purchase order's total is computed from
its lines when it is created and never recomputed; approving an order does
not move stock.
"""
