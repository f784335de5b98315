"""
Read-side reports over items and purchase orders. Nothing here writes.
"""
