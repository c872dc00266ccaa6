"""
Inventory persistence: one JSON document per owner.
"""

from .document import InventoryDocument, owner_key

__all__ = ["InventoryDocument", "owner_key"]
