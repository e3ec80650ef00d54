"""
Services package - Business logic for the inventory service
"""

from .inventory_service import InventoryService

__all__ = ['InventoryService']
