"""
Models package - Database models for the repair shop inventory
"""

# Import database instance
from repair_inventory.database import db

# Import enums first
from .enums import AuditAction

# Import models
from .inventory_item import InventoryItem
from .audit_log_entry import InventoryAuditLogEntry

# Export all models and enums
__all__ = [
    'db',
    'AuditAction',
    'InventoryItem',
    'InventoryAuditLogEntry'
]
