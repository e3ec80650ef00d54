"""
Base Repository Interface - Abstract base class for the inventory backend
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Tuple
from repair_inventory.models import InventoryItem, InventoryAuditLogEntry


class InventoryRepositoryInterface(ABC):
    """Backend collaborator used by the inventory service
    
    Write methods only stage changes; ``transaction()`` decides when they
    become durable. Nested transactions join the outermost one.
    """
    
    @abstractmethod
    @contextmanager
    def transaction(self):
        pass
    
    @abstractmethod
    def get_item(self, item_id: str) -> Optional[InventoryItem]:
        pass
    
    @abstractmethod
    def create_item(self, **data) -> InventoryItem:
        pass
    
    @abstractmethod
    def update_item(self, item_id: str, **fields) -> Optional[InventoryItem]:
        pass
    
    @abstractmethod
    def update_item_stock(self, item_id: str, new_stock_level: int,
                          expected_version: int = None, updated_by: str = None) -> InventoryItem:
        pass
    
    @abstractmethod
    def delete_item(self, item_id: str) -> bool:
        pass
    
    @abstractmethod
    def search_items(self, query: str = None, category: str = None, low_stock: bool = None,
                     page: int = 1, per_page: int = 20) -> Tuple[List[InventoryItem], int]:
        pass
    
    @abstractmethod
    def append_audit_entry(self, **entry) -> InventoryAuditLogEntry:
        pass
    
    @abstractmethod
    def get_audit_entries(self, item_id: str = None, limit: int = None,
                          newest_first: bool = True) -> List[InventoryAuditLogEntry]:
        pass
    
    @abstractmethod
    def stats(self) -> Dict[str, Any]:
        pass
    
    @abstractmethod
    def ping(self) -> bool:
        pass
