"""
Repositories package - Data access layer for the inventory service
"""

from flask import current_app

# Import interfaces
from .base import InventoryRepositoryInterface

# Import concrete implementations
from .inventory_repository import InventoryRepository
from .memory_repository import InMemoryInventoryRepository


def get_inventory_repository() -> InventoryRepositoryInterface:
    """Build the repository selected by INVENTORY_BACKEND"""
    backend = current_app.config.get('INVENTORY_BACKEND', 'sql')
    if backend == 'memory':
        # One store per app so data survives across requests
        if 'inventory_memory_repository' not in current_app.extensions:
            current_app.extensions['inventory_memory_repository'] = InMemoryInventoryRepository()
        return current_app.extensions['inventory_memory_repository']
    if backend != 'sql':
        raise RuntimeError(f"Unknown INVENTORY_BACKEND: {backend}")
    return InventoryRepository()


# Export all interfaces and implementations
__all__ = [
    'InventoryRepositoryInterface',
    'InventoryRepository',
    'InMemoryInventoryRepository',
    'get_inventory_repository'
]
