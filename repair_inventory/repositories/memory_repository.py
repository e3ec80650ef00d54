"""
In-memory Inventory Repository (offline / demo backend)
"""

import copy
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from repair_inventory.errors import ConflictError
from repair_inventory.models import AuditAction, InventoryItem, InventoryAuditLogEntry
from .base import InventoryRepositoryInterface
from .inventory_repository import EDITABLE_FIELDS


class InMemoryInventoryRepository(InventoryRepositoryInterface):
    """Keeps items and audit entries in process memory
    
    Records are stored as plain dicts and handed out as transient model
    instances, so callers never mutate stored state directly. A transaction
    snapshots the items and the audit log length, and restores both if the
    block raises. Audit entries are append-only, so truncation undoes them.
    """
    
    def __init__(self):
        self._items: Dict[str, Dict[str, Any]] = {}
        self._entries: List[Dict[str, Any]] = []
        self._next_entry_id = 1
        self._lock = threading.RLock()
        self._depth = 0
    
    @contextmanager
    def transaction(self):
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                snapshot = (copy.deepcopy(self._items), len(self._entries), self._next_entry_id)
            self._depth += 1
            try:
                yield
            except Exception:
                if outermost:
                    self._items, entry_count, self._next_entry_id = snapshot
                    del self._entries[entry_count:]
                raise
            finally:
                self._depth -= 1
    
    def get_item(self, item_id: str) -> Optional[InventoryItem]:
        with self._lock:
            record = self._items.get(item_id)
            return InventoryItem(**record) if record else None
    
    def create_item(self, **data) -> InventoryItem:
        now = datetime.utcnow()
        record = {
            'id': str(uuid.uuid4()),
            'name': data['name'],
            'part_id': data.get('part_id'),
            'category': data.get('category'),
            'description': data.get('description'),
            'supplier': data.get('supplier'),
            'location': data.get('location'),
            'stock_level': data.get('stock_level', 0),
            'min_stock_level': data.get('min_stock_level', 5),
            'unit_cost': Decimal(str(data.get('unit_cost') or 0)),
            'selling_price': Decimal(str(data['selling_price'])) if data.get('selling_price') is not None else None,
            'version': 1,
            'created_by': data.get('created_by'),
            'updated_by': data.get('updated_by'),
            'created_at': now,
            'updated_at': now
        }
        with self._lock:
            self._items[record['id']] = record
        return InventoryItem(**record)
    
    def update_item(self, item_id: str, **fields) -> Optional[InventoryItem]:
        with self._lock:
            record = self._items.get(item_id)
            if not record:
                return None
            for key, value in fields.items():
                if key in ('unit_cost', 'selling_price') and value is not None:
                    value = Decimal(str(value))
                if key in EDITABLE_FIELDS:
                    record[key] = value
            record['version'] += 1
            record['updated_at'] = datetime.utcnow()
            return InventoryItem(**record)
    
    def update_item_stock(self, item_id: str, new_stock_level: int,
                          expected_version: int = None, updated_by: str = None) -> Optional[InventoryItem]:
        with self._lock:
            record = self._items.get(item_id)
            if not record:
                return None
            if expected_version is not None and record['version'] != expected_version:
                raise ConflictError(
                    f"Inventory item {item_id} was modified concurrently",
                    expected_version=expected_version,
                    current_version=record['version']
                )
            record['stock_level'] = new_stock_level
            record['version'] += 1
            record['updated_by'] = updated_by
            record['updated_at'] = datetime.utcnow()
            return InventoryItem(**record)
    
    def delete_item(self, item_id: str) -> bool:
        with self._lock:
            return self._items.pop(item_id, None) is not None
    
    def search_items(self, query: str = None, category: str = None, low_stock: bool = None,
                     page: int = 1, per_page: int = 20) -> Tuple[List[InventoryItem], int]:
        with self._lock:
            records = list(self._items.values())
        
        if query:
            needle = query.lower()
            records = [
                r for r in records
                if any(needle in (r.get(f) or '').lower() for f in ('name', 'part_id', 'category', 'description'))
            ]
        if category:
            records = [r for r in records if r.get('category') == category]
        if low_stock is not None:
            records = [r for r in records if (r['stock_level'] <= r['min_stock_level']) == low_stock]
        
        records.sort(key=lambda r: (r['stock_level'] > r['min_stock_level'], r['name']))
        start = (page - 1) * per_page
        return [InventoryItem(**r) for r in records[start:start + per_page]], len(records)
    
    def append_audit_entry(self, **entry) -> InventoryAuditLogEntry:
        with self._lock:
            record = {
                'id': self._next_entry_id,
                'item_id': entry['item_id'],
                'item_name': entry.get('item_name'),
                'action': AuditAction(entry['action']),
                'quantity_change': entry['quantity_change'],
                'previous_quantity': entry['previous_quantity'],
                'new_quantity': entry['new_quantity'],
                'reason': entry.get('reason'),
                'notes': entry.get('notes'),
                'repair_id': entry.get('repair_id'),
                'operator_id': entry['operator_id'],
                'timestamp': entry.get('timestamp') or datetime.utcnow()
            }
            self._next_entry_id += 1
            self._entries.append(record)
            return InventoryAuditLogEntry(**record)
    
    def get_audit_entries(self, item_id: str = None, limit: int = None,
                          newest_first: bool = True) -> List[InventoryAuditLogEntry]:
        with self._lock:
            records = [r for r in self._entries if not item_id or r['item_id'] == item_id]
        records.sort(key=lambda r: (r['timestamp'], r['id']), reverse=newest_first)
        if limit:
            records = records[:limit]
        return [InventoryAuditLogEntry(**r) for r in records]
    
    def stats(self) -> Dict[str, Any]:
        with self._lock:
            records = list(self._items.values())
        return {
            'total_items': len(records),
            'total_units': sum(r['stock_level'] for r in records),
            'low_stock_count': sum(1 for r in records if r['stock_level'] <= r['min_stock_level']),
            'out_of_stock_count': sum(1 for r in records if r['stock_level'] == 0),
            'total_inventory_value': float(sum(r['stock_level'] * r['unit_cost'] for r in records))
        }
    
    def ping(self) -> bool:
        return True
