"""
Inventory Repository Implementation (SQL backend)
"""

from contextlib import contextmanager
from datetime import datetime
from functools import wraps
from typing import Any, Dict, List, Optional, Tuple
import logging

from sqlalchemy import case, func, or_, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from repair_inventory.database import db
from repair_inventory.errors import BackendError, ConflictError
from repair_inventory.models import InventoryItem, InventoryAuditLogEntry
from .base import InventoryRepositoryInterface

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    'name', 'part_id', 'category', 'description', 'supplier', 'location',
    'min_stock_level', 'unit_cost', 'selling_price', 'updated_by'
)


def backend_call(func):
    """Translate SQLAlchemy failures into BackendError"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"Database error in {func.__name__}: {e}")
            raise BackendError(f"Database operation failed: {func.__name__}") from e
    return wrapper


class InventoryRepository(InventoryRepositoryInterface):
    """Concrete implementation of inventory repository on Flask-SQLAlchemy"""
    
    def __init__(self):
        self._depth = 0
    
    @contextmanager
    def transaction(self):
        """Commit staged writes on success, roll back everything on failure"""
        outermost = self._depth == 0
        self._depth += 1
        try:
            yield
            if outermost:
                db.session.commit()
        except SQLAlchemyError as e:
            if outermost:
                db.session.rollback()
            logger.error(f"Transaction failed: {e}")
            raise BackendError("Database transaction failed") from e
        except Exception:
            if outermost:
                db.session.rollback()
            raise
        finally:
            self._depth -= 1
    
    @backend_call
    def get_item(self, item_id: str) -> Optional[InventoryItem]:
        """Get inventory item by ID, always reloaded from the database"""
        return db.session.get(InventoryItem, item_id, populate_existing=True)
    
    @backend_call
    def create_item(self, **data) -> InventoryItem:
        """Create new inventory item"""
        item = InventoryItem(**data)
        db.session.add(item)
        db.session.flush()
        return item
    
    @backend_call
    def update_item(self, item_id: str, **fields) -> Optional[InventoryItem]:
        """Update descriptive fields of an inventory item"""
        item = self.get_item(item_id)
        if not item:
            return None
        
        for key, value in fields.items():
            if key in EDITABLE_FIELDS:
                setattr(item, key, value)
        item.updated_at = datetime.utcnow()
        
        try:
            db.session.flush()
        except StaleDataError as e:
            raise ConflictError(f"Inventory item {item_id} was modified concurrently") from e
        return item
    
    @backend_call
    def update_item_stock(self, item_id: str, new_stock_level: int,
                          expected_version: int = None, updated_by: str = None) -> Optional[InventoryItem]:
        """Set the stock level, guarded by the item version"""
        item = self.get_item(item_id)
        if not item:
            return None
        
        if expected_version is not None and item.version != expected_version:
            raise ConflictError(
                f"Inventory item {item_id} was modified concurrently",
                expected_version=expected_version,
                current_version=item.version
            )
        
        item.stock_level = new_stock_level
        item.updated_by = updated_by
        item.updated_at = datetime.utcnow()
        
        try:
            db.session.flush()
        except StaleDataError as e:
            raise ConflictError(f"Inventory item {item_id} was modified concurrently") from e
        return item
    
    @backend_call
    def delete_item(self, item_id: str) -> bool:
        """Hard delete an inventory item; its audit entries are kept"""
        item = self.get_item(item_id)
        if not item:
            return False
        
        db.session.delete(item)
        db.session.flush()
        return True
    
    @backend_call
    def search_items(self, query: str = None, category: str = None, low_stock: bool = None,
                     page: int = 1, per_page: int = 20) -> Tuple[List[InventoryItem], int]:
        """Search inventory items, low stock first then by name"""
        is_low = InventoryItem.stock_level <= InventoryItem.min_stock_level
        q = InventoryItem.query
        
        if query:
            search_term = f"%{query}%"
            q = q.filter(
                or_(
                    InventoryItem.name.ilike(search_term),
                    InventoryItem.part_id.ilike(search_term),
                    InventoryItem.category.ilike(search_term),
                    InventoryItem.description.ilike(search_term)
                )
            )
        
        if category:
            q = q.filter(InventoryItem.category == category)
        
        if low_stock is True:
            q = q.filter(is_low)
        elif low_stock is False:
            q = q.filter(InventoryItem.stock_level > InventoryItem.min_stock_level)
        
        pagination = q.order_by(case((is_low, 0), else_=1), InventoryItem.name).paginate(
            page=page, per_page=per_page, error_out=False
        )
        return pagination.items, pagination.total
    
    @backend_call
    def append_audit_entry(self, **entry) -> InventoryAuditLogEntry:
        """Append an audit log entry"""
        log_entry = InventoryAuditLogEntry(
            item_id=entry['item_id'],
            item_name=entry.get('item_name'),
            action=entry['action'],
            quantity_change=entry['quantity_change'],
            previous_quantity=entry['previous_quantity'],
            new_quantity=entry['new_quantity'],
            reason=entry.get('reason'),
            notes=entry.get('notes'),
            repair_id=entry.get('repair_id'),
            operator_id=entry['operator_id'],
            timestamp=entry.get('timestamp') or datetime.utcnow()
        )
        db.session.add(log_entry)
        db.session.flush()
        return log_entry
    
    @backend_call
    def get_audit_entries(self, item_id: str = None, limit: int = None,
                          newest_first: bool = True) -> List[InventoryAuditLogEntry]:
        """Get audit entries for one item or for all items"""
        q = InventoryAuditLogEntry.query
        if item_id:
            q = q.filter_by(item_id=item_id)
        
        if newest_first:
            q = q.order_by(InventoryAuditLogEntry.timestamp.desc(), InventoryAuditLogEntry.id.desc())
        else:
            q = q.order_by(InventoryAuditLogEntry.timestamp.asc(), InventoryAuditLogEntry.id.asc())
        
        if limit:
            q = q.limit(limit)
        return q.all()
    
    @backend_call
    def stats(self) -> Dict[str, Any]:
        """Aggregate counts and value for the dashboard"""
        total_units = db.session.query(
            func.sum(InventoryItem.stock_level)
        ).scalar()
        total_value = db.session.query(
            func.sum(InventoryItem.stock_level * InventoryItem.unit_cost)
        ).scalar()
        
        return {
            'total_items': InventoryItem.query.count(),
            'total_units': int(total_units) if total_units else 0,
            'low_stock_count': InventoryItem.query.filter(
                InventoryItem.stock_level <= InventoryItem.min_stock_level
            ).count(),
            'out_of_stock_count': InventoryItem.query.filter(
                InventoryItem.stock_level == 0
            ).count(),
            'total_inventory_value': float(total_value) if total_value else 0.0
        }
    
    @backend_call
    def ping(self) -> bool:
        db.session.execute(text('SELECT 1'))
        return True
