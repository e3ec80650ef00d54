"""
Inventory Service - Stock adjustments and the audit trail behind them
"""

from typing import List, Dict, Any, Optional, Tuple
from decimal import Decimal, InvalidOperation
import logging

from flask import current_app, has_app_context

from repair_inventory.errors import (
    InventoryError, ValidationError, NotFoundError, InsufficientStockError
)
from repair_inventory.models import AuditAction
from repair_inventory.repositories import get_inventory_repository
from repair_inventory.utils.audit_replay import replay_audit_entries

logger = logging.getLogger(__name__)

DESCRIPTIVE_FIELDS = (
    'name', 'part_id', 'category', 'description', 'supplier', 'location',
    'min_stock_level', 'unit_cost', 'selling_price'
)


def _config(key, default=None):
    if has_app_context():
        return current_app.config.get(key, default)
    return default


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def _to_decimal(value, field):
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", field=field)
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number", field=field)
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative", field=field)
    return amount


class InventoryService:
    """Business logic for repair shop inventory
    
    Every stock change is written together with its audit entry inside one
    repository transaction, and is computed against the item as currently
    stored, never against a caller's cached copy.
    """
    
    def __init__(self, inventory_repo=None):
        self.inventory_repo = inventory_repo or get_inventory_repository()
    
    # =========================================================================
    # Stock-changing operations
    # =========================================================================
    
    def add_inventory_item(self, data: Dict[str, Any], operator_id: str = None) -> Dict[str, Any]:
        """
        Create an inventory item and record its initial stock
        
        Args:
            data: item fields; stock_level is the initial on-hand quantity
            operator_id: who is adding the item
            
        Returns:
            The created item as a dict
        """
        try:
            self._require_operator(operator_id)
            fields = self._clean_descriptive_fields(data)
            if not fields.get('name'):
                raise ValidationError('Name is required', field='name')
            
            stock_level = data.get('stock_level', 0)
            if not _is_int(stock_level) or stock_level < 0:
                raise ValidationError('Initial stock level must be a non-negative integer', field='stock_level')
            
            fields.setdefault('min_stock_level', _config('DEFAULT_MIN_STOCK_LEVEL', 5))
            fields.setdefault('unit_cost', Decimal('0'))
            
            with self.inventory_repo.transaction():
                item = self.inventory_repo.create_item(
                    stock_level=stock_level,
                    created_by=operator_id,
                    updated_by=operator_id,
                    **fields
                )
                self.inventory_repo.append_audit_entry(
                    item_id=item.id,
                    item_name=item.name,
                    action=AuditAction.ADD_ITEM,
                    quantity_change=stock_level,
                    previous_quantity=0,
                    new_quantity=stock_level,
                    reason=f"Initial stock: {stock_level} units",
                    notes=data.get('notes'),
                    operator_id=operator_id
                )
                result = item.to_dict()
            
            logger.info(f"Added inventory item {result['id']} ({result['name']}) with {stock_level} units")
            return result
            
        except InventoryError as e:
            logger.warning(f"Adding inventory item rejected: {e.message}")
            raise
        except Exception as e:
            logger.error(f"Error adding inventory item: {str(e)}")
            raise
    
    def adjust_inventory(self, item_id: str, quantity_delta: int, reason: str,
                         notes: str = None, operator_id: str = None) -> Dict[str, Any]:
        """
        Apply a manual stock change and record why
        
        Args:
            item_id: inventory item to adjust
            quantity_delta: non-zero signed change, positive adds stock
            reason: required explanation for the audit trail
            notes: optional free text
            operator_id: who performed the adjustment
            
        Returns:
            The updated item as a dict
        """
        try:
            with self.inventory_repo.transaction():
                item = self._get_item_or_raise(item_id)
                self._require_operator(operator_id)
                
                if not _is_int(quantity_delta) or quantity_delta == 0:
                    raise ValidationError('Quantity change must be a non-zero integer', field='quantity')
                if not reason or not reason.strip():
                    raise ValidationError('Reason is required for manual adjustments', field='reason')
                if item.stock_level + quantity_delta < 0:
                    raise ValidationError(
                        'Adjustment would result in negative stock level',
                        current_stock=item.stock_level,
                        quantity_change=quantity_delta
                    )
                
                action = AuditAction.STOCK_INCREASE if quantity_delta > 0 else AuditAction.STOCK_DECREASE
                updated, entry = self._apply_stock_change(
                    item, quantity_delta, action, operator_id,
                    reason=reason.strip(),
                    notes=notes
                )
                result = updated.to_dict()
                previous_quantity, new_quantity = entry.previous_quantity, entry.new_quantity
            
            logger.info(
                f"Adjusted stock for item {item_id}: {previous_quantity} -> {new_quantity} "
                f"({action.value}) by {operator_id}"
            )
            self._log_low_stock(result)
            return result
            
        except InventoryError as e:
            logger.warning(f"Stock adjustment rejected for item {item_id}: {e.message}")
            raise
        except Exception as e:
            logger.error(f"Error adjusting stock for item {item_id}: {str(e)}")
            raise
    
    def use_parts_in_repair(self, repair_id: str, parts: List[Dict[str, Any]],
                            operator_id: str = None, atomic: bool = None) -> List[Dict[str, Any]]:
        """
        Consume inventory parts for a repair ticket
        
        Parts are processed in order. By default each part commits on its own,
        so a failure leaves earlier parts applied; the raised error lists them
        in ``committed``. With atomic=True all parts share one transaction and
        a failure applies nothing.
        
        Args:
            repair_id: repair ticket the parts are used in
            parts: list of {'item_id': str, 'quantity': int}
            operator_id: who used the parts
            atomic: all-or-nothing processing, defaults to PARTS_USAGE_ATOMIC
            
        Returns:
            Per-part results in request order
        """
        if atomic is None:
            atomic = bool(_config('PARTS_USAGE_ATOMIC', False))
        
        results = []
        try:
            if not repair_id:
                raise ValidationError('Repair ID is required', field='repair_id')
            self._require_operator(operator_id)
            if not parts:
                raise ValidationError('At least one part is required', field='parts')
            
            if atomic:
                with self.inventory_repo.transaction():
                    for part in parts:
                        results.append(self._use_part(repair_id, part, operator_id))
            else:
                for part in parts:
                    results.append(self._use_part(repair_id, part, operator_id))
            
            logger.info(f"Used {len(results)} part line(s) in repair {repair_id} by {operator_id}")
            return results
            
        except InventoryError as e:
            e.committed = [] if atomic else results
            logger.warning(
                f"Parts usage for repair {repair_id} stopped after {len(e.committed)} committed part(s): {e.message}"
            )
            raise
        except Exception as e:
            logger.error(f"Error using parts in repair {repair_id}: {str(e)}")
            raise
    
    def record_sale(self, item_id: str, quantity: int, customer_name: str, operator_id: str = None,
                    notes: str = None, unit_price: Any = None) -> Dict[str, Any]:
        """Sell parts over the counter, decreasing stock"""
        try:
            with self.inventory_repo.transaction():
                item = self._get_item_or_raise(item_id)
                self._require_operator(operator_id)
                
                if not _is_int(quantity) or quantity < 1:
                    raise ValidationError('Quantity must be greater than 0', field='quantity')
                if not customer_name or not customer_name.strip():
                    raise ValidationError('Customer name is required', field='customer_name')
                if quantity > item.stock_level:
                    raise InsufficientStockError(
                        f"Insufficient stock for {item.name}",
                        item_id=item_id,
                        requested=quantity,
                        available=item.stock_level
                    )
                
                price = unit_price if unit_price is not None else item.selling_price
                price = _to_decimal(price, 'unit_price') if price is not None else None
                
                updated, entry = self._apply_stock_change(
                    item, -quantity, AuditAction.STOCK_DECREASE, operator_id,
                    reason=f"Sale to {customer_name.strip()}",
                    notes=notes
                )
                result = {
                    'item': updated.to_dict(),
                    'audit_entry': entry.to_dict(),
                    'quantity': quantity,
                    'unit_price': float(price) if price is not None else None,
                    'total': float(price * quantity) if price is not None else None
                }
            
            logger.info(f"Sold {quantity} x item {item_id} to {customer_name.strip()}")
            self._log_low_stock(result['item'])
            return result
            
        except InventoryError as e:
            logger.warning(f"Sale rejected for item {item_id}: {e.message}")
            raise
        except Exception as e:
            logger.error(f"Error recording sale for item {item_id}: {str(e)}")
            raise
    
    # =========================================================================
    # Item management
    # =========================================================================
    
    def get_inventory_item(self, item_id: str) -> Dict[str, Any]:
        """Get inventory item by ID"""
        return self._get_item_or_raise(item_id).to_dict()
    
    def list_inventory(self, query: str = None, category: str = None, low_stock: bool = None,
                       page: int = 1, per_page: int = None) -> Tuple[List[Dict[str, Any]], int]:
        """Search inventory, low stock items first"""
        try:
            per_page = per_page or _config('DEFAULT_PAGE_SIZE', 20)
            per_page = min(per_page, _config('MAX_PAGE_SIZE', 100))
            items, total = self.inventory_repo.search_items(
                query=query,
                category=category,
                low_stock=low_stock,
                page=max(page, 1),
                per_page=per_page
            )
            return [item.to_dict() for item in items], total
            
        except Exception as e:
            logger.error(f"Error listing inventory: {str(e)}")
            raise
    
    def update_inventory_item(self, item_id: str, data: Dict[str, Any], operator_id: str = None) -> Dict[str, Any]:
        """Edit descriptive fields; stock only changes through audited operations"""
        try:
            self._require_operator(operator_id)
            if 'stock_level' in data:
                raise ValidationError(
                    'Stock level can only be changed through stock adjustments',
                    field='stock_level'
                )
            unknown = set(data) - set(DESCRIPTIVE_FIELDS)
            if unknown:
                raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
            
            fields = self._clean_descriptive_fields(data)
            if 'name' in data and not fields.get('name'):
                raise ValidationError('Name is required', field='name')
            
            with self.inventory_repo.transaction():
                item = self.inventory_repo.update_item(item_id, updated_by=operator_id, **fields)
                if not item:
                    raise NotFoundError(f"Inventory item {item_id} not found", item_id=item_id)
                result = item.to_dict()
            
            logger.info(f"Updated inventory item {item_id} fields {sorted(fields)} by {operator_id}")
            return result
            
        except InventoryError as e:
            logger.warning(f"Update rejected for item {item_id}: {e.message}")
            raise
        except Exception as e:
            logger.error(f"Error updating inventory item {item_id}: {str(e)}")
            raise
    
    def delete_inventory_item(self, item_id: str, operator_id: str = None) -> bool:
        """Hard delete an item; its audit entries remain as orphans"""
        try:
            self._require_operator(operator_id)
            with self.inventory_repo.transaction():
                if not self.inventory_repo.delete_item(item_id):
                    raise NotFoundError(f"Inventory item {item_id} not found", item_id=item_id)
            
            logger.info(f"Deleted inventory item {item_id} by {operator_id}")
            return True
            
        except InventoryError as e:
            logger.warning(f"Delete rejected for item {item_id}: {e.message}")
            raise
        except Exception as e:
            logger.error(f"Error deleting inventory item {item_id}: {str(e)}")
            raise
    
    # =========================================================================
    # Audit trail and reporting
    # =========================================================================
    
    def get_audit_log(self, item_id: str = None, limit: int = None) -> List[Dict[str, Any]]:
        """Audit entries newest first, for one item or the whole shop"""
        if item_id is None and limit is None:
            limit = _config('AUDIT_LOG_DEFAULT_LIMIT')
        entries = self.inventory_repo.get_audit_entries(item_id=item_id, limit=limit)
        return [entry.to_dict() for entry in entries]
    
    def verify_audit_trail(self, item_id: str) -> Dict[str, Any]:
        """
        Replay an item's audit entries and compare with its stored stock level
        
        Drift is reported, never corrected.
        """
        entries = self.inventory_repo.get_audit_entries(item_id=item_id, newest_first=False)
        item = self.inventory_repo.get_item(item_id)
        if not item and not entries:
            raise NotFoundError(f"Inventory item {item_id} not found", item_id=item_id)
        
        replay = replay_audit_entries(entries)
        current_quantity = item.stock_level if item else None
        in_sync = (
            item is not None
            and replay['replayed_quantity'] == current_quantity
            and not replay['chain_breaks']
        )
        
        if item and not in_sync:
            logger.warning(
                f"Audit trail drift for item {item_id}: stored {current_quantity}, "
                f"replayed {replay['replayed_quantity']}, {len(replay['chain_breaks'])} chain break(s)"
            )
        
        return {
            'item_id': item_id,
            'current_quantity': current_quantity,
            'orphaned': item is None,
            'in_sync': in_sync,
            **replay
        }
    
    def get_inventory_stats(self) -> Dict[str, Any]:
        """Dashboard statistics"""
        stats = self.inventory_repo.stats()
        stats['total_inventory_value'] = round(stats['total_inventory_value'], 2)
        return stats
    
    # =========================================================================
    # Helpers
    # =========================================================================
    
    def _use_part(self, repair_id: str, part: Dict[str, Any], operator_id: str) -> Dict[str, Any]:
        item_id = part.get('item_id')
        quantity = part.get('quantity')
        
        with self.inventory_repo.transaction():
            item = self._get_item_or_raise(item_id)
            if not _is_int(quantity) or quantity < 1:
                raise ValidationError(
                    f"Quantity for {item.name} must be greater than 0",
                    field='quantity',
                    item_id=item_id
                )
            if quantity > item.stock_level:
                raise InsufficientStockError(
                    f"Insufficient stock for {item.name}",
                    item_id=item_id,
                    requested=quantity,
                    available=item.stock_level
                )
            
            updated, entry = self._apply_stock_change(
                item, -quantity, AuditAction.USED_IN_REPAIR, operator_id,
                reason='Used in repair',
                notes=f"Used {quantity} units in repair #{str(repair_id)[:8]}",
                repair_id=repair_id
            )
            result = {
                'item_id': item_id,
                'item_name': updated.name,
                'quantity_used': quantity,
                'previous_quantity': entry.previous_quantity,
                'new_quantity': entry.new_quantity,
                'audit_entry_id': entry.id
            }
            item_state = updated.to_dict()
        
        self._log_low_stock(item_state)
        return result
    
    def _apply_stock_change(self, item, quantity_change: int, action: AuditAction, operator_id: str,
                            reason: str = None, notes: str = None, repair_id: str = None):
        """Write the new stock level and its audit entry; caller owns the transaction"""
        item_id = item.id
        item_name = item.name
        previous_quantity = item.stock_level
        new_quantity = previous_quantity + quantity_change
        
        updated = self.inventory_repo.update_item_stock(
            item_id,
            new_quantity,
            expected_version=item.version,
            updated_by=operator_id
        )
        if updated is None:
            raise NotFoundError(f"Inventory item {item_id} not found", item_id=item_id)
        
        entry = self.inventory_repo.append_audit_entry(
            item_id=item_id,
            item_name=item_name,
            action=action,
            quantity_change=quantity_change,
            previous_quantity=previous_quantity,
            new_quantity=new_quantity,
            reason=reason,
            notes=notes,
            repair_id=repair_id,
            operator_id=operator_id
        )
        return updated, entry
    
    def _get_item_or_raise(self, item_id: str):
        item = self.inventory_repo.get_item(item_id) if item_id else None
        if not item:
            raise NotFoundError(f"Inventory item {item_id} not found", item_id=item_id)
        return item
    
    @staticmethod
    def _require_operator(operator_id: Optional[str]):
        if not operator_id or not str(operator_id).strip():
            raise ValidationError('User information missing', field='operator_id')
    
    @staticmethod
    def _clean_descriptive_fields(data: Dict[str, Any]) -> Dict[str, Any]:
        fields = {}
        for key in DESCRIPTIVE_FIELDS:
            if key not in data:
                continue
            value = data[key]
            if key == 'name':
                value = (value or '').strip()
            elif key == 'min_stock_level':
                if not _is_int(value) or value < 0:
                    raise ValidationError('Min stock level must be a non-negative integer', field=key)
            elif key == 'unit_cost':
                value = _to_decimal(value if value is not None else 0, key)
            elif key == 'selling_price' and value is not None:
                value = _to_decimal(value, key)
            fields[key] = value
        return fields
    
    @staticmethod
    def _log_low_stock(item: Dict[str, Any]):
        if item['is_low_stock']:
            logger.warning(
                f"Low stock: item {item['id']} ({item['name']}) at {item['stock_level']} "
                f"units, minimum {item['min_stock_level']}"
            )
