"""
Inventory Audit Log Model
"""

from repair_inventory.database import db
from datetime import datetime
from .enums import AuditAction


class InventoryAuditLogEntry(db.Model):
    """Append-only record of a single stock change"""
    __tablename__ = 'inventory_audit_log'
    
    id = db.Column(db.Integer, primary_key=True)
    # Weak reference: entries outlive a deleted item
    item_id = db.Column(db.String(36), nullable=False, index=True)
    item_name = db.Column(db.String(255), nullable=True)
    action = db.Column(db.Enum(AuditAction), nullable=False)
    quantity_change = db.Column(db.Integer, nullable=False)
    previous_quantity = db.Column(db.Integer, nullable=False)
    new_quantity = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    repair_id = db.Column(db.String(100), nullable=True, index=True)
    operator_id = db.Column(db.String(100), nullable=False)
    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    
    def __repr__(self):
        return f'<InventoryAuditLogEntry {self.item_id} {self.action.value} {self.quantity_change}>'
    
    def to_dict(self):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'item_id': self.item_id,
            'item_name': self.item_name,
            'action': self.action.value,
            'quantity_change': self.quantity_change,
            'previous_quantity': self.previous_quantity,
            'new_quantity': self.new_quantity,
            'reason': self.reason,
            'notes': self.notes,
            'repair_id': self.repair_id,
            'operator_id': self.operator_id,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None
        }
