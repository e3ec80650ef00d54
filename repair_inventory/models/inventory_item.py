"""
Inventory Item Model
"""

from repair_inventory.database import db
from datetime import datetime
from decimal import Decimal
import uuid
from sqlalchemy import DECIMAL


class InventoryItem(db.Model):
    """Repair part kept in a shop's inventory"""
    __tablename__ = 'inventory_items'
    
    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(255), nullable=False, index=True)
    part_id = db.Column(db.String(100), nullable=True, index=True)  # External SKU / part code
    category = db.Column(db.String(100), nullable=True)
    description = db.Column(db.Text, nullable=True)
    supplier = db.Column(db.String(255), nullable=True)
    location = db.Column(db.String(255), nullable=True)
    stock_level = db.Column(db.Integer, default=0, nullable=False)
    min_stock_level = db.Column(db.Integer, default=5, nullable=False)
    unit_cost = db.Column(DECIMAL(10, 2), default=0, nullable=False)
    selling_price = db.Column(DECIMAL(10, 2), nullable=True)
    version = db.Column(db.Integer, nullable=False)
    created_by = db.Column(db.String(100), nullable=True)
    updated_by = db.Column(db.String(100), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    
    # Every UPDATE checks and bumps the version (compare-and-set)
    __mapper_args__ = {'version_id_col': version}
    
    def __repr__(self):
        return f'<InventoryItem {self.id} {self.name}>'
    
    @property
    def is_low_stock(self):
        """Check if item is at or below its minimum stock level"""
        return self.stock_level <= self.min_stock_level
    
    @property
    def stock_value(self):
        """On-hand quantity valued at unit cost"""
        return Decimal(self.stock_level or 0) * Decimal(self.unit_cost or 0)
    
    def to_dict(self):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'name': self.name,
            'part_id': self.part_id,
            'category': self.category,
            'description': self.description,
            'supplier': self.supplier,
            'location': self.location,
            'stock_level': self.stock_level,
            'min_stock_level': self.min_stock_level,
            'unit_cost': float(self.unit_cost) if self.unit_cost else 0.0,
            'selling_price': float(self.selling_price) if self.selling_price is not None else None,
            'stock_value': float(self.stock_value),
            'is_low_stock': self.is_low_stock,
            'version': self.version,
            'created_by': self.created_by,
            'updated_by': self.updated_by,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }
