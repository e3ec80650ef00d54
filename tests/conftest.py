import os
import uuid
import pytest
import jwt
from datetime import datetime
from decimal import Decimal

# Set test environment variables before importing the app
os.environ['FLASK_ENV'] = 'testing'

from repair_inventory.api.main import create_app
from repair_inventory.models import db, InventoryItem, InventoryAuditLogEntry, AuditAction
from repair_inventory.repositories import InMemoryInventoryRepository

TEST_JWT_SECRET = 'test-jwt-secret'


@pytest.fixture(scope='session')
def app():
    """Create application for the tests."""
    app = create_app('testing')
    
    with app.app_context():
        db.create_all()
    
    yield app
    
    with app.app_context():
        db.drop_all()


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def db_session(app):
    """Create a database session for a test."""
    with app.app_context():
        yield db.session
        
        # Clean up tables
        db.session.rollback()
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()


@pytest.fixture
def memory_repo():
    """Empty in-memory inventory backend."""
    return InMemoryInventoryRepository()


def make_token(user_id='op1', **claims):
    """Sign a JWT the way the auth service would."""
    payload = {'sub': user_id, 'roles': ['shop_owner']}
    payload.update(claims)
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm='HS256')


@pytest.fixture
def auth_headers():
    """Authentication headers for operator op1."""
    return {
        'Authorization': f'Bearer {make_token()}',
        'Content-Type': 'application/json'
    }


# Helper functions for tests
def create_test_inventory_item(db_session, with_audit=True, **kwargs):
    """Create a test inventory item, with its add_item audit entry by default."""
    defaults = {
        'name': f'Test Part {str(uuid.uuid4())[:8]}',
        'part_id': 'PART-001',
        'category': 'Screens',
        'stock_level': 10,
        'min_stock_level': 5,
        'unit_cost': Decimal('12.50'),
        'created_by': 'test'
    }
    defaults.update(kwargs)
    
    item = InventoryItem(**defaults)
    db_session.add(item)
    db_session.flush()
    
    if with_audit:
        db_session.add(InventoryAuditLogEntry(
            item_id=item.id,
            item_name=item.name,
            action=AuditAction.ADD_ITEM,
            quantity_change=item.stock_level,
            previous_quantity=0,
            new_quantity=item.stock_level,
            reason=f'Initial stock: {item.stock_level} units',
            operator_id='test'
        ))
    
    db_session.commit()
    return item


def create_test_audit_entry(db_session, item, **kwargs):
    """Create a test audit entry with default values."""
    defaults = {
        'item_id': item.id,
        'item_name': item.name,
        'action': AuditAction.STOCK_INCREASE,
        'quantity_change': 5,
        'previous_quantity': item.stock_level,
        'new_quantity': item.stock_level + 5,
        'reason': 'Test adjustment',
        'operator_id': 'test',
        'timestamp': datetime.utcnow()
    }
    defaults.update(kwargs)
    
    entry = InventoryAuditLogEntry(**defaults)
    db_session.add(entry)
    db_session.commit()
    return entry


def reload_item(db_session, item_id):
    """Read an item as currently stored, bypassing the session cache."""
    db_session.expire_all()
    return db_session.get(InventoryItem, item_id)


def audit_entries_for(db_session, item_id):
    """Audit entries for an item, oldest first."""
    db_session.expire_all()
    return InventoryAuditLogEntry.query.filter_by(item_id=item_id).order_by(
        InventoryAuditLogEntry.timestamp.asc(), InventoryAuditLogEntry.id.asc()
    ).all()


# Test data generators
def generate_inventory_data(**kwargs):
    """Generate inventory item request data."""
    defaults = {
        'name': 'iPhone 12 Screen',
        'part_id': 'SCR-IP12',
        'category': 'Screens',
        'supplier': 'Parts Co',
        'location': 'Shelf A1',
        'stock_level': 10,
        'min_stock_level': 5,
        'unit_cost': 45.0,
        'selling_price': 90.0
    }
    defaults.update(kwargs)
    return defaults
