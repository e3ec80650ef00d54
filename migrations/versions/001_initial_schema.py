"""Initial schema: inventory_items, inventory_audit_log

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-19 09:30:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Create inventory_items table
    op.create_table(
        'inventory_items',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('part_id', sa.String(length=100), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('supplier', sa.String(length=255), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('stock_level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('min_stock_level', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('unit_cost', sa.DECIMAL(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('selling_price', sa.DECIMAL(precision=10, scale=2), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_by', sa.String(length=100), nullable=True),
        sa.Column('updated_by', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )
    
    # Create indexes for inventory_items
    op.create_index('ix_inventory_items_name', 'inventory_items', ['name'])
    op.create_index('ix_inventory_items_part_id', 'inventory_items', ['part_id'])
    
    # Create inventory_audit_log table (no foreign key: entries outlive deleted items)
    op.create_table(
        'inventory_audit_log',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.String(length=36), nullable=False),
        sa.Column('item_name', sa.String(length=255), nullable=True),
        sa.Column('action', sa.Enum('ADD_ITEM', 'STOCK_INCREASE', 'STOCK_DECREASE', 'USED_IN_REPAIR', name='auditaction'), nullable=False),
        sa.Column('quantity_change', sa.Integer(), nullable=False),
        sa.Column('previous_quantity', sa.Integer(), nullable=False),
        sa.Column('new_quantity', sa.Integer(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('repair_id', sa.String(length=100), nullable=True),
        sa.Column('operator_id', sa.String(length=100), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )
    
    # Create indexes for inventory_audit_log
    op.create_index('ix_inventory_audit_log_item_id', 'inventory_audit_log', ['item_id'])
    op.create_index('ix_inventory_audit_log_repair_id', 'inventory_audit_log', ['repair_id'])
    op.create_index('ix_inventory_audit_log_timestamp', 'inventory_audit_log', ['timestamp'])


def downgrade():
    op.drop_index('ix_inventory_audit_log_timestamp', table_name='inventory_audit_log')
    op.drop_index('ix_inventory_audit_log_repair_id', table_name='inventory_audit_log')
    op.drop_index('ix_inventory_audit_log_item_id', table_name='inventory_audit_log')
    op.drop_table('inventory_audit_log')
    
    op.drop_index('ix_inventory_items_part_id', table_name='inventory_items')
    op.drop_index('ix_inventory_items_name', table_name='inventory_items')
    op.drop_table('inventory_items')
    
    sa.Enum(name='auditaction').drop(op.get_bind(), checkfirst=True)
