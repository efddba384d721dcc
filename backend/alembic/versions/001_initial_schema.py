"""Initial schema: clients, stock, purchasing, production, sales, petty cash

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-01-15

Creates every table of the purchase -> production -> stock -> wastage ->
ledger pipeline, including the client ledger and document counters.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


QTY = sa.Numeric(18, 4)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def _line_columns():
    return [
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('unit_type', sa.String(10), nullable=False),
        sa.Column('bag_weight', QTY, nullable=True),
        sa.Column('quantity', QTY, nullable=False),
        sa.Column('total_kg', QTY, nullable=False),
        sa.Column('unit_price', QTY, nullable=False),
        sa.Column('tax_rate', sa.Numeric(7, 4), nullable=False, server_default='0'),
        sa.Column('discount_rate', sa.Numeric(7, 4), nullable=False, server_default='0'),
        sa.Column('line_subtotal', QTY, nullable=False),
        sa.Column('line_discount', QTY, nullable=False, server_default='0'),
        sa.Column('line_tax', QTY, nullable=False, server_default='0'),
        sa.Column('line_total', QTY, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def upgrade():
    """Create all tables."""

    # Reference data
    op.create_table(
        'clients',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(50), nullable=True),
        sa.Column('company_name', sa.String(200), nullable=False),
        sa.Column('contact_person', sa.String(100), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('client_type', sa.String(20), nullable=False, server_default='customer'),
        sa.Column('balance', QTY, nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_clients_id', 'clients', ['id'])
    op.create_index('ix_clients_code', 'clients', ['code'], unique=True)

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sku', sa.String(50), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('unit_type', sa.String(10), nullable=False, server_default='kg'),
        sa.Column('default_bag_weight', QTY, nullable=True),
        sa.Column('reorder_level', QTY, nullable=True),
        sa.Column('min_stock_level', QTY, nullable=True),
        sa.Column('max_stock_level', QTY, nullable=True),
        sa.Column('base_price', QTY, nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_products_id', 'products', ['id'])
    op.create_index('ix_products_sku', 'products', ['sku'], unique=True)

    op.create_table(
        'warehouses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(50), nullable=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )
    op.create_index('ix_warehouses_id', 'warehouses', ['id'])

    op.create_table(
        'document_counters',
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('last_value', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('name'),
    )

    # Client ledger
    op.create_table(
        'client_ledger_entries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('client_id', sa.Integer(), nullable=False),
        sa.Column('entry_date', sa.Date(), nullable=False),
        sa.Column('entry_type', sa.String(30), nullable=False),
        sa.Column('amount', QTY, nullable=False),
        sa.Column('balance_after', QTY, nullable=False),
        sa.Column('reference_type', sa.String(50), nullable=True),
        sa.Column('reference_id', sa.Integer(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_client_ledger_entries_id', 'client_ledger_entries', ['id'])
    op.create_index('ix_client_ledger_entries_client_id', 'client_ledger_entries', ['client_id'])

    # Stock
    op.create_table(
        'stock',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('warehouse_id', sa.Integer(), nullable=False),
        sa.Column('quantity', QTY, nullable=False, server_default='0'),
        sa.Column('reserved_quantity', QTY, nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.ForeignKeyConstraint(['warehouse_id'], ['warehouses.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_id', 'warehouse_id', name='uq_stock_product_warehouse'),
    )
    op.create_index('ix_stock_id', 'stock', ['id'])

    op.create_table(
        'stock_movements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('warehouse_id', sa.Integer(), nullable=False),
        sa.Column('movement_type', sa.String(30), nullable=False),
        sa.Column('quantity', QTY, nullable=False),
        sa.Column('reference_type', sa.String(50), nullable=True),
        sa.Column('reference_id', sa.Integer(), nullable=True),
        sa.Column('counterpart_warehouse_id', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.ForeignKeyConstraint(['warehouse_id'], ['warehouses.id']),
        sa.ForeignKeyConstraint(['counterpart_warehouse_id'], ['warehouses.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_stock_movements_id', 'stock_movements', ['id'])
    op.create_index('ix_stock_movements_product_warehouse', 'stock_movements', ['product_id', 'warehouse_id'])

    # Purchasing
    op.create_table(
        'purchase_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('po_number', sa.String(50), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('warehouse_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(30), nullable=False, server_default='pending'),
        sa.Column('order_date', sa.Date(), nullable=False),
        sa.Column('expected_delivery_date', sa.Date(), nullable=True),
        sa.Column('production_date', sa.Date(), nullable=True),
        sa.Column('subtotal', QTY, nullable=False, server_default='0'),
        sa.Column('discount_amount', QTY, nullable=False, server_default='0'),
        sa.Column('tax_amount', QTY, nullable=False, server_default='0'),
        sa.Column('total_amount', QTY, nullable=False, server_default='0'),
        sa.Column('is_production_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('production_kg', QTY, nullable=True),
        sa.Column('wastage_kg', QTY, nullable=True),
        sa.Column('wastage_percentage', sa.Numeric(9, 4), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(100), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['supplier_id'], ['clients.id']),
        sa.ForeignKeyConstraint(['warehouse_id'], ['warehouses.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_purchase_orders_id', 'purchase_orders', ['id'])
    op.create_index('ix_purchase_orders_po_number', 'purchase_orders', ['po_number'], unique=True)
    op.create_index('ix_purchase_orders_supplier_id', 'purchase_orders', ['supplier_id'])
    op.create_index('ix_purchase_orders_status', 'purchase_orders', ['status'])
    op.create_index('ix_purchase_orders_is_production_completed', 'purchase_orders', ['is_production_completed'])

    op.create_table(
        'purchase_order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('purchase_order_id', sa.Integer(), nullable=False),
        *_line_columns(),
        sa.Column('is_production_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(['purchase_order_id'], ['purchase_orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_purchase_order_items_id', 'purchase_order_items', ['id'])
    op.create_index('ix_purchase_order_items_purchase_order_id', 'purchase_order_items', ['purchase_order_id'])

    # Production
    op.create_table(
        'production_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('production_number', sa.String(50), nullable=False),
        sa.Column('purchase_order_id', sa.Integer(), nullable=False),
        sa.Column('purchase_order_item_id', sa.Integer(), nullable=True),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('warehouse_id', sa.Integer(), nullable=False),
        sa.Column('purchased_kg', QTY, nullable=False),
        sa.Column('production_kg', QTY, nullable=False),
        sa.Column('production_date', sa.Date(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['purchase_order_id'], ['purchase_orders.id']),
        sa.ForeignKeyConstraint(['purchase_order_item_id'], ['purchase_order_items.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.ForeignKeyConstraint(['warehouse_id'], ['warehouses.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_production_records_id', 'production_records', ['id'])
    op.create_index('ix_production_records_production_number', 'production_records', ['production_number'], unique=True)
    op.create_index('ix_production_records_purchase_order_id', 'production_records', ['purchase_order_id'])
    op.create_index('ix_production_records_purchase_order_item_id', 'production_records', ['purchase_order_item_id'])

    op.create_table(
        'wastage_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('warehouse_id', sa.Integer(), nullable=False),
        sa.Column('quantity', QTY, nullable=False),
        sa.Column('reason', sa.String(30), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('wastage_date', sa.Date(), nullable=False),
        sa.Column('cost_value', QTY, nullable=True),
        sa.Column('production_record_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('reported_by', sa.String(100), nullable=True),
        sa.Column('approved_by', sa.String(100), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.ForeignKeyConstraint(['warehouse_id'], ['warehouses.id']),
        sa.ForeignKeyConstraint(['production_record_id'], ['production_records.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_wastage_records_id', 'wastage_records', ['id'])
    op.create_index('ix_wastage_records_production_record_id', 'wastage_records', ['production_record_id'])
    op.create_index('ix_wastage_records_status', 'wastage_records', ['status'])

    # Sales
    op.create_table(
        'sales_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_number', sa.String(50), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('warehouse_id', sa.Integer(), nullable=False),
        sa.Column('order_date', sa.Date(), nullable=False),
        sa.Column('delivery_date', sa.Date(), nullable=True),
        sa.Column('subtotal', QTY, nullable=False, server_default='0'),
        sa.Column('discount_amount', QTY, nullable=False, server_default='0'),
        sa.Column('tax_amount', QTY, nullable=False, server_default='0'),
        sa.Column('shipping_charges', QTY, nullable=False, server_default='0'),
        sa.Column('total_amount', QTY, nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='confirmed'),
        sa.Column('stock_deducted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(100), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['customer_id'], ['clients.id']),
        sa.ForeignKeyConstraint(['warehouse_id'], ['warehouses.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_sales_orders_id', 'sales_orders', ['id'])
    op.create_index('ix_sales_orders_order_number', 'sales_orders', ['order_number'], unique=True)
    op.create_index('ix_sales_orders_customer_id', 'sales_orders', ['customer_id'])
    op.create_index('ix_sales_orders_status', 'sales_orders', ['status'])

    op.create_table(
        'sales_order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sales_order_id', sa.Integer(), nullable=False),
        *_line_columns(),
        sa.ForeignKeyConstraint(['sales_order_id'], ['sales_orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_sales_order_items_id', 'sales_order_items', ['id'])
    op.create_index('ix_sales_order_items_sales_order_id', 'sales_order_items', ['sales_order_id'])

    # Petty cash
    op.create_table(
        'petty_cash',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('transaction_number', sa.String(50), nullable=False),
        sa.Column('transaction_date', sa.Date(), nullable=False),
        sa.Column('transaction_type', sa.String(10), nullable=False),
        sa.Column('payment_method', sa.String(20), nullable=False, server_default='cash'),
        sa.Column('bank_account_id', sa.Integer(), nullable=True),
        sa.Column('cheque_number', sa.String(50), nullable=True),
        sa.Column('cheque_date', sa.Date(), nullable=True),
        sa.Column('payment_status', sa.String(20), nullable=False, server_default='cleared'),
        sa.Column('client_id', sa.Integer(), nullable=True),
        sa.Column('counterparty_role', sa.String(20), nullable=True),
        sa.Column('amount', QTY, nullable=False),
        sa.Column('reference_type', sa.String(30), nullable=False, server_default='manual'),
        sa.Column('reference_id', sa.Integer(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_void', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_by', sa.String(100), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_petty_cash_id', 'petty_cash', ['id'])
    op.create_index('ix_petty_cash_transaction_number', 'petty_cash', ['transaction_number'], unique=True)
    op.create_index('ix_petty_cash_transaction_date', 'petty_cash', ['transaction_date'])
    op.create_index('ix_petty_cash_client_id', 'petty_cash', ['client_id'])


def downgrade():
    """Drop all tables in reverse dependency order."""
    for table in (
        'petty_cash',
        'sales_order_items',
        'sales_orders',
        'wastage_records',
        'production_records',
        'purchase_order_items',
        'purchase_orders',
        'stock_movements',
        'stock',
        'client_ledger_entries',
        'document_counters',
        'warehouses',
        'products',
        'clients',
    ):
        op.drop_table(table)
