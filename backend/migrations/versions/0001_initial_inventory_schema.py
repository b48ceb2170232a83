"""initial inventory schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-16 00:00:00.000000

Creates the Lumen schema from scratch:
- users / session_tokens: owner accounts and hashed bearer sessions
- products: catalog owned by one user
- inventory_records: one stock row per product
- stock_adjustments: append-only stock ledger
- sales: single-product sales with cancellation audit fields
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # users
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_email', 'users', ['email'])

    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token_hash'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'])
    op.create_index('ix_session_tokens_expires_at', 'session_tokens', ['expires_at'])
    op.create_index('ix_session_tokens_user_active', 'session_tokens', ['user_id', 'is_revoked'])

    # ============================================================================
    # products
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('barcode', sa.String(length=100), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('brand', sa.String(length=100), nullable=True),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'barcode', name='uq_products_user_barcode'),
        sa.CheckConstraint('price_cents > 0', name='ck_products_price_positive'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_user_id', 'products', ['user_id'])
    op.create_index('ix_products_user_active', 'products', ['user_id', 'is_active'])

    # ============================================================================
    # inventory_records: current stock, one row per product
    # ============================================================================
    op.create_table(
        'inventory_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('initial_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('minimum_stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('maximum_stock', sa.Integer(), nullable=True),
        sa.Column('last_restocked', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_id'),
        sa.CheckConstraint('quantity >= 0', name='ck_inventory_quantity_nonnegative'),
        sa.CheckConstraint('initial_quantity >= 0', name='ck_inventory_initial_nonnegative'),
        sa.CheckConstraint('minimum_stock >= 0', name='ck_inventory_minimum_nonnegative'),
        sa.CheckConstraint('maximum_stock IS NULL OR maximum_stock >= minimum_stock',
                           name='ck_inventory_maximum_gte_minimum'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_inventory_records_quantity', 'inventory_records', ['quantity'])

    # ============================================================================
    # stock_adjustments: append-only ledger
    # ============================================================================
    op.create_table(
        'stock_adjustments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('adjustment_type', sa.String(length=16), nullable=False),
        sa.Column('quantity_change', sa.Integer(), nullable=False),
        sa.Column('previous_quantity', sa.Integer(), nullable=False),
        sa.Column('new_quantity', sa.Integer(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('reference', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity_change <> 0', name='ck_stock_adjustments_nonzero'),
        sa.CheckConstraint('previous_quantity >= 0', name='ck_stock_adjustments_previous_nonnegative'),
        sa.CheckConstraint('new_quantity >= 0', name='ck_stock_adjustments_new_nonnegative'),
        sa.CheckConstraint('new_quantity = previous_quantity + quantity_change',
                           name='ck_stock_adjustments_running_total'),
        sa.CheckConstraint(
            "adjustment_type IN ('addition', 'subtraction', 'sale', 'damage', 'expired', 'correction')",
            name='ck_stock_adjustments_type'
        ),
        sqlite_autoincrement=True
    )
    op.create_index('ix_stock_adjustments_product_id', 'stock_adjustments', ['product_id'])
    op.create_index('ix_stock_adjustments_user_id', 'stock_adjustments', ['user_id'])
    op.create_index('ix_stock_adjustments_adjustment_type', 'stock_adjustments', ['adjustment_type'])
    op.create_index('ix_stock_adjustments_created_at', 'stock_adjustments', ['created_at'])
    op.create_index('ix_stock_adjustments_product_created', 'stock_adjustments', ['product_id', 'created_at'])
    op.create_index('ix_stock_adjustments_reference', 'stock_adjustments', ['reference'])

    # ============================================================================
    # sales
    # ============================================================================
    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('total_amount_cents', sa.Integer(), nullable=False),
        sa.Column('sale_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='completed'),
        sa.Column('receipt_number', sa.String(length=50), nullable=False),
        sa.Column('cancelled_by_user_id', sa.Integer(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancel_reason', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.ForeignKeyConstraint(['cancelled_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('receipt_number'),
        sa.CheckConstraint('quantity > 0', name='ck_sales_quantity_positive'),
        sa.CheckConstraint('unit_price_cents > 0', name='ck_sales_unit_price_positive'),
        sa.CheckConstraint("status IN ('completed', 'cancelled', 'refunded')", name='ck_sales_status'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sales_user_id', 'sales', ['user_id'])
    op.create_index('ix_sales_product_id', 'sales', ['product_id'])
    op.create_index('ix_sales_sale_date', 'sales', ['sale_date'])
    op.create_index('ix_sales_status', 'sales', ['status'])
    op.create_index('ix_sales_user_status_date', 'sales', ['user_id', 'status', 'sale_date'])


def downgrade():
    """Drop all tables (destructive operation)."""
    op.drop_table('sales')
    op.drop_table('stock_adjustments')
    op.drop_table('inventory_records')
    op.drop_table('products')
    op.drop_table('session_tokens')
    op.drop_table('users')
