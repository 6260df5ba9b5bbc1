"""initial operations schema

Revision ID: 0001_initial_ops
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the operations engine schema:
- roles / employees: capability sets and principal profiles
- inventory_items / inventory_transactions: stock and its append-only ledger
- purchase_requests (+ lines, history): two-stage approval workflow
- attendance_records, notifications
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_ops'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'roles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('full_access', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_roles_name', 'roles', ['name'], unique=True)

    op.create_table(
        'employees',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('role_id', sa.Integer(), nullable=True),
        sa.Column('designation', sa.String(length=64), nullable=True),
        sa.Column('department', sa.String(length=64), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_employees_email', 'employees', ['email'])
    op.create_index('ix_employees_role_id', 'employees', ['role_id'])

    op.create_table(
        'inventory_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('barcode', sa.String(length=64), nullable=False),
        sa.Column('category', sa.String(length=64), nullable=True),
        sa.Column('unit', sa.String(length=16), nullable=False, server_default='pcs'),
        sa.Column('opening_stock', sa.Numeric(precision=15, scale=3), nullable=False, server_default='0'),
        sa.Column('stock', sa.Numeric(precision=15, scale=3), nullable=False, server_default='0'),
        sa.Column('threshold', sa.Numeric(precision=15, scale=3), nullable=False, server_default='0'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('stock >= 0', name='ck_inventory_items_stock_non_negative'),
        sa.CheckConstraint('threshold >= 0', name='ck_inventory_items_threshold_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_inventory_items_name', 'inventory_items', ['name'])
    op.create_index('ix_inventory_items_barcode', 'inventory_items', ['barcode'], unique=True)

    op.create_table(
        'inventory_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('item_name', sa.String(length=255), nullable=False),
        sa.Column('barcode', sa.String(length=64), nullable=False),
        sa.Column('action', sa.String(length=8), nullable=False),
        sa.Column('quantity', sa.Numeric(precision=15, scale=3), nullable=False),
        sa.Column('actor', sa.String(length=120), nullable=False),
        sa.Column('actor_id', sa.String(length=64), nullable=True),
        sa.Column('reason', sa.String(length=255), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_inventory_transactions_quantity_positive'),
        sa.ForeignKeyConstraint(['item_id'], ['inventory_items.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_inventory_transactions_item_id', 'inventory_transactions', ['item_id'])
    op.create_index('ix_inventory_transactions_occurred_at', 'inventory_transactions', ['occurred_at'])
    op.create_index('ix_inventory_tx_item_occurred', 'inventory_transactions', ['item_id', 'occurred_at'])

    op.create_table(
        'purchase_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('requested_by_id', sa.String(length=64), nullable=True),
        sa.Column('requested_by_name', sa.String(length=120), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('needed_by', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending-supervisor'),
        sa.Column('supervisor_decision', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('supervisor_by', sa.String(length=120), nullable=True),
        sa.Column('supervisor_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('supervisor_note', sa.Text(), nullable=True),
        sa.Column('executive_decision', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('executive_by', sa.String(length=120), nullable=True),
        sa.Column('executive_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('executive_note', sa.Text(), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['requested_by_id'], ['employees.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_purchase_requests_code', 'purchase_requests', ['code'], unique=True)
    op.create_index('ix_purchase_requests_requested_by_id', 'purchase_requests', ['requested_by_id'])
    op.create_index('ix_purchase_requests_status', 'purchase_requests', ['status'])

    op.create_table(
        'purchase_request_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('request_id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit', sa.String(length=16), nullable=False, server_default='pcs'),
        sa.CheckConstraint('quantity > 0', name='ck_purchase_request_lines_quantity_positive'),
        sa.ForeignKeyConstraint(['request_id'], ['purchase_requests.id']),
        sa.ForeignKeyConstraint(['item_id'], ['inventory_items.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_purchase_request_lines_request_id', 'purchase_request_lines', ['request_id'])

    op.create_table(
        'purchase_request_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('request_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=32), nullable=False),
        sa.Column('actor', sa.String(length=120), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['request_id'], ['purchase_requests.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_purchase_request_history_request_id', 'purchase_request_history', ['request_id'])

    op.create_table(
        'attendance_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.String(length=64), nullable=False),
        sa.Column('employee_name', sa.String(length=120), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('kind', sa.String(length=16), nullable=False, server_default='manual'),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('recorded_by', sa.String(length=120), nullable=True),
        sa.Column('recorded_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('clock_day', sa.Date(), nullable=True),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id']),
        sa.UniqueConstraint('employee_id', 'kind', 'clock_day', name='uq_attendance_clock_once_per_day'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_attendance_records_employee_id', 'attendance_records', ['employee_id'])
    op.create_index('ix_attendance_records_recorded_at', 'attendance_records', ['recorded_at'])
    op.create_index('ix_attendance_employee_recorded', 'attendance_records', ['employee_id', 'recorded_at'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('severity', sa.String(length=16), nullable=False, server_default='info'),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('meta', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_notifications_is_read', 'notifications', ['is_read'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])


def downgrade():
    op.drop_table('notifications')
    op.drop_table('attendance_records')
    op.drop_table('purchase_request_history')
    op.drop_table('purchase_request_lines')
    op.drop_table('purchase_requests')
    op.drop_table('inventory_transactions')
    op.drop_table('inventory_items')
    op.drop_table('employees')
    op.drop_table('roles')
