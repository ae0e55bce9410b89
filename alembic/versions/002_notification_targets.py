"""Move notification audiences into notification_targets

Revision ID: 002_notification_targets
Revises: 001_initial_schema
Create Date: 2026-10-19

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '002_notification_targets'
down_revision: Union[str, None] = '001_initial_schema'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


notifications_table = sa.table(
    'notifications',
    sa.column('id', sa.Integer),
    sa.column('target_roles', sa.JSON),
    sa.column('target_users', sa.JSON),
)

targets_table = sa.table(
    'notification_targets',
    sa.column('notification_id', sa.Integer),
    sa.column('kind', sa.String),
    sa.column('value', sa.String),
)


def upgrade() -> None:
    op.create_table(
        'notification_targets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('notification_id', sa.Integer(), nullable=False),
        sa.Column('kind', sa.String(length=10), nullable=False),
        sa.Column('value', sa.String(), nullable=False),
        sa.ForeignKeyConstraint(['notification_id'], ['notifications.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_notification_targets_id'), 'notification_targets', ['id'], unique=False)
    op.create_index('ix_notification_targets_kind_value', 'notification_targets', ['kind', 'value'], unique=False)
    op.create_index(op.f('ix_notifications_created_at'), 'notifications', ['created_at'], unique=False)

    # Copy existing audiences out of the JSON columns
    bind = op.get_bind()
    rows = []
    for notification in bind.execute(sa.select(notifications_table)):
        for role in notification.target_roles or []:
            rows.append({'notification_id': notification.id, 'kind': 'role', 'value': role})
        for uid in notification.target_users or []:
            rows.append({'notification_id': notification.id, 'kind': 'user', 'value': uid})
    if rows:
        op.bulk_insert(targets_table, rows)

    with op.batch_alter_table('notifications') as batch_op:
        batch_op.drop_column('target_users')
        batch_op.drop_column('target_roles')


def downgrade() -> None:
    with op.batch_alter_table('notifications') as batch_op:
        batch_op.add_column(sa.Column('target_roles', sa.JSON(), nullable=False, server_default='[]'))
        batch_op.add_column(sa.Column('target_users', sa.JSON(), nullable=False, server_default='[]'))

    bind = op.get_bind()
    audiences = {}
    for target in bind.execute(sa.select(targets_table)):
        entry = audiences.setdefault(target.notification_id, {'target_roles': [], 'target_users': []})
        key = 'target_roles' if target.kind == 'role' else 'target_users'
        entry[key].append(target.value)
    for notification_id, values in audiences.items():
        bind.execute(
            notifications_table.update()
            .where(notifications_table.c.id == notification_id)
            .values(**values)
        )

    op.drop_index(op.f('ix_notifications_created_at'), table_name='notifications')
    op.drop_index('ix_notification_targets_kind_value', table_name='notification_targets')
    op.drop_index(op.f('ix_notification_targets_id'), table_name='notification_targets')
    op.drop_table('notification_targets')
