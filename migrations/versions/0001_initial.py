"""initial tables: schools, users, schedule_slots

Revision ID: 0001
Revises: 
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('schools',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.UniqueConstraint('name', name='uq_schools_name'),
    )

    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('school_id', sa.Integer(), sa.ForeignKey('schools.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='teacher'),
        sa.Column('is_active_flag', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_school_id', 'users', ['school_id'])

    op.create_table('schedule_slots',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('school_id', sa.Integer(), sa.ForeignKey('schools.id', ondelete='CASCADE'), nullable=False),
        sa.Column('teacher_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('weekday', sa.Integer(), nullable=False),
        sa.Column('period_index', sa.Integer(), nullable=False),
        sa.Column('subject', sa.String(length=255), nullable=False),
        sa.Column('class_section', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('school_id', 'class_section', 'weekday', 'period_index',
                            name='uq_schedule_slot_school_class_day_period'),
    )
    op.create_index('ix_schedule_slots_school_id', 'schedule_slots', ['school_id'])
    op.create_index('ix_schedule_slots_teacher_id', 'schedule_slots', ['teacher_id'])
    op.create_index('ix_schedule_slot_school_day_period', 'schedule_slots',
                    ['school_id', 'weekday', 'period_index'])

def downgrade():
    op.drop_index('ix_schedule_slot_school_day_period', table_name='schedule_slots')
    op.drop_index('ix_schedule_slots_teacher_id', table_name='schedule_slots')
    op.drop_index('ix_schedule_slots_school_id', table_name='schedule_slots')
    op.drop_table('schedule_slots')
    op.drop_index('ix_users_school_id', table_name='users')
    op.drop_index('ix_users_role', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    op.drop_table('schools')
