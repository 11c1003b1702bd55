"""composite index for per-teacher grid lookups

Revision ID: 0002
Revises: 0001
"""
from alembic import op

# revision identifiers, used by Alembic.
revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None

def upgrade():
    with op.batch_alter_table("schedule_slots") as batch:
        batch.create_index("ix_schedule_slot_school_teacher", ["school_id", "teacher_id"])

def downgrade():
    with op.batch_alter_table("schedule_slots") as batch:
        batch.drop_index("ix_schedule_slot_school_teacher")
