"""Add notes table

Revision ID: 002
Revises: 001
Create Date: 2026-10-12

"""
from alembic import op

revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    # body, colors and position hold JSON-encoded strings
    op.execute("""
        CREATE TABLE IF NOT EXISTS notes (
            id SERIAL PRIMARY KEY,
            body TEXT NOT NULL DEFAULT '""',
            colors TEXT NOT NULL,
            position TEXT NOT NULL DEFAULT '{"x": 10, "y": 10}',
            user_id INTEGER REFERENCES users(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_notes_user ON notes(user_id)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS notes")
