"""Create book and note tables

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Creates the two collections backing Readlog: `book` and `note`.
How:   Identifiers are 24-character hex strings; book.notes is a JSON array
       of note identifiers in insertion order. No foreign keys: the
       book ↔ note relationship is maintained by the services.

Rollback: downgrade() drops both tables (destructive, all data is lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "book",
        sa.Column("id", sa.String(24), nullable=False, comment="12-byte identifier in hex form"),
        sa.Column("title", sa.String(512), nullable=False, server_default=sa.text("''")),
        sa.Column("author", sa.String(512), nullable=False, server_default=sa.text("''")),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("status", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "notes",
            sa.JSON(),
            nullable=False,
            comment="Ordered note identifiers (JSON array of hex strings)",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "note",
        sa.Column("id", sa.String(24), nullable=False),
        sa.Column("book_id", sa.String(24), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("reply_to", sa.String(24), nullable=True),
        sa.Column(
            "create_time",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    # Book deletion removes notes by book_id in bulk
    op.create_index("idx_note_book_id", "note", ["book_id"])


def downgrade() -> None:
    op.drop_index("idx_note_book_id", table_name="note")
    op.drop_table("note")
    op.drop_table("book")
