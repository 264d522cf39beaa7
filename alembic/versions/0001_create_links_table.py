"""Create links table.

Revision ID: 0001
Revises:
Create Date: 2025-01-10

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the links table."""
    op.create_table(
        "links",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "owner_id",
            sa.String(255),
            nullable=False,
            comment="Identity of the user who created the link",
        ),
        sa.Column(
            "short_code",
            sa.String(20),
            nullable=False,
            comment="Lowercase alphanumeric code used in the short URL",
        ),
        sa.Column(
            "original_url",
            sa.Text(),
            nullable=False,
            comment="The URL to redirect to",
        ),
        sa.Column(
            "click_count",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_links")),
        sa.UniqueConstraint("short_code", name=op.f("uq_links_short_code")),
    )
    op.create_index("ix_links_owner_id", "links", ["owner_id"])
    op.create_index("ix_links_created_at", "links", ["created_at"])


def downgrade() -> None:
    """Drop the links table."""
    op.drop_index("ix_links_created_at", table_name="links")
    op.drop_index("ix_links_owner_id", table_name="links")
    op.drop_table("links")
