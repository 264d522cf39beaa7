"""Create increment_click_count function.

Revision ID: 0002
Revises: 0001
Create Date: 2025-01-12

"""
from typing import Sequence, Union

from alembic import op

from shortlink.db.schema import DROP_INCREMENT_CLICK_COUNT_SQL, INCREMENT_CLICK_COUNT_SQL

# revision identifiers, used by Alembic.
revision: str = "0002"
down_revision: Union[str, None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Add the single-statement click counter used by visit recording."""
    if op.get_bind().dialect.name != "postgresql":
        return
    op.execute(INCREMENT_CLICK_COUNT_SQL)


def downgrade() -> None:
    if op.get_bind().dialect.name != "postgresql":
        return
    op.execute(DROP_INCREMENT_CLICK_COUNT_SQL)
