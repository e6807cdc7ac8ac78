"""001_initial_schema

Revision ID: 001
Revises:
Create Date: 2026-10-01 09:00:00.000000

Initial schema for the golf league backend:
- Roster: courses, players
- Events: events, event_players (status + SMS RSVP state)
- Tee sheet: groups, group_assignments (one slot per player per event,
  one player per slot)
- Scoring: scores
- Configuration: settings
"""
from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables from scratch."""
    # Import models to register them with Base.metadata
    from golf_league.database.db import Base
    from golf_league.database import models  # noqa: F401

    bind = op.get_bind()
    Base.metadata.create_all(bind=bind, checkfirst=True)


def downgrade() -> None:
    """Drop all tables."""
    from golf_league.database.db import Base
    from golf_league.database import models  # noqa: F401

    bind = op.get_bind()
    Base.metadata.drop_all(bind=bind, checkfirst=True)
