"""The AppInfo model."""

import sqlalchemy as sa

from timekeeper.database import Base


class AppInfo(Base):
    """Key/value facts about the store itself, such as its schema version."""
    __tablename__ = 'app_info'

    id = sa.Column(sa.Integer, primary_key=True)
    key = sa.Column(sa.Text, nullable=False, unique=True)
    value = sa.Column(sa.Text)
