"""This module contains all the models for the database."""

from .app_info import AppInfo
from .block import Block
from .tag import Tag


__all__ = (
    'AppInfo',
    'Block',
    'Tag',
)
