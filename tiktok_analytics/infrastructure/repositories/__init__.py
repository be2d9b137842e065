# tiktok_analytics/infrastructure/repositories/__init__.py
"""
Repository Layer
Data access patterns for all entities
"""

from .base import BaseRepository
from .account_repository import AccountRepository

__all__ = [
    "BaseRepository",
    "AccountRepository",
]
