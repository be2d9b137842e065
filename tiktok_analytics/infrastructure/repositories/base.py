# tiktok_analytics/infrastructure/repositories/base.py
"""
Base Repository Pattern
Provides generic CRUD operations over a synchronous SQLAlchemy session
"""

import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

# Generic type for models
ModelType = TypeVar("ModelType")


class BaseRepository(Generic[ModelType]):
    """
    Repository with generic CRUD operations

    Usage:
        class AccountRepository(BaseRepository[TikTokAccount]):
            def __init__(self, session: Session):
                super().__init__(session, TikTokAccount)
    """

    def __init__(self, session: Session, model: Type[ModelType]):
        """
        Initialize repository

        Args:
            session: Database session
            model: SQLAlchemy model class
        """
        self.session = session
        self.model = model

    # ========================================================================
    # CREATE Operations
    # ========================================================================

    def create(self, **kwargs) -> ModelType:
        """
        Create new entity

        Args:
            **kwargs: Model attributes

        Returns:
            Created model instance
        """
        try:
            instance = self.model(**kwargs)
            self.session.add(instance)
            self.session.commit()
            self.session.refresh(instance)
            logger.info(f"✅ Created {self.model.__name__}: {getattr(instance, 'id', 'N/A')}")
            return instance
        except Exception as e:
            self.session.rollback()
            logger.error(f"❌ Failed to create {self.model.__name__}: {e}")
            raise

    # ========================================================================
    # READ Operations
    # ========================================================================

    def get_by_id(self, id: Any) -> Optional[ModelType]:
        """Get entity by primary key"""
        return self.session.get(self.model, id)

    def find_one(self, **filters) -> Optional[ModelType]:
        """Find one entity by equality filters"""
        query = select(self.model)
        for key, value in filters.items():
            if hasattr(self.model, key):
                query = query.where(getattr(self.model, key) == value)

        return self.session.execute(query).scalar_one_or_none()

    def find_by(self, **filters) -> List[ModelType]:
        """Find entities by equality filters"""
        query = select(self.model)
        for key, value in filters.items():
            if hasattr(self.model, key):
                query = query.where(getattr(self.model, key) == value)

        return list(self.session.execute(query).scalars().all())

    # ========================================================================
    # UPDATE Operations
    # ========================================================================

    def update(self, instance: ModelType, values: Dict[str, Any]) -> ModelType:
        """
        Apply attribute changes to a loaded entity and commit

        Args:
            instance: Persistent model instance
            values: Fields to update

        Returns:
            Refreshed model instance
        """
        try:
            for key, value in values.items():
                setattr(instance, key, value)
            self.session.commit()
            self.session.refresh(instance)
            logger.info(f"✅ Updated {self.model.__name__}: {getattr(instance, 'id', 'N/A')}")
            return instance
        except Exception as e:
            self.session.rollback()
            logger.error(f"❌ Failed to update {self.model.__name__}: {e}")
            raise
