"""Property store interface and its SQLAlchemy implementation."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..exceptions import StoreError
from ..models.property_models import ScrapedProperty, DataSource
from ..models.sync_models import MarketStatistics

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PropertyStore(ABC):
    """Persistent property store consumed by the import and sync pipeline.

    Every operation raises StoreError with a readable message on failure.
    """

    @abstractmethod
    async def fetch_one_by(self, column: str, value: Any) -> Optional[Dict[str, Any]]:
        """Fetch the first property whose column equals value."""

    @abstractmethod
    async def insert_one(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a property and return the stored row."""

    @abstractmethod
    async def update_one(self, property_id: str, changes: Dict[str, Any]) -> None:
        """Update columns of one property by id."""

    @abstractmethod
    async def bulk_update(self,
                          changes: Dict[str, Any],
                          in_column: str,
                          in_values: Sequence[Any],
                          filters: Optional[Dict[str, Any]] = None) -> int:
        """Update every property where in_column is in in_values and filters match.

        Returns:
            int: Number of rows matched
        """

    @abstractmethod
    async def fetch_market_urls(self, source_market: str) -> List[Dict[str, Any]]:
        """Return external_url and is_active of the scraped properties of a market."""

    @abstractmethod
    async def fetch_missing_coordinates(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Return active properties lacking latitude or longitude, oldest first."""

    @abstractmethod
    async def market_statistics(self, source_market: str) -> MarketStatistics:
        """Count the stored scraped properties of a market."""


class SQLAlchemyPropertyStore(PropertyStore):
    """Property store backed by a SQLAlchemy session factory.

    Sessions are blocking, so each operation runs in a worker thread and is
    awaited before the next one starts.
    """

    def __init__(self, session_factory: sessionmaker):
        """Initialize the store.

        Args:
            session_factory: Factory producing database sessions
        """
        self.session_factory = session_factory

    async def _run(self, operation: Callable[[Session], T]) -> T:
        return await asyncio.to_thread(self._run_sync, operation)

    def _run_sync(self, operation: Callable[[Session], T]) -> T:
        db = self.session_factory()
        try:
            result = operation(db)
            db.commit()
            return result
        except StoreError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreError(str(e)) from e
        finally:
            db.close()

    @staticmethod
    def _column(name: str):
        if name not in ScrapedProperty.__table__.columns:
            raise StoreError(f"Unknown column: {name}")
        return getattr(ScrapedProperty, name)

    async def fetch_one_by(self, column: str, value: Any) -> Optional[Dict[str, Any]]:
        attribute = self._column(column)

        def operation(db: Session) -> Optional[Dict[str, Any]]:
            db_property = (
                db.query(ScrapedProperty)
                .filter(attribute == value)
                .order_by(ScrapedProperty.created_at)
                .first()
            )
            return db_property.to_dict() if db_property else None

        return await self._run(operation)

    async def insert_one(self, row: Dict[str, Any]) -> Dict[str, Any]:
        def operation(db: Session) -> Dict[str, Any]:
            db_property = ScrapedProperty(**row)
            db.add(db_property)
            db.flush()
            db.refresh(db_property)
            return db_property.to_dict()

        return await self._run(operation)

    async def update_one(self, property_id: str, changes: Dict[str, Any]) -> None:
        def operation(db: Session) -> None:
            db_property = db.get(ScrapedProperty, property_id)
            if db_property is None:
                raise StoreError(f"Property {property_id} not found")

            for key, value in changes.items():
                self._column(key)
                setattr(db_property, key, value)

        await self._run(operation)

    async def bulk_update(self,
                          changes: Dict[str, Any],
                          in_column: str,
                          in_values: Sequence[Any],
                          filters: Optional[Dict[str, Any]] = None) -> int:
        attribute = self._column(in_column)
        for key in list(changes) + list(filters or {}):
            self._column(key)

        def operation(db: Session) -> int:
            query = db.query(ScrapedProperty).filter(attribute.in_(list(in_values)))
            for key, value in (filters or {}).items():
                query = query.filter(getattr(ScrapedProperty, key) == value)
            return query.update(changes, synchronize_session=False)

        return await self._run(operation)

    async def fetch_market_urls(self, source_market: str) -> List[Dict[str, Any]]:
        def operation(db: Session) -> List[Dict[str, Any]]:
            rows = (
                db.query(ScrapedProperty.external_url, ScrapedProperty.is_active)
                .filter(
                    ScrapedProperty.source_market == source_market,
                    ScrapedProperty.data_source == DataSource.SCRAPED.value,
                    ScrapedProperty.external_url.isnot(None),
                )
                .order_by(ScrapedProperty.created_at)
                .all()
            )
            return [{"external_url": url, "is_active": is_active} for url, is_active in rows]

        return await self._run(operation)

    async def fetch_missing_coordinates(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        def operation(db: Session) -> List[Dict[str, Any]]:
            query = (
                db.query(ScrapedProperty)
                .filter(
                    ScrapedProperty.is_active.is_(True),
                    or_(ScrapedProperty.latitude.is_(None), ScrapedProperty.longitude.is_(None)),
                )
                .order_by(ScrapedProperty.created_at)
            )
            if limit:
                query = query.limit(limit)
            return [db_property.to_dict() for db_property in query.all()]

        return await self._run(operation)

    async def market_statistics(self, source_market: str) -> MarketStatistics:
        def operation(db: Session) -> MarketStatistics:
            base = db.query(ScrapedProperty).filter(
                ScrapedProperty.source_market == source_market,
                ScrapedProperty.data_source == DataSource.SCRAPED.value,
            )
            total = base.count()
            active = base.filter(ScrapedProperty.is_active.is_(True)).count()
            last_scraped = base.with_entities(
                func.max(func.coalesce(ScrapedProperty.last_scraped_at, ScrapedProperty.created_at))
            ).scalar()

            return MarketStatistics(
                source_market=source_market,
                total_properties=total,
                active_properties=active,
                inactive_properties=total - active,
                last_scraped_at=last_scraped,
            )

        return await self._run(operation)
