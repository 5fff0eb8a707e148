"""
Property View Record Store

Thin persistence collaborator for the view counter: insert with uniqueness
conflict detection, and counts with an equality filter. Every call runs in
its own short transaction.
"""

from typing import Dict, Iterable, Union

import structlog
from sqlalchemy import func, insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from realty_api.exceptions import CONFLICT_IGNORED, ConflictIgnored, StoreUnavailable
from realty_api.database.models import PropertyView

logger = structlog.get_logger(__name__)

# Columns of the unique index that defines the dedup window
DEDUP_KEY = ("property_id", "ip_address", "viewed_date")

# Connectivity failures only; bad data propagates as-is
_UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, OSError)


class PropertyViewStore:
    """
    Record store for ``property_views``.

    Example:
        store = PropertyViewStore(session_factory)
        inserted = await store.insert_view({...})
        total = await store.count_views("prop-1")
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    def _insert_statement(self, dialect_name: str, values: dict):
        """ON CONFLICT DO NOTHING where the dialect supports it"""
        if dialect_name == "postgresql":
            return (
                postgresql.insert(PropertyView)
                .values(**values)
                .on_conflict_do_nothing(index_elements=list(DEDUP_KEY))
            )
        if dialect_name == "sqlite":
            return (
                sqlite.insert(PropertyView)
                .values(**values)
                .on_conflict_do_nothing(index_elements=list(DEDUP_KEY))
            )
        return None

    async def insert_view(self, values: dict) -> Union[bool, ConflictIgnored]:
        """
        Insert one view row.

        Args:
            values: Column values for PropertyView (id is generated)

        Returns:
            True if the row was persisted, CONFLICT_IGNORED if a row for the
            same dedup key already exists

        Raises:
            StoreUnavailable: If the database cannot be reached
        """
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    dialect_name = session.bind.dialect.name
                    stmt = self._insert_statement(dialect_name, values)

                    if stmt is not None:
                        result = await session.execute(stmt)
                        inserted = result.rowcount == 1
                    else:
                        # Conflicts surface as IntegrityError
                        await session.execute(insert(PropertyView).values(**values))
                        inserted = True
        except IntegrityError:
            # Dedup key already taken
            inserted = False
        except _UNAVAILABLE_ERRORS as e:
            logger.error(
                "Property view insert failed",
                property_id=values.get("property_id"),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise StoreUnavailable("Failed to record property view") from e

        return True if inserted else CONFLICT_IGNORED

    async def count_views(self, property_id: str) -> int:
        """Total number of stored views for one property"""
        counts = await self.count_views_for_properties([property_id])
        return counts[property_id]

    async def count_views_for_properties(self, property_ids: Iterable[str]) -> Dict[str, int]:
        """
        Stored view counts for several properties in one query.

        Properties without views are reported with 0.
        """
        ids = list(dict.fromkeys(property_ids))
        if not ids:
            return {}

        query = (
            select(PropertyView.property_id, func.count(PropertyView.id).label("count"))
            .where(PropertyView.property_id.in_(ids))
            .group_by(PropertyView.property_id)
        )

        try:
            async with self._session_factory() as session:
                result = await session.execute(query)
                rows = result.all()
        except _UNAVAILABLE_ERRORS as e:
            logger.error("Property view count failed", property_ids=ids, error=str(e))
            raise StoreUnavailable("Failed to fetch property view count") from e

        counts = {property_id: 0 for property_id in ids}
        for row in rows:
            counts[row.property_id] = row.count
        return counts
