"""
Database Models

Only the tables owned by this service are mapped here. Listings, profiles,
inquiries and contact submissions belong to the wider platform schema and are
read with plain SQL where needed (see ``realty_api.serving.dashboard``).

Tables:
- PropertyView: one row per deduplicated listing view
"""

from datetime import datetime, date
from typing import Optional
import uuid

from sqlalchemy import (
    Date,
    DateTime,
    Index,
    String,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


PROPERTY_ID_MAX_LENGTH = 64
IP_ADDRESS_MAX_LENGTH = 64


class PropertyView(Base):
    """
    Property View Table

    Grain: one row per (property, client IP, calendar day). The unique index
    ``unique_ip_view_24h`` is what enforces the dedup window; writers rely on
    it instead of locking.
    """
    __tablename__ = "property_views"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    property_id: Mapped[str] = mapped_column(String(PROPERTY_ID_MAX_LENGTH), nullable=False)
    ip_address: Mapped[str] = mapped_column(String(IP_ADDRESS_MAX_LENGTH), nullable=False)

    # Informational only, not part of the dedup key
    profiles_id: Mapped[Optional[str]] = mapped_column(String(PROPERTY_ID_MAX_LENGTH))

    viewed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    viewed_date: Mapped[date] = mapped_column(Date, nullable=False)

    __table_args__ = (
        Index(
            "unique_ip_view_24h",
            "property_id",
            "ip_address",
            "viewed_date",
            unique=True,
        ),
        Index("idx_property_views_property_id", "property_id"),
        Index("idx_property_views_profiles_id", "profiles_id"),
    )

    def __repr__(self) -> str:
        return f"<PropertyView {self.property_id} {self.ip_address} {self.viewed_date}>"
