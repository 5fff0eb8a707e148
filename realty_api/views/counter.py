"""
Property View Counter

Turns "someone loaded property P from IP X at time T" events into a
deduplicated view count per property. One view is kept per property, client
IP and calendar day; the day is taken in the configured time zone.

Deduplication is enforced by the unique index on ``property_views``. A
duplicate insert is an expected outcome and never fails the caller.
"""

import ipaddress
from datetime import date, datetime, timezone, tzinfo
from typing import Dict, Iterable, Optional

import structlog

from realty_api.database.models import IP_ADDRESS_MAX_LENGTH, PROPERTY_ID_MAX_LENGTH
from realty_api.exceptions import ValidationError
from realty_api.metrics import PROPERTY_VIEWS
from realty_api.views.store import PropertyViewStore

logger = structlog.get_logger(__name__)


def normalize_property_id(property_id: Optional[str]) -> str:
    """Trim and validate a listing identifier"""
    if property_id is None or not isinstance(property_id, str):
        raise ValidationError("Invalid property ID")

    property_id = property_id.strip()
    if not property_id or len(property_id) > PROPERTY_ID_MAX_LENGTH:
        raise ValidationError("Invalid property ID")
    if any(ch.isspace() or not ch.isprintable() for ch in property_id):
        raise ValidationError("Invalid property ID")
    return property_id


def normalize_ip(viewer_ip: Optional[str]) -> str:
    """
    Canonical text form of a client address.

    IP literals are compressed (IPv4-mapped IPv6 collapses to IPv4) so the
    same client always produces the same dedup key. Other non-empty values,
    such as proxy-supplied host names, are kept as given.
    """
    if viewer_ip is None or not isinstance(viewer_ip, str):
        raise ValidationError("Missing viewer IP")

    viewer_ip = viewer_ip.strip()
    if not viewer_ip:
        raise ValidationError("Missing viewer IP")

    try:
        address = ipaddress.ip_address(viewer_ip)
    except ValueError:
        if len(viewer_ip) > IP_ADDRESS_MAX_LENGTH:
            raise ValidationError("Invalid viewer IP")
        return viewer_ip

    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped
    return str(address)


def view_date(moment: datetime, tz: tzinfo) -> date:
    """Calendar day of ``moment`` in ``tz``; naive datetimes are taken as UTC"""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz).date()


class ViewCounter:
    """
    Records deduplicated property views and reports totals.

    Example:
        counter = ViewCounter(PropertyViewStore(session_factory), tz=ZoneInfo("UTC"))
        total = await counter.record_view("prop-1", "1.2.3.4")
    """

    def __init__(self, store: PropertyViewStore, tz: tzinfo = timezone.utc):
        self.store = store
        self.tz = tz

    async def record_view(
        self,
        property_id: str,
        viewer_ip: str,
        viewer_profile_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """
        Record a view and return the property's total view count.

        A second view from the same IP on the same day is absorbed: nothing is
        stored and the current total is still returned.

        Args:
            property_id: Listing identifier
            viewer_ip: Client address
            viewer_profile_id: Authenticated viewer, if any (not part of the dedup key)
            now: Event time, defaults to the current UTC time

        Returns:
            Total stored views for the property, across all days and IPs

        Raises:
            ValidationError: Missing or malformed property ID, IP or profile ID
            StoreUnavailable: The record store could not be reached
        """
        property_id = normalize_property_id(property_id)
        viewer_ip = normalize_ip(viewer_ip)
        if viewer_profile_id is not None:
            viewer_profile_id = str(viewer_profile_id).strip() or None
            if viewer_profile_id and len(viewer_profile_id) > PROPERTY_ID_MAX_LENGTH:
                raise ValidationError("Invalid viewer profile ID")

        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        inserted = await self.store.insert_view(
            {
                "property_id": property_id,
                "ip_address": viewer_ip,
                "profiles_id": viewer_profile_id,
                "viewed_at": now,
                "viewed_date": view_date(now, self.tz),
            }
        )

        count = await self.store.count_views(property_id)

        PROPERTY_VIEWS.labels(outcome="recorded" if inserted else "duplicate").inc()
        if inserted:
            logger.info("Property view recorded", property_id=property_id, count=count)
        else:
            logger.debug("Duplicate property view ignored", property_id=property_id, count=count)

        return count

    async def get_view_count(self, property_id: str) -> int:
        """Total stored views for a property, without recording one"""
        return await self.store.count_views(normalize_property_id(property_id))

    async def get_view_counts(self, property_ids: Iterable[str]) -> Dict[str, int]:
        """Totals for several properties, keyed by the trimmed identifier"""
        ids = [normalize_property_id(property_id) for property_id in property_ids]
        return await self.store.count_views_for_properties(ids)
