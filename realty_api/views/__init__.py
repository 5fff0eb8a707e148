"""
Property Views Module
"""
from .counter import ViewCounter, normalize_ip, normalize_property_id, view_date
from .store import PropertyViewStore

__all__ = [
    "ViewCounter",
    "PropertyViewStore",
    "normalize_ip",
    "normalize_property_id",
    "view_date",
]
