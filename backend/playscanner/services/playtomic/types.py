"""
Typed definitions for Playtomic API responses.

GET /api/v1/tenants returns a list of tenants (clubs). GET /api/v1/availability returns one
entry per resource (court) with that court's free slots for the requested day. Times are the
club's local wall clock; prices are strings like "48 GBP".
"""

from typing import Any, TypedDict


class PlaytomicCoordinate(TypedDict, total=False):
    lat: float
    lon: float


class PlaytomicAddress(TypedDict, total=False):
    street: str
    city: str
    postal_code: str
    country: str
    coordinate: PlaytomicCoordinate
    timezone: str  # e.g. "Europe/London"


class PlaytomicResourceProperties(TypedDict, total=False):
    resource_type: str  # indoor | outdoor
    resource_size: str  # double | single
    resource_feature: str  # panoramic | wall | crystal


class PlaytomicResource(TypedDict, total=False):
    resource_id: str
    name: str  # e.g. "Court 1"
    sport_id: str
    properties: PlaytomicResourceProperties


class PlaytomicTenant(TypedDict, total=False):
    tenant_id: str
    tenant_uid: str
    tenant_name: str
    slug: str
    playtomic_status: str  # ACTIVE for real, bookable clubs
    address: PlaytomicAddress
    images: list[str]
    resources: list[PlaytomicResource]
    properties: dict[str, Any]


class PlaytomicSlot(TypedDict, total=False):
    start_time: str  # "18:30:00", club-local
    duration: int  # minutes
    price: str  # "48 GBP"


class PlaytomicResourceAvailability(TypedDict, total=False):
    resource_id: str
    start_date: str  # YYYY-MM-DD
    slots: list[PlaytomicSlot]
