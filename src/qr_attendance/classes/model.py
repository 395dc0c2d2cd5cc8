from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class GeoFence:
    latitude: float
    longitude: float
    radius: float
    name: Optional[str] = None


@dataclass(frozen=True)
class ClassInfo:
    """Static class metadata. Read-only for this service."""

    class_id: str
    name: Optional[str]
    code: Optional[str] = None
    university: Optional[str] = None
    location: Optional[GeoFence] = None
