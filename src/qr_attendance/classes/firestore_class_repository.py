from __future__ import annotations

from typing import Any, Optional

from ..database.firestore import FirestoreConnection, store_errors
from .model import ClassInfo, GeoFence
from .repository import ClassRepository

CLASSES = "classes"


def _geofence(value: Any) -> Optional[GeoFence]:
    if not isinstance(value, dict):
        return None
    coords = value.get("coordinates") or {}
    lat, lon, radius = coords.get("latitude"), coords.get("longitude"), value.get("radius")
    if lat is None or lon is None or not radius:
        return None
    return GeoFence(latitude=float(lat), longitude=float(lon), radius=float(radius), name=value.get("name"))


class FirestoreClassRepository(ClassRepository):
    def __init__(self, conn: FirestoreConnection):
        self._conn = conn

    def get_by_id(self, class_id: str) -> Optional[ClassInfo]:
        with store_errors("Class lookup"):
            snap = self._conn.collection(CLASSES).document(class_id).get()
        if not snap.exists:
            return None
        data = snap.to_dict() or {}
        return ClassInfo(
            class_id=snap.id,
            name=data.get("name"),
            code=data.get("code"),
            university=data.get("university"),
            location=_geofence(data.get("location")),
        )
