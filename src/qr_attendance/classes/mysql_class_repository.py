from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import ClassInfo, GeoFence
from .repository import ClassRepository


class MySQLClassRepository(ClassRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, class_id: str) -> Optional[ClassInfo]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT class_id, name, code, university, location_name, latitude, longitude, radius
                FROM classes
                WHERE class_id=%s
                """,
                (class_id,),
            )
            row = fetchone(cur)
            if not row:
                return None

            location = None
            if row.get("latitude") is not None and row.get("longitude") is not None and row.get("radius"):
                location = GeoFence(
                    latitude=float(row["latitude"]),
                    longitude=float(row["longitude"]),
                    radius=float(row["radius"]),
                    name=row.get("location_name"),
                )
            return ClassInfo(
                class_id=str(row["class_id"]),
                name=row.get("name"),
                code=row.get("code"),
                university=row.get("university"),
                location=location,
            )
