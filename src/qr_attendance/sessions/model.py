from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import from_epoch_ms


@dataclass(frozen=True)
class QRPayload:
    """What the QR image encodes. ``timestamp`` is epoch milliseconds."""

    class_id: str
    session_id: str
    timestamp: int
    latitude: float
    longitude: float

    def to_json(self) -> str:
        return json.dumps(
            {
                "classId": self.class_id,
                "sessionId": self.session_id,
                "timestamp": self.timestamp,
                "location": {"latitude": self.latitude, "longitude": self.longitude},
            },
            separators=(",", ":"),
        )

    @classmethod
    def from_json(cls, text: str) -> Optional["QRPayload"]:
        """Parse scanned text; ``None`` when it is not a valid attendance payload."""

        try:
            data = json.loads(text)
        except (TypeError, ValueError):
            return None
        if not isinstance(data, dict):
            return None

        location = data.get("location")
        ts = data.get("timestamp")
        if not data.get("classId") or not data.get("sessionId") or not ts:
            return None
        if not isinstance(ts, (int, float)) or isinstance(ts, bool):
            return None
        if not isinstance(location, dict):
            return None
        lat = location.get("latitude")
        lon = location.get("longitude")
        for v in (lat, lon):
            if not isinstance(v, (int, float)) or isinstance(v, bool):
                return None
        try:
            ts = int(ts)
            from_epoch_ms(ts)
        except (OverflowError, OSError, ValueError):
            return None

        return cls(
            class_id=str(data["classId"]),
            session_id=str(data["sessionId"]),
            timestamp=ts,
            latitude=float(lat),
            longitude=float(lon),
        )


@dataclass(frozen=True)
class Session:
    """One attendance window per QR issuance."""

    session_id: str
    class_id: str
    date: str
    start_time: datetime
    end_time: datetime
    created_by: Optional[str] = None
    is_active: bool = True

    @property
    def qr_code_id(self) -> str:
        return self.session_id


@dataclass(frozen=True)
class QRCodeRecord:
    """Short-lived scannable credential; shares its id with the session."""

    qr_id: str
    class_id: str
    session_id: str
    data: str
    location: dict[str, Any]
    expires_at: datetime
    created_at: datetime
    is_active: bool = True
