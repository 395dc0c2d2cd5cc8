from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..classes.repository import ClassRepository
from ..common.datetime_utils import now_utc, parse_range_bound
from ..common.validators import optional_str, require_non_empty
from ..core.constants import ALL_TIME, DEFAULT_EXPORT_LOOKUP_WORKERS, UNKNOWN_CLASS
from ..core.enums import AttendanceStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..integrations.storage import ObjectStorage
from ..users.model import User
from ..users.repository import UserRepository
from .csv_export import render_csv, to_row
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

CSV_CONTENT_TYPE = "text/csv"


@dataclass(frozen=True)
class ExportResult:
    url: str
    filename: str
    record_count: int
    class_name: str
    date_range: dict
    status_filter: str
    exported_at: datetime

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "filename": self.filename,
            "recordCount": self.record_count,
            "className": self.class_name,
            "dateRange": dict(self.date_range),
            "statusFilter": self.status_filter,
            "exportedAt": self.exported_at.isoformat(),
        }


class ExportService:
    """Export a class's attendance as CSV and upload it.

    Student profiles are fetched concurrently on a thread pool and all
    lookups are joined before the CSV is rendered. A student whose profile
    is missing, or whose lookup failed, is rendered as ``Unknown Student``.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        classes: ClassRepository,
        storage: ObjectStorage,
        *,
        lookup_workers: int = DEFAULT_EXPORT_LOOKUP_WORKERS,
    ):
        self._attendance = attendance
        self._users = users
        self._classes = classes
        self._storage = storage
        self._workers = max(1, int(lookup_workers))

    @staticmethod
    def _parse_status(status: Optional[str]) -> Optional[str]:
        status = optional_str(status)
        if status is None or status == "all":
            return None
        try:
            return AttendanceStatus(status).value
        except ValueError:
            raise ValidationError("status must be one of present, late, absent, all")

    def _load_students(self, user_ids: list[str]) -> dict[str, Optional[User]]:
        """Resolve every profile before rendering. A missing profile maps to
        ``None``; a failed lookup propagates and fails the export."""

        if not user_ids:
            return {}
        with ThreadPoolExecutor(max_workers=min(self._workers, len(user_ids))) as pool:
            return dict(zip(user_ids, pool.map(self._users.get_by_id, user_ids)))

    def export(
        self,
        class_id: str,
        *,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        status: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ExportResult:
        now = now or now_utc()
        class_id = require_non_empty(class_id, "classId")
        status_filter = self._parse_status(status)

        try:
            start = parse_range_bound(start_date, end_of_day=False)
            end = parse_range_bound(end_date, end_of_day=True)
        except ValueError:
            raise ValidationError("Dates must be in YYYY-MM-DD format")
        if start and end and start > end:
            raise ValidationError("startDate must not be after endDate")

        info = self._classes.get_by_id(class_id)
        if not info:
            raise NotFoundError("Class not found")

        records = list(self._attendance.list_for_class(class_id, start=start, end=end))

        student_ids = list(dict.fromkeys(r.student_id for r in records if r.student_id))
        students = self._load_students(student_ids)

        rows = [to_row(r, students.get(r.student_id) if r.student_id else None) for r in records]
        if status_filter:
            rows = [row for row in rows if row.status == status_filter]

        filename = f"attendance_{info.code or class_id}_{now.strftime('%Y%m%d_%H%M%S')}.csv"
        url = self._storage.upload(render_csv(rows), filename, CSV_CONTENT_TYPE)

        logger.info("Exported %d attendance rows for class %s to %s", len(rows), class_id, filename)
        return ExportResult(
            url=url,
            filename=filename,
            record_count=len(rows),
            class_name=info.name or UNKNOWN_CLASS,
            date_range={"start": optional_str(start_date) or ALL_TIME, "end": optional_str(end_date) or ALL_TIME},
            status_filter=status_filter or "all",
            exported_at=now,
        )
