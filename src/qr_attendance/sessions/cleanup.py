from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from ..common.datetime_utils import coerce_datetime, now_utc
from ..core.constants import DEFAULT_CLEANUP_DAYS
from ..core.enums import CleanupType
from ..core.exceptions import ValidationError
from .repository import QRCodeRepository, SessionRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CleanupResult:
    deleted_count: int = 0
    failed_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"deletedCount": self.deleted_count, "failedIds": list(self.failed_ids)}


@dataclass(frozen=True)
class SweepReport:
    cleanup_type: CleanupType
    expired_qr_codes: CleanupResult
    expired_sessions: CleanupResult
    old_qr_codes: CleanupResult

    @property
    def total_deleted(self) -> int:
        return (
            self.expired_qr_codes.deleted_count
            + self.expired_sessions.deleted_count
            + self.old_qr_codes.deleted_count
        )

    @property
    def warnings(self) -> list[str]:
        failed = self.expired_qr_codes.failed_ids + self.expired_sessions.failed_ids + self.old_qr_codes.failed_ids
        return [f"Failed to delete {i}" for i in failed]

    def to_dict(self) -> dict:
        return {
            "expiredQRCodes": self.expired_qr_codes.to_dict(),
            "expiredSessions": self.expired_sessions.to_dict(),
            "oldQRCodes": self.old_qr_codes.to_dict(),
        }


class CleanupService:
    """Reclaim expired sessions and QR records.

    Every operation is idempotent. A failed delete is recorded and the sweep
    goes on; counts only include records that were actually removed.
    """

    def __init__(self, sessions: SessionRepository, qr_codes: QRCodeRepository):
        self._sessions = sessions
        self._qr_codes = qr_codes

    @staticmethod
    def _delete_each(ids: Iterable[str], delete: Callable[[str], bool], kind: str) -> CleanupResult:
        deleted = 0
        failed: list[str] = []
        for item_id in ids:
            try:
                if delete(item_id):
                    deleted += 1
            except Exception:
                logger.warning("Failed to delete %s %s", kind, item_id, exc_info=True)
                failed.append(item_id)
        return CleanupResult(deleted_count=deleted, failed_ids=failed)

    def cleanup_expired_qr_codes(self, now: Optional[datetime] = None) -> CleanupResult:
        now = now or now_utc()
        expired = self._qr_codes.list_expired(now)
        result = self._delete_each((q.qr_id for q in expired), self._qr_codes.delete, "QR code")
        logger.info("Expired QR cleanup: %d deleted, %d failed", result.deleted_count, len(result.failed_ids))
        return result

    def cleanup_expired_sessions(self, now: Optional[datetime] = None) -> CleanupResult:
        now = now or now_utc()
        expired = self._sessions.list_expired_active(now)
        result = self._delete_each((s.session_id for s in expired), self._sessions.delete, "session")
        logger.info("Expired session cleanup: %d deleted, %d failed", result.deleted_count, len(result.failed_ids))
        return result

    def cleanup_old_qr_codes(self, days_old: int = DEFAULT_CLEANUP_DAYS, now: Optional[datetime] = None) -> CleanupResult:
        now = now or now_utc()
        cutoff = now - timedelta(days=days_old)
        old = self._qr_codes.list_created_before(cutoff)
        result = self._delete_each((q.qr_id for q in old), self._qr_codes.delete, "QR code")
        logger.info(
            "Old QR cleanup (>%d days): %d deleted, %d failed", days_old, result.deleted_count, len(result.failed_ids)
        )
        return result

    def sweep(
        self,
        cleanup_type: CleanupType = CleanupType.ALL,
        *,
        days_old: int = DEFAULT_CLEANUP_DAYS,
        now: Optional[datetime] = None,
    ) -> SweepReport:
        if isinstance(days_old, bool) or not isinstance(days_old, int) or days_old < 0:
            raise ValidationError("daysOld must be a non-negative integer")

        now = now or now_utc()
        empty = CleanupResult()
        expired_qr = expired_sessions = old_qr = empty

        if cleanup_type in (CleanupType.ALL, CleanupType.EXPIRED):
            expired_qr = self.cleanup_expired_qr_codes(now)
            expired_sessions = self.cleanup_expired_sessions(now)
        if cleanup_type in (CleanupType.ALL, CleanupType.OLD):
            old_qr = self.cleanup_old_qr_codes(days_old, now)

        report = SweepReport(
            cleanup_type=cleanup_type,
            expired_qr_codes=expired_qr,
            expired_sessions=expired_sessions,
            old_qr_codes=old_qr,
        )
        logger.info("Cleanup (%s) completed, %d items removed", cleanup_type.value, report.total_deleted)
        return report

    def stats(self, now: Optional[datetime] = None) -> dict:
        """Active vs. expired counts per collection. Read-only."""

        now = now or now_utc()
        qr_codes = self._qr_codes.list_all()
        sessions = self._sessions.list_all()

        qr_expired = qr_active = 0
        for q in qr_codes:
            expires_at = coerce_datetime(q.expires_at)
            if expires_at is not None and expires_at <= now:
                qr_expired += 1
            elif q.is_active:
                qr_active += 1

        s_expired = s_active = 0
        for s in sessions:
            end_time = coerce_datetime(s.end_time)
            if s.is_active and end_time is not None and end_time <= now:
                s_expired += 1
            elif s.is_active:
                s_active += 1

        return {
            "qrCodes": {"total": len(qr_codes), "active": qr_active, "expired": qr_expired},
            "sessions": {"total": len(sessions), "active": s_active, "expired": s_expired},
            "timestamp": now.isoformat(),
        }
