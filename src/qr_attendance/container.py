from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from types import ModuleType
from typing import Any

from .attendance.export_service import ExportService
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .classes.repository import ClassRepository
from .core import constants
from .integrations.email import DisabledEmailSender, EmailSender, SmtpEmailSender, SmtpSettings
from .integrations.identity import FirebaseTokenVerifier, JwtTokenVerifier, TokenVerifier
from .integrations.notifier import Notifier
from .integrations.storage import FirebaseStorageUploader, LocalFileStorage, ObjectStorage
from .sessions.cleanup import CleanupService
from .sessions.repository import QRCodeRepository, SessionRepository
from .sessions.service import SessionService
from .student_ids.generator import StudentIdGenerator
from .student_ids.service import StudentIdService
from .users.repository import UserRepository
from .users.service import ApprovalService, ProfileService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceSettings:
    session_duration: timedelta = timedelta(minutes=constants.DEFAULT_SESSION_DURATION_MINUTES)
    qr_ttl: timedelta = timedelta(seconds=constants.DEFAULT_QR_TTL_SECONDS)
    scan_grace: timedelta = timedelta(seconds=constants.DEFAULT_QR_SCAN_GRACE_SECONDS)
    late_threshold_minutes: int = constants.DEFAULT_LATE_THRESHOLD_MINUTES
    duplicate_window: timedelta = timedelta(minutes=constants.DEFAULT_DUPLICATE_WINDOW_MINUTES)
    cleanup_default_days: int = constants.DEFAULT_CLEANUP_DAYS
    export_lookup_workers: int = constants.DEFAULT_EXPORT_LOOKUP_WORKERS

    @classmethod
    def from_settings(cls, settings: ModuleType) -> "ServiceSettings":
        return cls(
            session_duration=timedelta(minutes=int(settings.SESSION_DURATION_MINUTES)),
            qr_ttl=timedelta(seconds=int(settings.QR_TTL_SECONDS)),
            scan_grace=timedelta(seconds=int(settings.QR_SCAN_GRACE_SECONDS)),
            late_threshold_minutes=int(settings.LATE_THRESHOLD_MINUTES),
            duplicate_window=timedelta(minutes=int(settings.DUPLICATE_WINDOW_MINUTES)),
            cleanup_default_days=int(settings.CLEANUP_DEFAULT_DAYS),
            export_lookup_workers=int(settings.EXPORT_LOOKUP_WORKERS),
        )


@dataclass(frozen=True)
class Container:
    settings: ServiceSettings

    users_repo: UserRepository
    classes_repo: ClassRepository
    sessions_repo: SessionRepository
    qr_codes_repo: QRCodeRepository
    attendance_repo: AttendanceRepository

    token_verifier: TokenVerifier
    storage: ObjectStorage
    notifier: Notifier

    student_id_service: StudentIdService
    session_service: SessionService
    cleanup_service: CleanupService
    export_service: ExportService
    approval_service: ApprovalService
    attendance_service: AttendanceService
    profile_service: ProfileService


def wire(
    *,
    users_repo: UserRepository,
    classes_repo: ClassRepository,
    sessions_repo: SessionRepository,
    qr_codes_repo: QRCodeRepository,
    attendance_repo: AttendanceRepository,
    token_verifier: TokenVerifier,
    storage: ObjectStorage,
    email_sender: EmailSender,
    settings: ServiceSettings = ServiceSettings(),
) -> Container:
    """Assemble services around already built repositories and collaborators."""

    notifier = Notifier(email_sender)
    generator = StudentIdGenerator(users_repo)

    return Container(
        settings=settings,
        users_repo=users_repo,
        classes_repo=classes_repo,
        sessions_repo=sessions_repo,
        qr_codes_repo=qr_codes_repo,
        attendance_repo=attendance_repo,
        token_verifier=token_verifier,
        storage=storage,
        notifier=notifier,
        student_id_service=StudentIdService(users_repo, generator),
        session_service=SessionService(
            sessions_repo,
            qr_codes_repo,
            classes_repo,
            session_duration=settings.session_duration,
            qr_ttl=settings.qr_ttl,
        ),
        cleanup_service=CleanupService(sessions_repo, qr_codes_repo),
        export_service=ExportService(
            attendance_repo,
            users_repo,
            classes_repo,
            storage,
            lookup_workers=settings.export_lookup_workers,
        ),
        approval_service=ApprovalService(users_repo, notifier),
        attendance_service=AttendanceService(
            attendance_repo,
            classes_repo,
            notifier,
            qr_ttl=settings.qr_ttl,
            scan_grace=settings.scan_grace,
            late_threshold_minutes=settings.late_threshold_minutes,
            duplicate_window=settings.duplicate_window,
        ),
        profile_service=ProfileService(users_repo),
    )


def _firestore_repositories(firebase_app: Any) -> dict:
    from .attendance.firestore_attendance_repository import FirestoreAttendanceRepository
    from .classes.firestore_class_repository import FirestoreClassRepository
    from .database.firestore import FirestoreConnection
    from .sessions.firestore_session_repository import FirestoreQRCodeRepository, FirestoreSessionRepository
    from .users.firestore_user_repository import FirestoreUserRepository

    conn = FirestoreConnection(firebase_app)
    return {
        "users_repo": FirestoreUserRepository(conn),
        "classes_repo": FirestoreClassRepository(conn),
        "sessions_repo": FirestoreSessionRepository(conn),
        "qr_codes_repo": FirestoreQRCodeRepository(conn),
        "attendance_repo": FirestoreAttendanceRepository(conn),
    }


def _mysql_repositories(db_config: dict) -> dict:
    from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
    from .classes.mysql_class_repository import MySQLClassRepository
    from .database.connection import DatabaseConnection, DBConfig
    from .sessions.mysql_session_repository import MySQLQRCodeRepository, MySQLSessionRepository
    from .users.mysql_user_repository import MySQLUserRepository

    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return {
        "users_repo": MySQLUserRepository(conn),
        "classes_repo": MySQLClassRepository(conn),
        "sessions_repo": MySQLSessionRepository(conn),
        "qr_codes_repo": MySQLQRCodeRepository(conn),
        "attendance_repo": MySQLAttendanceRepository(conn),
    }


def build_container(settings: ModuleType) -> Container:
    """Build the production container from a settings module."""

    store = settings.STORE_BACKEND
    auth = settings.AUTH_BACKEND
    storage_backend = settings.STORAGE_BACKEND

    firebase_app = None
    if "firebase" in (auth, storage_backend) or store == "firestore":
        from .database.firestore import init_firebase_app

        firebase_app = init_firebase_app(
            settings.FIREBASE_CREDENTIALS,
            storage_bucket=settings.FIREBASE_STORAGE_BUCKET,
        )

    if store == "firestore":
        repos = _firestore_repositories(firebase_app)
    elif store == "mysql":
        repos = _mysql_repositories(settings.DB_CONFIG)
    else:
        raise ValueError(f"Unknown STORE_BACKEND: {store!r}")

    if auth == "firebase":
        verifier: TokenVerifier = FirebaseTokenVerifier(firebase_app)
    elif auth == "jwt":
        if not settings.JWT_SECRET:
            raise ValueError("JWT_SECRET is required when AUTH_BACKEND=jwt")
        verifier = JwtTokenVerifier(settings.JWT_SECRET)
    else:
        raise ValueError(f"Unknown AUTH_BACKEND: {auth!r}")

    if storage_backend == "firebase":
        storage: ObjectStorage = FirebaseStorageUploader(settings.FIREBASE_STORAGE_BUCKET, app=firebase_app)
    elif storage_backend == "local":
        storage = LocalFileStorage(settings.EXPORT_DIR, settings.EXPORT_BASE_URL)
    else:
        raise ValueError(f"Unknown STORAGE_BACKEND: {storage_backend!r}")

    if settings.NOTIFICATIONS_EMAIL_ENABLED:
        sender: EmailSender = SmtpEmailSender(
            SmtpSettings(
                host=settings.MAIL_SERVER,
                port=int(settings.MAIL_PORT),
                username=settings.MAIL_USERNAME,
                password=settings.MAIL_PASSWORD,
                use_tls=bool(settings.MAIL_USE_TLS),
                sender=settings.MAIL_DEFAULT_SENDER,
            )
        )
    else:
        sender = DisabledEmailSender()

    logger.info("Container built (store=%s, auth=%s, storage=%s)", store, auth, storage_backend)
    return wire(
        token_verifier=verifier,
        storage=storage,
        email_sender=sender,
        settings=ServiceSettings.from_settings(settings),
        **repos,
    )
