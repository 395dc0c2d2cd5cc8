from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions

from ..core.exceptions import StoreError

logger = logging.getLogger(__name__)


def init_firebase_app(
    credentials_path: Optional[str] = None,
    *,
    storage_bucket: Optional[str] = None,
    name: str = "[DEFAULT]",
):
    """Return the named Firebase app, initializing it on first use.

    Without a credentials file, Application Default Credentials are used.
    """

    try:
        return firebase_admin.get_app(name)
    except ValueError:
        pass

    cred = credentials.Certificate(credentials_path) if credentials_path else credentials.ApplicationDefault()
    options = {"storageBucket": storage_bucket} if storage_bucket else None
    app = firebase_admin.initialize_app(cred, options, name=name)
    logger.info("Firebase app %r initialized (bucket=%s)", name, storage_bucket or "-")
    return app


class FirestoreConnection:
    """Lazily created Firestore client bound to one Firebase app."""

    def __init__(self, app: Any = None):
        self._app = app
        self._client = None

    @property
    def app(self) -> Any:
        return self._app

    def client(self):
        if self._client is None:
            self._client = firestore.client(self._app)
        return self._client

    def collection(self, name: str):
        return self.client().collection(name)


@contextmanager
def store_errors(action: str) -> Iterator[None]:
    """Re-raise Google API failures as ``StoreError``."""

    try:
        yield
    except google_exceptions.GoogleAPICallError as e:
        raise StoreError(f"{action} failed: {e}") from e
