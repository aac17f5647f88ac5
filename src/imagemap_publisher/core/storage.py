"""Object-store port and its Google Cloud Storage adapter."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from imagemap_publisher.core.exceptions import UploadError

if TYPE_CHECKING:
    from google.cloud import storage

logger = logging.getLogger(__name__)


class ObjectStorage(Protocol):
    """Minimal capability the uploader needs from an object store."""

    def upload_file(self, bucket: str, destination: str, source: Path, content_type: str) -> str:
        """Create or overwrite *destination* in *bucket* from *source*; return its URI."""
        ...


class GcsStorage:
    """``ObjectStorage`` backed by ``google.cloud.storage``.

    Credentials come from the ambient environment (Application Default
    Credentials).  The client is built on first use so that constructing
    the adapter never touches the network.

    Args:
        project: Optional GCP project; the client infers one when ``None``.
        client: Pre-built client, mainly for tests.
    """

    def __init__(self, project: str | None = None, client: storage.Client | None = None) -> None:
        self._project = project
        self._client = client
        self._lock = threading.Lock()

    @property
    def client(self) -> storage.Client:
        """Return the storage client, creating it on first access."""
        with self._lock:
            if self._client is None:
                from google.cloud import storage

                self._client = storage.Client(project=self._project)
                logger.debug("Created GCS client for project %s", self._client.project)
        return self._client

    def upload_file(self, bucket: str, destination: str, source: Path, content_type: str) -> str:
        """Upload *source* to ``gs://bucket/destination``.

        Raises:
            UploadError: If the client or the request fails.
        """
        from google.api_core.exceptions import GoogleAPIError
        from google.auth.exceptions import GoogleAuthError

        uri = f"gs://{bucket}/{destination}"
        try:
            blob = self.client.bucket(bucket).blob(destination)
            blob.upload_from_filename(str(source), content_type=content_type)
        except (GoogleAPIError, GoogleAuthError, OSError) as exc:
            msg = f"Upload of '{source}' to {uri} failed: {exc}"
            raise UploadError(msg) from exc
        return uri
