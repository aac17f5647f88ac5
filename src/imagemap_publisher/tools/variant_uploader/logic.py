"""Publishing of resized variants to an object-store bucket."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from functools import partial
from pathlib import Path

import anyio
import anyio.to_thread

from imagemap_publisher.core.datatypes import UploadFailure, UploadResult
from imagemap_publisher.core.events import EventBus
from imagemap_publisher.core.exceptions import ValidationError
from imagemap_publisher.core.storage import ObjectStorage

logger = logging.getLogger(__name__)

# Every variant is tagged as PNG whatever its encoded format.
CONTENT_TYPE = "image/png"


def destination_for(prefix: str, local_path: Path) -> str:
    """Return the object name ``<prefix>/<basename>`` for a local file.

    Leading and trailing slashes on *prefix* are ignored; an empty prefix
    places the object at the bucket root.
    """
    prefix = prefix.strip("/")
    if not prefix:
        return local_path.name
    return f"{prefix}/{local_path.name}"


async def upload_variants(
    storage: ObjectStorage,
    bucket: str,
    prefix: str,
    paths: Sequence[Path],
    *,
    content_type: str = CONTENT_TYPE,
    event_bus: EventBus | None = None,
) -> UploadResult:
    """Upload every path concurrently and report what happened.

    Uploads are independent: there is no ordering between them, no retry
    and no integrity check.  Any exception the store raises for
    one file is recorded in ``UploadResult.failed`` and does not stop its
    siblings.

    Args:
        storage: Object store the files are written to.
        bucket: Destination bucket name.
        prefix: Object-name prefix inside the bucket.
        paths: Local files to upload.
        content_type: Content type stamped on every object.
        event_bus: Optional event bus for progress and error events.

    Returns:
        An ``UploadResult``; ``uploaded`` follows the order of *paths*.

    Raises:
        ValidationError: If *bucket* is empty.
    """
    if not bucket:
        msg = "Bucket name must not be empty"
        raise ValidationError(msg)

    total = len(paths)
    uris: list[str | None] = [None] * total
    failures: list[UploadFailure | None] = [None] * total
    finished = 0

    async def _upload(idx: int, path: Path) -> None:
        nonlocal finished
        destination = destination_for(prefix, path)
        logger.info("Uploading %s to gs://%s/%s", path, bucket, destination)
        try:
            uris[idx] = await anyio.to_thread.run_sync(
                partial(storage.upload_file, bucket, destination, path, content_type)
            )
        except Exception as exc:
            logger.error("Upload of %s failed: %s", path, exc)
            failures[idx] = UploadFailure(path=path, destination=destination, error=str(exc))
            if event_bus is not None:
                event_bus.emit("error", tool="variant_uploader", message=str(exc))
            return

        finished += 1
        if event_bus is not None:
            event_bus.emit(
                "progress",
                tool="variant_uploader",
                current=finished,
                total=total,
                message=f"Uploaded {path} to {uris[idx]}",
            )

    async with anyio.create_task_group() as tg:
        for idx, path in enumerate(paths):
            tg.start_soon(_upload, idx, Path(path))

    result = UploadResult(
        bucket=bucket,
        prefix=prefix,
        uploaded=tuple(uri for uri in uris if uri is not None),
        failed=tuple(failure for failure in failures if failure is not None),
    )

    if event_bus is not None:
        event_bus.emit(
            "completed",
            tool="variant_uploader",
            message=f"Done, {len(result.uploaded)}/{total} uploads to gs://{bucket}",
        )

    return result


def upload_batch(
    storage: ObjectStorage,
    bucket: str,
    prefix: str,
    paths: Sequence[Path],
    *,
    content_type: str = CONTENT_TYPE,
    event_bus: EventBus | None = None,
) -> UploadResult:
    """Blocking entry point for ``upload_variants``."""
    return anyio.run(
        partial(
            upload_variants,
            storage,
            bucket,
            prefix,
            paths,
            content_type=content_type,
            event_bus=event_bus,
        )
    )
