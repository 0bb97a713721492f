"""Clip upload to storage.

Files are checked locally first (type by extension, 50 GB ceiling); a
rejected file never causes a network call. Each accepted file is then
uploaded in its own asyncio task: ask the service for a presigned URL,
PUT the bytes there, and record the public URL. One file failing does
not stop the others; its error is reported alongside the successes.
A clip only appears in the session's clip list once its upload finished.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path

from .composition import CompositionSession
from .errors import ServiceError, UploadError
from .render_client import RenderClient

logger = logging.getLogger(__name__)

MAX_VIDEO_SIZE_GB = 50
MAX_VIDEO_SIZE_BYTES = MAX_VIDEO_SIZE_GB * 1024 * 1024 * 1024

SUPPORTED_VIDEO_TYPES = {
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".webm": "video/webm",
}

CHUNK_SIZE = 8 * 1024 * 1024


def validate_upload(path: str | Path) -> str:
    """Check one file before upload and return its content type.

    Raises:
        UploadError: missing file, unsupported type, or over the size ceiling.
    """
    p = Path(path)
    content_type = SUPPORTED_VIDEO_TYPES.get(p.suffix.lower())
    if content_type is None:
        raise UploadError(
            str(path),
            f"Invalid video format. Supported: MP4, MOV, WEBM. Your file: '{p.suffix or '(none)'}'",
        )
    if not p.is_file():
        raise UploadError(str(path), "File not found")
    size = p.stat().st_size
    if size > MAX_VIDEO_SIZE_BYTES:
        raise UploadError(
            str(path),
            f"Video too large. Max: {MAX_VIDEO_SIZE_GB}GB. "
            f"Your file: {size / 1024 ** 3:.2f}GB",
        )
    return content_type


@dataclass
class UploadReport:
    """Outcome of a batch: public URLs in input order, and per-file errors."""

    urls: list[str] = field(default_factory=list)
    errors: list[UploadError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


async def _read_chunks(path: Path):
    with open(path, "rb") as f:
        while True:
            chunk = await asyncio.to_thread(f.read, CHUNK_SIZE)
            if not chunk:
                break
            yield chunk


async def upload_clip(client: RenderClient, path: str | Path) -> str:
    """Upload one clip and return the URL the renderer should read it from.

    Raises:
        UploadError: local rejection or any storage/service failure.
    """
    p = Path(path)
    content_type = validate_upload(p)
    try:
        size = p.stat().st_size
        presigned = await client.presign_upload(p.name, content_type, size)
        logger.debug("Uploading %s (%d bytes) to %s", p.name, size, presigned.key)
        await client.put_object(
            presigned.upload_url, _read_chunks(p), content_type=content_type, size=size,
        )
        url = client.public_url(presigned)
    except ServiceError as e:
        raise UploadError(str(path), str(e)) from e
    except OSError as e:
        raise UploadError(str(path), f"Cannot read file: {e.strerror or e}") from e
    logger.info("Uploaded %s -> %s", p.name, url)
    return url


async def upload_clips(
    client: RenderClient,
    paths: list[str | Path],
    session: CompositionSession | None = None,
) -> UploadReport:
    """Upload a batch concurrently, one task per file.

    Each URL is appended to the session's clip list (if given) as soon as
    its own upload finishes, so cancelling the batch keeps the clips that
    already made it. The report lists URLs in input order.
    """
    async def _upload_one(path):
        url = await upload_clip(client, path)
        if session is not None:
            session.add_clip(url)
        return url

    report = UploadReport()
    tasks = []
    for path in paths:
        try:
            validate_upload(path)
        except UploadError as e:
            report.errors.append(e)
            continue
        tasks.append(asyncio.create_task(_upload_one(path)))

    try:
        results = await asyncio.gather(*tasks, return_exceptions=True)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        raise

    for result in results:
        if isinstance(result, UploadError):
            report.errors.append(result)
        elif isinstance(result, BaseException):
            raise result
        else:
            report.urls.append(result)
    return report
