"""Error taxonomy for clipstudio.

Local validation problems are ValueErrors (same as the manifest loaders),
so callers that already catch ValueError keep working. Everything that
crosses the network boundary carries the request context needed to show
a useful message and retry.
"""

from __future__ import annotations


class CompositionError(Exception):
    """Base class for all clipstudio errors."""


class ValidationError(CompositionError, ValueError):
    """Local, recoverable validation failure. Never reaches the network."""


class UploadError(CompositionError):
    """A single file was rejected or failed to upload.

    Raised per file; other files in the same batch are unaffected.
    """

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message


class ServiceError(CompositionError):
    """Non-2xx or undecodable response from the rendering service."""

    def __init__(
        self,
        message: str,
        *,
        method: str | None = None,
        url: str | None = None,
        status_code: int | None = None,
        body_snippet: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.method = method
        self.url = url
        self.status_code = status_code
        self.body_snippet = body_snippet

    def __str__(self) -> str:
        parts = [self.message]
        if self.method and self.url:
            parts.append(f"({self.method} {self.url})")
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        return " ".join(parts)


class SubmissionError(ServiceError):
    """The compose endpoint rejected the request."""


class BeatAnalysisError(ServiceError):
    """Beat analysis failed. Blocks only the music-video type."""


class JobFailedError(CompositionError):
    """A render job ended without output.

    ``local`` is True when the job was given up on after too many failed
    status checks; the service itself may still be processing it.
    """

    def __init__(self, job_id: str, reason: str, *, local: bool = False) -> None:
        super().__init__(f"Job {job_id} failed: {reason}")
        self.job_id = job_id
        self.reason = reason
        self.local = local
