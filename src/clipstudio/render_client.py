"""Async client for the rendering service.

Endpoints (paths configurable in RenderServiceConfig):
  POST {compose_path}         CompositionRequest payload -> {job_id, status, output_video_url?}
  GET  {status_path}          -> {status, progress?, output_video_url?, error_message?}
  POST {analyze_path}         {audio_url} -> {bpm, beats, duration_seconds}
  POST {layout_test_path}     serialized layout -> preview result (dry run)
  POST {layout_save_path}     serialized layout -> {id}
  GET  {presign_path}         ?file_name&file_type&file_size -> {upload_url, key, public_url?}
  GET  {pacing_path}          -> {pacing_templates: [...]}
  GET  {animations_path}      -> {animations: [...]}
  GET  {layout_list_path}     -> {layouts: [...]} or {data: {layouts: [...]}}

Every failure is raised as a ServiceError subclass carrying method, url,
status code and a body snippet. Submission failures are SubmissionError,
beat analysis failures are BeatAnalysisError.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from .beatsync import BeatAnalysis
from .composition import CompositionRequest
from .errors import BeatAnalysisError, ServiceError, SubmissionError, ValidationError

logger = logging.getLogger(__name__)

ENV_API_URL = "CLIPSTUDIO_API_URL"
ENV_API_TOKEN = "CLIPSTUDIO_API_TOKEN"

_BODY_SNIPPET_LIMIT = 2048


# ── Configuration ─────────────────────────────────────────────────


class RenderServiceConfig(BaseModel):
    """Connection and polling settings for the rendering service."""

    model_config = {"frozen": True}

    base_url: str
    api_token: str | None = None
    timeout_s: float = Field(default=30.0, gt=0)
    poll_interval_s: float = Field(default=2.0, ge=0)
    max_poll_failures: int = Field(default=5, ge=1)
    max_poll_attempts: int | None = Field(default=None, ge=1)
    storage_base_url: str | None = None
    compose_path: str = "/api/composition/compose"
    status_path: str = "/api/composition/status/{job_id}"
    analyze_path: str = "/api/audio/analyze-beats"
    layout_test_path: str = "/api/composition/layouts/test"
    layout_save_path: str = "/api/composition/layouts"
    presign_path: str = "/api/video/upload/get-presigned-url"
    pacing_path: str = "/api/composition/pacing"
    animations_path: str = "/api/composition/animations"
    layout_list_path: str = "/api/composition/layouts"

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v:
            raise ValueError("base_url cannot be empty")
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip("/")

    @classmethod
    def from_sources(cls, section: dict | None = None, env=None) -> RenderServiceConfig:
        """Build from a manifest 'service' section, with environment overrides.

        CLIPSTUDIO_API_URL and CLIPSTUDIO_API_TOKEN win over the manifest.

        Raises:
            ValidationError: no base_url anywhere, or an invalid setting.
        """
        env = os.environ if env is None else env
        values = dict(section or {})
        if env.get(ENV_API_URL):
            values["base_url"] = env[ENV_API_URL]
        if env.get(ENV_API_TOKEN):
            values["api_token"] = env[ENV_API_TOKEN]
        if not values.get("base_url"):
            raise ValidationError(
                f"No service base_url: set service.base_url in the manifest or ${ENV_API_URL}"
            )
        try:
            return cls(**values)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid service config: {e}") from None


# ── Response models ───────────────────────────────────────────────


class SubmitResponse(BaseModel):
    job_id: str
    status: str
    output_video_url: str | None = None


class JobStatus(BaseModel):
    status: str
    progress: float | None = Field(default=None, ge=0, le=100)
    output_video_url: str | None = None
    error_message: str | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @property
    def is_failed(self) -> bool:
        return self.status == "failed"

    @property
    def is_terminal(self) -> bool:
        return self.is_completed or self.is_failed


class PresignedUpload(BaseModel):
    upload_url: str
    key: str
    public_url: str | None = None


class PacingTemplate(BaseModel):
    """A clip-timing rhythm offered by the service for paced sequences."""

    id: str
    name: str
    description: str = ""
    clip_pattern: list[float] = Field(default_factory=list)
    psychological_effect: str = ""
    intensity_level: str = ""
    best_for: list[str] = Field(default_factory=list)
    example_use_case: str = ""


class AnimationTemplate(BaseModel):
    id: str
    name: str
    description: str = ""
    duration: float | None = None
    complexity: str = ""
    best_for: list[str] = Field(default_factory=list)
    example_use_case: str = ""


class LayoutCanvas(BaseModel):
    width: int
    height: int


class ServiceLayout(BaseModel):
    """A static layout as listed by the service, user-built ones included."""

    id: str
    name: str
    description: str = ""
    num_regions: int = Field(ge=0)
    canvas: LayoutCanvas | None = None
    best_for: list[str] = Field(default_factory=list)
    example_use_case: str = ""
    recommended_aspect_ratios: list[str] = Field(default_factory=list)
    thumbnail: str | None = None


class PacingCatalogue(BaseModel):
    pacing_templates: list[PacingTemplate]


class AnimationCatalogue(BaseModel):
    animations: list[AnimationTemplate]


class LayoutCatalogue(BaseModel):
    layouts: list[ServiceLayout]


# ── Client ────────────────────────────────────────────────────────


class RenderClient:
    """Thin async wrapper over httpx for the rendering service.

    Args:
        config: Service settings.
        transport: Optional httpx transport (tests pass httpx.MockTransport).

    Example:
        >>> async with RenderClient(config) as client:
        ...     job = await client.submit(session.build_request())
    """

    def __init__(
        self,
        config: RenderServiceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        headers = {"Accept": "application/json"}
        if config.api_token:
            headers["Authorization"] = f"Bearer {config.api_token}"
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers=headers,
            timeout=config.timeout_s,
            transport=transport,
        )
        # Presigned storage URLs must not receive the service's auth header.
        self._storage = httpx.AsyncClient(timeout=None, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()
        await self._storage.aclose()

    async def __aenter__(self) -> RenderClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ── Plumbing ──────────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        *,
        error_cls: type[ServiceError] = ServiceError,
        json_body: Any = None,
        params: dict | None = None,
    ) -> Any:
        url = f"{self.config.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            resp = await self._client.request(method, path, json=json_body, params=params)
        except httpx.RequestError as e:
            raise error_cls(
                f"Network error: {e.__class__.__name__}", method=method, url=url,
            ) from e

        logger.debug("%s %s -> %d", method, url, resp.status_code)
        if not resp.is_success:
            raise error_cls(
                f"Service returned {resp.status_code} {resp.reason_phrase}",
                method=method,
                url=url,
                status_code=resp.status_code,
                body_snippet=resp.text[:_BODY_SNIPPET_LIMIT],
            )
        try:
            return resp.json()
        except ValueError as e:
            raise error_cls(
                "Response is not valid JSON",
                method=method,
                url=url,
                status_code=resp.status_code,
                body_snippet=resp.text[:_BODY_SNIPPET_LIMIT],
            ) from e

    def _parse(self, model, data: Any, error_cls: type[ServiceError], what: str):
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise error_cls(f"Unexpected {what} response: {e}") from e

    # ── Endpoints ─────────────────────────────────────────────────

    async def submit(self, request: CompositionRequest) -> SubmitResponse:
        """Send a composition for rendering.

        Raises:
            SubmissionError: non-2xx, network failure, or malformed response.
        """
        data = await self._request(
            "POST", self.config.compose_path,
            error_cls=SubmissionError, json_body=request.to_payload(),
        )
        job = self._parse(SubmitResponse, data, SubmissionError, "submission")
        logger.info("Submitted %s composition as job %s", request.type.value, job.job_id)
        return job

    async def get_status(self, job_id: str) -> JobStatus:
        path = self.config.status_path.format(job_id=job_id)
        data = await self._request("GET", path)
        return self._parse(JobStatus, data, ServiceError, "status")

    async def analyze_beats(self, audio_url: str) -> BeatAnalysis:
        """Request beat analysis for one music track.

        Raises:
            BeatAnalysisError: service failure or an unusable analysis.
        """
        data = await self._request(
            "POST", self.config.analyze_path,
            error_cls=BeatAnalysisError, json_body={"audio_url": audio_url},
        )
        try:
            return BeatAnalysis.from_dict(data)
        except (ValidationError, TypeError, ValueError) as e:
            raise BeatAnalysisError(f"Unusable beat analysis: {e}") from e

    async def test_layout(self, layout: dict) -> dict:
        """Dry-run render of a serialized layout; returns the service's preview info."""
        return await self._request(
            "POST", self.config.layout_test_path, json_body=layout,
        )

    async def save_layout(self, layout: dict) -> str:
        """Store a serialized layout on the service; returns its id."""
        data = await self._request(
            "POST", self.config.layout_save_path, json_body=layout,
        )
        if not isinstance(data, dict) or not data.get("id"):
            raise ServiceError("Layout save response has no 'id'")
        return str(data["id"])

    # ── Catalogues ────────────────────────────────────────────────

    async def list_pacing_templates(self) -> list[PacingTemplate]:
        data = await self._request("GET", self.config.pacing_path)
        return self._parse(PacingCatalogue, data, ServiceError, "pacing").pacing_templates

    async def list_animations(self) -> list[AnimationTemplate]:
        data = await self._request("GET", self.config.animations_path)
        return self._parse(AnimationCatalogue, data, ServiceError, "animations").animations

    async def list_layouts(self) -> list[ServiceLayout]:
        """Layouts the service offers. Accepts {layouts} or {data: {layouts}}."""
        data = await self._request("GET", self.config.layout_list_path)
        inner = data.get("data") if isinstance(data, dict) else None
        if isinstance(inner, dict) and "layouts" in inner:
            data = inner
        return self._parse(LayoutCatalogue, data, ServiceError, "layouts").layouts

    # ── Storage ───────────────────────────────────────────────────

    async def presign_upload(
        self, file_name: str, file_type: str, file_size: int,
    ) -> PresignedUpload:
        data = await self._request(
            "GET",
            self.config.presign_path,
            params={"file_name": file_name, "file_type": file_type, "file_size": str(file_size)},
        )
        return self._parse(PresignedUpload, data, ServiceError, "presign")

    def public_url(self, upload: PresignedUpload) -> str:
        """Where an uploaded object can be read from by the renderer."""
        if upload.public_url:
            return upload.public_url
        if not self.config.storage_base_url:
            raise ServiceError(
                "Presign response has no public_url and no storage_base_url is configured"
            )
        return f"{self.config.storage_base_url.rstrip('/')}/{upload.key}"

    async def put_object(self, upload_url: str, content, *, content_type: str, size: int) -> None:
        """PUT raw bytes (or an async byte iterator) to a presigned storage URL."""
        try:
            resp = await self._storage.put(
                upload_url,
                content=content,
                headers={"Content-Type": content_type, "Content-Length": str(size)},
            )
        except httpx.RequestError as e:
            raise ServiceError(
                f"Network error: {e.__class__.__name__}", method="PUT", url=upload_url,
            ) from e
        if not resp.is_success:
            raise ServiceError(
                f"Storage upload failed: {resp.status_code} {resp.reason_phrase}",
                method="PUT",
                url=upload_url,
                status_code=resp.status_code,
                body_snippet=resp.text[:_BODY_SNIPPET_LIMIT],
            )
