"""Tests for local upload checks and concurrent presigned uploads."""

import asyncio

import httpx
import pytest

from clipstudio import uploads
from clipstudio.composition import CompositionSession
from clipstudio.errors import UploadError
from clipstudio.render_client import RenderClient, RenderServiceConfig
from clipstudio.uploads import upload_clip, upload_clips, validate_upload


def _clip(tmp_path, name, data=b"\x00" * 64):
    path = tmp_path / name
    path.write_bytes(data)
    return path


def _storage_client(fail_names=(), storage_status=200, on_presign=None):
    """Client whose presign endpoint answers for every file and whose
    storage PUT records the uploaded bytes."""
    stored = {}

    async def handler(request):
        if request.url.host == "api.example.com":
            name = request.url.params["file_name"]
            if on_presign is not None:
                on_presign(name)
            if name in fail_names:
                return httpx.Response(500, text="presign broke")
            return httpx.Response(200, json={
                "upload_url": f"https://s3.example.com/bucket/{name}?sig=x",
                "key": f"uploads/{name}",
            })
        stored[request.url.path] = await request.aread()
        return httpx.Response(storage_status)

    cfg = RenderServiceConfig(
        base_url="https://api.example.com",
        storage_base_url="https://cdn.example.com",
    )
    return RenderClient(cfg, transport=httpx.MockTransport(handler)), stored


class TestValidateUpload:
    @pytest.mark.parametrize("name,content_type", [
        ("a.mp4", "video/mp4"),
        ("b.MOV", "video/quicktime"),
        ("c.webm", "video/webm"),
    ])
    def test_supported(self, tmp_path, name, content_type):
        assert validate_upload(_clip(tmp_path, name)) == content_type

    def test_unsupported_type(self, tmp_path):
        with pytest.raises(UploadError, match="Invalid video format"):
            validate_upload(_clip(tmp_path, "a.avi"))

    def test_missing_file(self, tmp_path):
        with pytest.raises(UploadError, match="File not found"):
            validate_upload(tmp_path / "gone.mp4")

    def test_too_large(self, tmp_path, monkeypatch):
        monkeypatch.setattr(uploads, "MAX_VIDEO_SIZE_BYTES", 10)
        with pytest.raises(UploadError, match="Video too large") as excinfo:
            validate_upload(_clip(tmp_path, "big.mp4", b"x" * 11))
        assert excinfo.value.path.endswith("big.mp4")


class TestUploadClip:
    @pytest.mark.asyncio
    async def test_uploads_bytes_and_returns_public_url(self, tmp_path, monkeypatch):
        monkeypatch.setattr(uploads, "CHUNK_SIZE", 16)
        path = _clip(tmp_path, "a.mp4", bytes(range(50)))
        client, stored = _storage_client()

        url = await upload_clip(client, path)

        assert url == "https://cdn.example.com/uploads/a.mp4"
        assert stored["/bucket/a.mp4"] == bytes(range(50))
        await client.aclose()

    @pytest.mark.asyncio
    async def test_storage_failure_wrapped(self, tmp_path):
        client, _ = _storage_client(storage_status=403)
        with pytest.raises(UploadError, match="Storage upload failed"):
            await upload_clip(client, _clip(tmp_path, "a.mp4"))
        await client.aclose()


class TestUploadClips:
    @pytest.mark.asyncio
    async def test_partial_failure_keeps_others(self, tmp_path):
        paths = [
            _clip(tmp_path, "a.mp4"),
            _clip(tmp_path, "bad.avi"),
            _clip(tmp_path, "b.mov"),
            _clip(tmp_path, "c.webm"),
        ]
        client, stored = _storage_client(fail_names=("b.mov",))
        session = CompositionSession()

        report = await upload_clips(client, paths, session)

        assert report.urls == [
            "https://cdn.example.com/uploads/a.mp4",
            "https://cdn.example.com/uploads/c.webm",
        ]
        assert sorted(session.clip_urls) == report.urls
        assert sorted(e.path.rsplit("/", 1)[-1] for e in report.errors) == ["b.mov", "bad.avi"]
        assert not report.ok
        # The locally rejected file never reached storage.
        assert "/bucket/bad.avi" not in stored
        await client.aclose()

    @pytest.mark.asyncio
    async def test_all_ok(self, tmp_path):
        client, _ = _storage_client()
        report = await upload_clips(client, [_clip(tmp_path, "a.mp4")])
        assert report.ok
        assert len(report.urls) == 1
        await client.aclose()

    @pytest.mark.asyncio
    async def test_cancel_stops_pending_uploads(self, tmp_path):
        started = asyncio.Event()

        async def handler(request):
            started.set()
            await asyncio.Event().wait()

        cfg = RenderServiceConfig(base_url="https://api.example.com")
        client = RenderClient(cfg, transport=httpx.MockTransport(handler))
        session = CompositionSession()
        batch = asyncio.create_task(
            upload_clips(client, [_clip(tmp_path, "a.mp4"), _clip(tmp_path, "b.mp4")], session)
        )
        await started.wait()
        batch.cancel()

        with pytest.raises(asyncio.CancelledError):
            await batch
        assert session.clip_urls == []
        await client.aclose()

    @pytest.mark.asyncio
    async def test_file_removed_after_presign(self, tmp_path):
        gone = _clip(tmp_path, "b.mp4")
        kept = _clip(tmp_path, "a.mp4")

        def remove_b(name):
            if name == "b.mp4":
                gone.unlink()

        client, stored = _storage_client(on_presign=remove_b)
        session = CompositionSession()

        report = await upload_clips(client, [gone, kept], session)

        assert report.urls == ["https://cdn.example.com/uploads/a.mp4"]
        assert session.clip_urls == report.urls
        assert len(report.errors) == 1
        assert report.errors[0].path == str(gone)
        assert "Cannot read file" in report.errors[0].message
        assert "/bucket/a.mp4" in stored
        await client.aclose()

    @pytest.mark.asyncio
    async def test_cancel_keeps_finished_uploads(self, tmp_path):
        async def handler(request):
            if request.url.host == "api.example.com":
                name = request.url.params["file_name"]
                return httpx.Response(200, json={
                    "upload_url": f"https://s3.example.com/bucket/{name}",
                    "key": f"uploads/{name}",
                })
            await request.aread()
            if request.url.path.endswith("slow.mp4"):
                await asyncio.Event().wait()
            return httpx.Response(200)

        cfg = RenderServiceConfig(
            base_url="https://api.example.com",
            storage_base_url="https://cdn.example.com",
        )
        client = RenderClient(cfg, transport=httpx.MockTransport(handler))
        session = CompositionSession()
        batch = asyncio.create_task(upload_clips(
            client, [_clip(tmp_path, "slow.mp4"), _clip(tmp_path, "fast.mp4")], session,
        ))
        while not session.clip_urls:
            await asyncio.sleep(0.01)
        batch.cancel()

        with pytest.raises(asyncio.CancelledError):
            await batch
        assert session.clip_urls == ["https://cdn.example.com/uploads/fast.mp4"]
        await client.aclose()
