"""Tests for the subcommand dispatcher and the CLI subcommands."""

import httpx
import pytest
import yaml


def _serve(monkeypatch, handler):
    """Route info_cli service calls through an httpx.MockTransport."""
    from clipstudio import info_cli
    from clipstudio.render_client import RenderClient

    monkeypatch.setenv("CLIPSTUDIO_API_URL", "https://api.example.com")
    monkeypatch.setattr(
        info_cli, "RenderClient",
        lambda cfg: RenderClient(cfg, transport=httpx.MockTransport(handler)),
    )


class TestMainDispatcher:
    def test_no_subcommand_shows_help(self, capsys):
        from clipstudio.main import main

        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code != 0
        assert "estimate" in capsys.readouterr().out

    @pytest.mark.parametrize("command", ["compose", "validate", "estimate", "analyze", "beats"])
    def test_subcommand_exists(self, command):
        """Registered subcommands fail on their own missing arguments."""
        from clipstudio.main import main

        with pytest.raises(SystemExit) as exc_info:
            main([command])
        assert exc_info.value.code == 2

    def test_invalid_subcommand_errors(self):
        from clipstudio.main import main

        with pytest.raises(SystemExit) as exc_info:
            main(["nonexistent"])
        assert exc_info.value.code != 0


class TestEstimate:
    def test_static_prices(self, capsys):
        from clipstudio.main import main

        main(["estimate", "--type", "static", "--clips", "3", "--clips", "225"])
        out = capsys.readouterr().out.splitlines()
        assert "15 credits" in out[0]
        assert "~20-40 seconds" in out[0]
        assert "225 credits" in out[1]
        assert "beat analysis" not in "\n".join(out)

    def test_music_video_mentions_beat_fee(self, capsys):
        from clipstudio.main import main

        main(["estimate", "--type", "music-video", "--clips", "4"])
        out = capsys.readouterr().out
        assert "20 credits" in out
        assert "+ 5 credits" in out

    def test_zero_clips_rejected(self):
        from clipstudio.main import main

        with pytest.raises(SystemExit) as exc_info:
            main(["estimate", "--type", "static", "--clips", "0"])
        assert exc_info.value.code == 2


class TestLayouts:
    def test_lists_all(self, capsys):
        from clipstudio.main import main

        main(["layouts"])
        assert len(capsys.readouterr().out.splitlines()) == 14

    def test_category(self, capsys):
        from clipstudio.main import main

        main(["layouts", "--category", "grid"])
        out = capsys.readouterr().out
        assert "2x2-grid" in out
        assert "side-by-side" not in out

    def test_remote_lists_service_layouts(self, capsys, monkeypatch):
        _serve(monkeypatch, lambda request: httpx.Response(200, json={"data": {"layouts": [{
            "id": "team-wall", "name": "Team Wall", "description": "Custom wall",
            "num_regions": 6, "canvas": {"width": 1920, "height": 1080}, "best_for": ["grid"],
        }]}}))
        from clipstudio.main import main

        main(["layouts", "--remote", "--category", "grid"])
        out = capsys.readouterr().out
        assert "team-wall" in out
        assert "6 region(s)  1920x1080" in out
        assert "2x2-grid" not in out

    def test_remote_failure_falls_back_to_builtins(self, capsys, monkeypatch):
        _serve(monkeypatch, lambda request: httpx.Response(500, text="boom"))
        from clipstudio.main import main

        main(["layouts", "--remote"])
        out = capsys.readouterr().out
        assert "Could not fetch layouts" in out
        assert "side-by-side" in out

    def test_remote_needs_base_url(self, monkeypatch):
        monkeypatch.delenv("CLIPSTUDIO_API_URL", raising=False)
        from clipstudio.main import main

        with pytest.raises(SystemExit) as exc_info:
            main(["layouts", "--remote"])
        assert exc_info.value.code == 2


class TestCatalogueCli:
    def test_pacing_filtered_by_intensity(self, capsys, monkeypatch):
        def handler(request):
            assert request.url.path == "/api/composition/pacing"
            return httpx.Response(200, json={"pacing_templates": [
                {"id": "slow-build", "name": "Slow Build", "clip_pattern": [4, 2.5, 1],
                 "intensity_level": "medium", "description": "Accelerates"},
                {"id": "rapid-fire", "name": "Rapid Fire", "clip_pattern": [0.5],
                 "intensity_level": "extreme", "description": "Fast cuts"},
            ]})

        _serve(monkeypatch, handler)
        from clipstudio.main import main

        main(["pacing", "--intensity", "medium"])
        out = capsys.readouterr().out
        assert "slow-build" in out
        assert "4s 2.5s 1s" in out
        assert "rapid-fire" not in out

    def test_animations_listing(self, capsys, monkeypatch):
        _serve(monkeypatch, lambda request: httpx.Response(200, json={"animations": [
            {"id": "zoom-in", "name": "Zoom In", "duration": 2, "complexity": "simple",
             "description": "Slow zoom"},
            {"id": "orbit", "name": "Orbit", "complexity": "complex", "description": "3D orbit"},
        ]}))
        from clipstudio.main import main

        main(["animations", "--complexity", "simple"])
        out = capsys.readouterr().out
        assert "zoom-in" in out
        assert "2s" in out
        assert "orbit" not in out

    def test_pacing_service_error_exits(self, capsys, monkeypatch):
        _serve(monkeypatch, lambda request: httpx.Response(502, text="bad gateway"))
        from clipstudio.main import main

        with pytest.raises(SystemExit) as exc_info:
            main(["pacing"])
        assert exc_info.value.code == 1
        assert "Could not fetch pacing templates" in capsys.readouterr().out

    @pytest.mark.parametrize("command", ["pacing", "animations"])
    def test_needs_base_url(self, command, monkeypatch):
        monkeypatch.delenv("CLIPSTUDIO_API_URL", raising=False)
        from clipstudio.main import main

        with pytest.raises(SystemExit) as exc_info:
            main([command])
        assert exc_info.value.code == 2


class TestBeats:
    def test_cut_points(self, make_analysis, tmp_path, capsys):
        from clipstudio.main import main
        from clipstudio.manifest import save_beat_analysis

        path = tmp_path / "beats.json"
        save_beat_analysis(make_analysis(120), path)
        main(["beats", str(path), "--style", "every-4-beats"])
        out = capsys.readouterr().out
        assert "30 cut point(s)" in out

    def test_segments_with_clips(self, make_analysis, tmp_path, capsys):
        from clipstudio.main import main
        from clipstudio.manifest import save_beat_analysis

        path = tmp_path / "beats.json"
        save_beat_analysis(make_analysis(8), path)
        main(["beats", str(path), "--style", "every-4-beats", "--clips", "a.mp4", "b.mp4"])
        lines = capsys.readouterr().out.splitlines()
        assert lines[1].endswith("a.mp4")
        assert lines[2].endswith("b.mp4")


class TestComposeCli:
    def _manifest(self, tmp_path, data):
        path = tmp_path / "composition.yaml"
        path.write_text(yaml.dump(data))
        return str(path)

    def test_validate_ready(self, tmp_path, capsys):
        from clipstudio.main import main

        path = self._manifest(tmp_path, {
            "type": "static",
            "clips": ["https://cdn.example.com/a.mp4", "https://cdn.example.com/b.mp4"],
            "layout_id": "3x3-grid",
        })
        with pytest.raises(SystemExit) as exc_info:
            main(["validate", "--manifest", path])
        out = capsys.readouterr().out
        assert exc_info.value.code == 0
        assert "READY" in out
        assert "9 regions" in out

    def test_validate_not_ready(self, tmp_path, capsys):
        from clipstudio.main import main

        path = self._manifest(tmp_path, {"type": "music-video", "clips": ["https://cdn.example.com/a.mp4"]})
        with pytest.raises(SystemExit) as exc_info:
            main(["validate", "--manifest", path])
        out = capsys.readouterr().out
        assert exc_info.value.code == 1
        assert "NOT READY" in out
        assert "add background music" in out

    def test_invalid_manifest(self, tmp_path, capsys):
        from clipstudio.main import main

        path = self._manifest(tmp_path, {"type": "slideshow"})
        with pytest.raises(SystemExit) as exc_info:
            main(["validate", "--manifest", path])
        assert exc_info.value.code == 1
        assert "Invalid manifest" in capsys.readouterr().out

    def test_malformed_manifest_values(self, tmp_path, capsys):
        from clipstudio.main import main

        path = self._manifest(tmp_path, {
            "type": "music-video",
            "music": {"url": "https://cdn.example.com/t.mp3"},
            "beat_analysis": {"bpm": "fast", "beats": [0.5], "duration_seconds": 2},
        })
        with pytest.raises(SystemExit) as exc_info:
            main(["validate", "--manifest", path])
        assert exc_info.value.code == 1
        assert "Invalid manifest" in capsys.readouterr().out

    def test_missing_manifest_file(self, tmp_path, capsys):
        from clipstudio.main import main

        with pytest.raises(SystemExit) as exc_info:
            main(["validate", "--manifest", str(tmp_path / "nope.yaml")])
        assert exc_info.value.code == 1
        assert "Invalid manifest" in capsys.readouterr().out

    def test_dry_run_prints_payload(self, tmp_path, capsys):
        from clipstudio.main import main

        path = self._manifest(tmp_path, {
            "type": "paced",
            "clips": ["https://cdn.example.com/a.mp4"],
            "pacing_id": "slow-build",
        })
        main(["compose", "--manifest", path, "--dry-run"])
        out = capsys.readouterr().out
        assert '"composition_type": "paced-sequence"' in out
        assert '"pacing_id": "slow-build"' in out

    def test_missing_service_url(self, tmp_path, monkeypatch):
        from clipstudio.main import main

        monkeypatch.delenv("CLIPSTUDIO_API_URL", raising=False)
        path = self._manifest(tmp_path, {"type": "podcast", "clips": ["https://cdn.example.com/a.mp4"]})
        with pytest.raises(SystemExit) as exc_info:
            main(["compose", "--manifest", path])
        assert exc_info.value.code == 2

    def test_compose_submits_and_polls(self, tmp_path, capsys, monkeypatch):
        import httpx

        from clipstudio import cli
        from clipstudio.main import main
        from clipstudio.render_client import RenderClient

        statuses = iter([
            {"status": "processing", "progress": 50},
            {"status": "completed", "output_video_url": "https://cdn.example.com/out.mp4"},
        ])

        def handler(request):
            if request.method == "POST":
                return httpx.Response(200, json={"job_id": "job-5", "status": "queued"})
            return httpx.Response(200, json=next(statuses))

        monkeypatch.delenv("CLIPSTUDIO_API_URL", raising=False)
        monkeypatch.setattr(
            cli, "RenderClient",
            lambda cfg: RenderClient(cfg, transport=httpx.MockTransport(handler)),
        )
        path = self._manifest(tmp_path, {
            "type": "podcast",
            "clips": ["https://cdn.example.com/a.mp4"],
            "service": {"base_url": "https://api.example.com", "poll_interval_s": 0},
        })
        with pytest.raises(SystemExit) as exc_info:
            main(["compose", "--manifest", path])
        out = capsys.readouterr().out
        assert exc_info.value.code == 0
        assert "Job job-5: queued" in out
        assert "processing 50%" in out
        assert "Done: https://cdn.example.com/out.mp4" in out
