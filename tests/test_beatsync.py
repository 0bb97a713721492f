"""Tests for beat analysis validation and cut planning."""

import math

import pytest

from clipstudio.beatsync import BeatAnalysis, assign_clips, cut_points, plan_cuts
from clipstudio.errors import ValidationError
from clipstudio.options import MusicVideoStyle


class TestBeatAnalysis:
    def test_beats_normalized_to_float_tuple(self):
        a = BeatAnalysis(bpm=120, beats=[0, 1, 2], duration_seconds=3)
        assert a.beats == (0.0, 1.0, 2.0)
        assert isinstance(a.beats, tuple)

    def test_immutable(self, make_analysis):
        a = make_analysis(4)
        with pytest.raises(AttributeError):
            a.bpm = 90

    @pytest.mark.parametrize("kwargs,match", [
        ({"bpm": 0}, "bpm"),
        ({"duration_seconds": -1}, "duration_seconds"),
        ({"beats": (1.0, 0.5)}, "increasing"),
        ({"beats": (0.5, 0.5)}, "increasing"),
        ({"beats": (-0.1, 0.5)}, "non-negative"),
        ({"beats": (0.1, math.nan)}, "finite"),
    ])
    def test_rejects(self, kwargs, match):
        args = {"bpm": 120.0, "beats": (0.5, 1.0), "duration_seconds": 2.0}
        args.update(kwargs)
        with pytest.raises(ValidationError, match=match):
            BeatAnalysis(**args)

    def test_from_dict_missing_field(self):
        with pytest.raises(ValidationError, match="beats"):
            BeatAnalysis.from_dict({"bpm": 120, "duration_seconds": 10})

    @pytest.mark.parametrize("data,match", [
        ({"bpm": 120, "beats": None, "duration_seconds": 10}, "list of timestamps"),
        ({"bpm": 120, "beats": "abc", "duration_seconds": 10}, "list of timestamps"),
        ({"bpm": 120, "beats": [0.5, "x"], "duration_seconds": 10}, "list of timestamps"),
        ({"bpm": "fast", "beats": [0.5], "duration_seconds": 10}, "bpm must be a number"),
        ({"bpm": 120, "beats": [0.5], "duration_seconds": None}, "duration_seconds must be a number"),
        ({"bpm": True, "beats": [0.5], "duration_seconds": 10}, "bpm must be a number"),
    ])
    def test_from_dict_malformed_values(self, data, match):
        with pytest.raises(ValidationError, match=match):
            BeatAnalysis.from_dict(data)

    def test_dict_round_trip(self, make_analysis):
        a = make_analysis(8)
        assert BeatAnalysis.from_dict(a.to_dict()) == a


class TestCutPoints:
    def test_every_4_beats_count(self, make_analysis):
        assert len(cut_points(make_analysis(120), "every-4-beats")) == 30

    def test_on_beat_keeps_all(self, make_analysis):
        a = make_analysis(10)
        assert cut_points(a, MusicVideoStyle.ON_BEAT) == list(a.beats)

    def test_every_2_beats_indices(self, make_analysis):
        a = make_analysis(7)
        assert cut_points(a, "every-2-beats") == [a.beats[i] for i in (0, 2, 4, 6)]

    def test_on_bars_matches_every_4(self, make_analysis):
        a = make_analysis(33)
        assert cut_points(a, "on-bars") == cut_points(a, "every-4-beats")

    def test_empty_beats(self):
        a = BeatAnalysis(bpm=100, beats=(), duration_seconds=5)
        assert cut_points(a, "on-beat") == []

    def test_unknown_style(self, make_analysis):
        with pytest.raises(ValueError):
            cut_points(make_analysis(4), "every-3-beats")


class TestAssignClips:
    def test_wraps_around(self):
        pairs = assign_clips([0.0, 1.0, 2.0, 3.0, 4.0], ["a", "b"])
        assert [url for _, url in pairs] == ["a", "b", "a", "b", "a"]

    def test_no_clips(self):
        with pytest.raises(ValidationError):
            assign_clips([0.0], [])


class TestPlanCuts:
    def test_segments_cover_track(self, make_analysis):
        a = make_analysis(16)
        segments = plan_cuts(a, "every-4-beats", ["a", "b", "c"])
        assert len(segments) == 4
        assert segments[0].start == 0.0
        assert segments[-1].end == a.duration_seconds
        for prev, nxt in zip(segments, segments[1:]):
            assert prev.end == nxt.start
        assert [s.clip_url for s in segments] == ["a", "b", "c", "a"]

    def test_points_past_end_dropped(self):
        a = BeatAnalysis(bpm=60, beats=(0.5, 1.5, 2.5, 3.5), duration_seconds=2.0)
        segments = plan_cuts(a, "on-beat", ["x"])
        assert [(s.start, s.end) for s in segments] == [(0.0, 1.5), (1.5, 2.0)]

    def test_no_beats_is_one_segment(self):
        a = BeatAnalysis(bpm=60, beats=(), duration_seconds=4.0)
        assert plan_cuts(a, "on-beat", ["x"]) == [(0.0, 4.0, "x")]
