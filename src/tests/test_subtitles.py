"""
Tests for manual subtitle discovery.
"""

from pathlib import Path

import pytest

from conftest import SRT, VTT, FakeSource
from src.submux import io_ffmpeg
from src.submux.errors import CommandFailed, NoManualSubtitles
from src.submux.subtitles import pick_subtitle_file, select_manual_subtitles


def test_pick_prefers_language_vtt():
    files = {Path("x/Talk.de.vtt"), Path("x/Talk.en-US.vtt"), Path("x/Talk.srt")}
    assert pick_subtitle_file(files, "en") == (Path("x/Talk.en-US.vtt"), "vtt")


def test_pick_falls_back_to_srt():
    files = {Path("x/Talk.de.vtt"), Path("x/Talk.fr.srt")}
    assert pick_subtitle_file(files, "en") == (Path("x/Talk.fr.srt"), "srt")


def test_pick_nothing():
    assert pick_subtitle_file({Path("x/Talk.de.vtt")}, "en") is None
    assert pick_subtitle_file(set(), "en") is None


def test_language_tag_not_matched_inside_title():
    # "Golden" contains "en" but is not a language tag
    assert pick_subtitle_file({Path("x/Golden.de.vtt")}, "en") is None


def test_vtt_is_converted_and_removed(ctx, fake_tools):
    source = FakeSource(subtitles={"My Video.en.vtt": VTT})

    path = select_manual_subtitles(ctx, source, "en")

    assert path == ctx.srt_path
    assert ctx.subtitle_source == "manual-vtt"
    assert ctx.srt_path.read_text(encoding="utf-8") == VTT
    assert not (ctx.workdir / "subs" / "My Video.en.vtt").exists()
    assert ("subs", "en.*") in source.calls


def test_srt_is_adopted(ctx, fake_tools):
    source = FakeSource(subtitles={"My Video.en.srt": SRT})

    select_manual_subtitles(ctx, source, "en")

    assert ctx.subtitle_source == "manual-srt"
    assert ctx.srt_path.read_text(encoding="utf-8") == SRT
    assert fake_tools["convert"] == []


def test_no_subtitles_signals_transcription(ctx, fake_tools):
    with pytest.raises(NoManualSubtitles):
        select_manual_subtitles(ctx, FakeSource(), "en")
    assert ctx.subtitle_path is None


def test_failed_lookup_counts_as_missing(ctx, fake_tools):
    class Failing(FakeSource):
        def fetch_subtitles(self, url, languages, destination_pattern):
            raise CommandFailed(["yt-dlp"], 1, "ERROR: Unable to download")

    with pytest.raises(NoManualSubtitles):
        select_manual_subtitles(ctx, Failing(), "en")


def test_malformed_vtt_counts_as_missing(ctx, fake_tools, monkeypatch):
    def failing(src, dst, *, ffmpeg="ffmpeg"):
        raise CommandFailed([ffmpeg], 1, "Invalid data")

    monkeypatch.setattr(io_ffmpeg, "convert", failing)

    with pytest.raises(NoManualSubtitles):
        select_manual_subtitles(ctx, FakeSource(subtitles={"My Video.en.vtt": "garbage"}), "en")
    assert not (ctx.workdir / "subs" / "My Video.en.vtt").exists()
