"""
Tests for the yt-dlp command wrapper.
"""

from pathlib import Path

import pytest

from src.submux import ytdlp
from src.submux.ytdlp import YtDlpClient

URL = "https://www.youtube.com/watch?v=abc123"


@pytest.fixture
def commands(monkeypatch):
    recorded = []

    def fake_run(cmd, **kwargs):
        recorded.append((cmd, kwargs))
        return "WARNING: something harmless\nMy Video Title\n"

    monkeypatch.setattr(ytdlp, "run", fake_run)
    return recorded


def test_every_call_carries_cookies(commands):
    client = YtDlpClient("/home/me/cookies.txt")
    client.list_formats(URL)

    cmd, _ = commands[0]
    assert cmd[:3] == ["yt-dlp", "--cookies", "/home/me/cookies.txt"]
    assert cmd[-2:] == ["-F", URL]


def test_fetch_title_takes_last_stdout_line(commands):
    assert YtDlpClient("c.txt").fetch_title(URL) == "My Video Title"
    cmd, kwargs = commands[0]
    assert "--get-filename" in cmd
    assert kwargs == {"merge_stderr": False}


def test_fetch_best_merges_into_mkv(commands, tmp_path):
    dest = YtDlpClient("c.txt").fetch(URL, "bestvideo+bestaudio/best", tmp_path / "v.mkv", merge_format="mkv")

    cmd, _ = commands[0]
    assert dest == tmp_path / "v.mkv"
    assert cmd[cmd.index("-f") + 1] == "bestvideo+bestaudio/best"
    assert cmd[cmd.index("--merge-output-format") + 1] == "mkv"
    assert cmd[-3:] == ["-o", str(tmp_path / "v.mkv"), URL]


def test_fetch_audio_extracts(commands, tmp_path):
    YtDlpClient("c.txt").fetch(URL, "bestaudio/best", tmp_path / "a.m4a", audio_only=True, extract_format="m4a")

    cmd, _ = commands[0]
    assert "--extract-audio" in cmd
    assert cmd[cmd.index("--audio-format") + 1] == "m4a"
    assert "--merge-output-format" not in cmd


def test_fetch_subtitles_returns_new_files(monkeypatch, tmp_path):
    folder = tmp_path / "subs"
    folder.mkdir()
    (folder / "old.vtt").write_text("stale")

    def fake_run(cmd, **kwargs):
        assert "--write-subs" in cmd and "--skip-download" in cmd
        assert cmd[cmd.index("--sub-langs") + 1] == "en.*"
        (folder / "Talk.en.vtt").write_text("WEBVTT\n")
        return ""

    monkeypatch.setattr(ytdlp, "run", fake_run)

    written = YtDlpClient("c.txt").fetch_subtitles(URL, "en.*", folder / "Talk.%(ext)s")
    assert written == {Path(folder / "Talk.en.vtt")}
