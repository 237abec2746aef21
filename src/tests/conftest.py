"""
Shared fakes for external tools (yt-dlp, ffmpeg, mkvmerge).
"""

import shutil
from pathlib import Path

import pytest

from src.submux import io_ffmpeg, mkvmerge
from src.submux.config import PipelineConfig
from src.submux.errors import CommandFailed
from src.submux.models import MediaAsset, PipelineContext

CATALOG = """\
[youtube] Extracting URL: https://www.youtube.com/watch?v=abc123
[info] Available formats for abc123:
ID  EXT   RESOLUTION FPS CH |   FILESIZE   TBR PROTO | VCODEC          VBR ACODEC      ABR ASR MORE INFO
-----------------------------------------------------------------------------------------------------------
sb0 mhtml 48x27        0    |                  mhtml | images                                  storyboard
139 m4a   audio only      2 |    1.23MiB   49k https | audio only          mp4a.40.5   49k 22k low, m4a_dash
251 webm  audio only      2 |    4.01MiB  160k https | audio only          opus       160k 48k medium, webm_dash
160 mp4   256x144     30    |    2.10MiB   80k https | avc1.4d400c    80k video only              144p, mp4_dash
18  mp4   640x360     30  2 |   10.50MiB  400k https | avc1.42001E         mp4a.40.2       44k 360p
136 mp4   1280x720    30    |   20.00MiB  900k https | avc1.4d401f   900k video only              720p, mp4_dash
137 mp4   1920x1080   30    |   40.00MiB 1800k https | avc1.640028  1800k video only              1080p, mp4_dash
248 webm  1920x1080   30    |   35.00MiB 1500k https | vp9          1500k video only              1080p, webm_dash
"""

VTT = """\
WEBVTT
Kind: captions
Language: en

00:00:01.000 --> 00:00:02.500
Hello there.

00:00:03.000 --> 00:00:04.000
General Kenobi.
"""

SRT = """\
1
00:00:01,000 --> 00:00:02,500
Hello there.

2
00:00:03,000 --> 00:00:04,000
General Kenobi.
"""

URL = "https://www.youtube.com/watch?v=abc123"


class FakeSource:
    """Stands in for YtDlpClient and writes small files instead of downloading."""

    def __init__(self, *, catalog=CATALOG, title="My: Video!", subtitles=None,
                 fail_audio=False, fail_video=False, interrupt_on=None):
        self.catalog = catalog
        self.title = title
        self.subtitles = subtitles or {}
        self.fail_audio = fail_audio
        self.fail_video = fail_video
        self.interrupt_on = interrupt_on
        self.calls = []

    def list_formats(self, url):
        return self.catalog

    def fetch_title(self, url):
        return self.title

    def fetch(self, url, selector, destination, *, merge_format=None, audio_only=False,
              extract_format=None):
        self.calls.append(("fetch", selector, audio_only))
        if selector == self.interrupt_on:
            raise KeyboardInterrupt
        if (audio_only and self.fail_audio) or (not audio_only and self.fail_video):
            raise CommandFailed(["yt-dlp", "-f", selector], 1, "ERROR: fake failure")
        Path(destination).write_bytes(b"audio" if audio_only else b"video")
        return Path(destination)

    def fetch_subtitles(self, url, languages, destination_pattern):
        self.calls.append(("subs", languages))
        if self.interrupt_on == "subs":
            raise KeyboardInterrupt
        folder = Path(destination_pattern).parent
        folder.mkdir(parents=True, exist_ok=True)
        written = set()
        for name, content in self.subtitles.items():
            p = folder / name
            p.write_text(content, encoding="utf-8")
            written.add(p)
        return written


@pytest.fixture
def fake_tools(monkeypatch):
    """Replace ffmpeg and mkvmerge calls; records what was called."""
    calls = {"convert": [], "remux": [], "reformat": [], "package": []}

    def fake_convert(src, dst, *, ffmpeg="ffmpeg"):
        calls["convert"].append((src, dst))
        shutil.copyfile(src, dst)

    def fake_remux(video, audio, dst, *, audio_codec=None, ffmpeg="ffmpeg"):
        calls["remux"].append((video, audio, dst, audio_codec))
        Path(dst).write_bytes(Path(video).read_bytes() + Path(audio).read_bytes())

    def fake_reformat(src, dst, *, ffmpeg="ffmpeg"):
        calls["reformat"].append((src, dst))
        shutil.copyfile(src, dst)

    def fake_package(output, tracks, *, mkvmerge="mkvmerge"):
        calls["package"].append(
            [
                (Path(t.path), Path(t.path).read_text(encoding="utf-8") if t.kind == "subtitles" else None)
                for t in tracks
            ]
        )
        Path(output).write_bytes(b"mkv")
        return Path(output)

    monkeypatch.setattr(io_ffmpeg, "convert", fake_convert)
    monkeypatch.setattr(io_ffmpeg, "remux", fake_remux)
    monkeypatch.setattr(io_ffmpeg, "reformat_srt", fake_reformat)
    monkeypatch.setattr(io_ffmpeg, "get_duration_s", lambda path: 60.0)
    monkeypatch.setattr(mkvmerge, "package", fake_package)
    return calls


@pytest.fixture
def config(tmp_path):
    cookies = tmp_path / "cookies.txt"
    cookies.write_text("# Netscape HTTP Cookie File\n")
    return PipelineConfig(
        output_dir=tmp_path / "out",
        cookies_file=cookies,
        model_dir=tmp_path / "models",
        scratch_root=tmp_path / "scratch",
    )


@pytest.fixture
def ctx(tmp_path):
    workdir = tmp_path / "work"
    workdir.mkdir()
    return PipelineContext(url=URL, workdir=workdir, output_dir=tmp_path / "out", title="My Video")


def make_audio(ctx: PipelineContext) -> MediaAsset:
    ctx.audio_path.write_bytes(b"cached audio")
    ctx.audio_asset = MediaAsset(path=ctx.audio_path, kind="audio")
    return ctx.audio_asset
