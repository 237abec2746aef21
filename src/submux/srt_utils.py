"""
SRT parsing, writing, reconstruction and validation utilities.
"""

import logging
import re
from pathlib import Path

from . import io_ffmpeg
from .errors import CommandFailed, NoSubtitleBlocks, SubtitleReformatFailed
from .models import Segment, SubtitleTrack

logger = logging.getLogger("submux")

_TS_PAIR_RE = re.compile(
    r"^\d{2}:\d{2}:\d{2}[,.]\d{3}\s*-->\s*\d{2}:\d{2}:\d{2}[,.]\d{3}"
)
_TS_PARSE_RE = re.compile(
    r"(\d\d):(\d\d):(\d\d)[,.](\d\d\d)\s*-->\s*(\d\d):(\d\d):(\d\d)[,.](\d\d\d)"
)


def format_timestamp(seconds: float) -> str:
    """Format seconds as HH:MM:SS,mmm, truncating (not rounding) milliseconds."""
    # 1e-6 absorbs float noise such as 1.234 * 1000 == 1233.9999999999998
    total_ms = int(max(0.0, seconds) * 1000 + 1e-6)
    h, rem = divmod(total_ms, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms = divmod(rem, 1000)
    return f"{h:02}:{m:02}:{s:02},{ms:03}"


def write_srt(segments: list[Segment], path: str) -> None:
    """Write segments to SRT file, numbered from 1."""
    with open(path, "w", encoding="utf-8") as f:
        for i, s in enumerate(segments, 1):
            f.write(f"{i}\n{format_timestamp(s.start)} --> {format_timestamp(s.end)}\n{s.text}\n\n")


def parse_srt(path: str) -> list[Segment]:
    """Parse SRT file into segments. Multi-line captions keep their line breaks."""

    def to_sec(h: str, m: str, s: str, ms: str) -> float:
        return int(h) * 3600 + int(m) * 60 + int(s) + int(ms) / 1000.0

    with open(path, encoding="utf-8-sig") as f:
        raw = f.read()

    blocks = re.split(r"\n\s*\n", raw.strip(), flags=re.M)
    out: list[Segment] = []
    for b in blocks:
        lines = [ln.strip() for ln in b.splitlines() if ln.strip()]
        if lines and lines[0].isdecimal():
            lines = lines[1:]
        if not lines:
            continue
        m = _TS_PARSE_RE.match(lines[0])
        if not m:
            continue
        g = m.groups()
        out.append(Segment(start=to_sec(*g[:4]), end=to_sec(*g[4:]), text="\n".join(lines[1:])))
    return out


def reconstruct_srt(raw: str) -> str:
    """Rebuild SRT text with indices 1..N regardless of the indices in ``raw``.

    Pure-number lines are dropped, every timestamp pair gets a fresh index,
    caption text is kept and blank lines are kept as single separators.
    Running it on its own output returns the same text.
    """
    out: list[str] = []
    index = 1
    for line in raw.splitlines():
        line = line.strip()
        if line.isdecimal():
            continue
        if _TS_PAIR_RE.match(line):
            if out and out[-1]:
                out.append("")
            out.append(str(index))
            out.append(line)
            index += 1
        elif line:
            out.append(line)
        elif out and out[-1]:
            out.append("")

    if index == 1:
        raise NoSubtitleBlocks("No valid subtitle blocks found")

    while out and not out[-1]:
        out.pop()
    return "\n".join(out) + "\n"


def normalize_subtitles(srt_path: Path, workdir: Path, *, ffmpeg: str = "ffmpeg") -> SubtitleTrack:
    """Deep-clean ``srt_path`` in place and return the resulting track.

    Reconstruction first, then a strict re-serialization through ffmpeg, then
    ordering/overlap repair. Intermediate files live in ``workdir``.
    """
    srt_path = Path(srt_path)
    raw = srt_path.read_text(encoding="utf-8-sig", errors="replace")
    logger.debug("Sample of raw SRT:\n%s", "\n".join(raw.splitlines()[:10]))

    cleaned = Path(workdir) / "cleaned.srt"
    cleaned.write_text(reconstruct_srt(raw), encoding="utf-8")
    logger.info("Deep clean completed: %s", cleaned.name)

    formatted = Path(workdir) / "formatted.srt"
    try:
        io_ffmpeg.reformat_srt(str(cleaned), str(formatted), ffmpeg=ffmpeg)
    except CommandFailed as e:
        raise SubtitleReformatFailed(f"ffmpeg could not reformat the cleaned SRT: {e}") from e
    if not formatted.is_file() or formatted.stat().st_size == 0:
        raise SubtitleReformatFailed("ffmpeg produced no reformatted SRT")

    track = SubtitleTrack.from_segments(parse_srt(str(formatted)))
    if not track.segments:
        raise SubtitleReformatFailed("Reformatted SRT contains no cues")

    write_srt(track.segments, str(srt_path))
    cleaned.unlink(missing_ok=True)
    formatted.unlink(missing_ok=True)
    logger.info("SRT cleaned and reformatted: %d cues", len(track))
    return track
