"""
Manual subtitle discovery.

Picks the manually uploaded track when one exists; the caller falls back to
transcription on NoManualSubtitles.
"""

import logging
import re
import shutil
from pathlib import Path

from . import io_ffmpeg
from .errors import CommandFailed, NoManualSubtitles
from .models import PipelineContext
from .ytdlp import YtDlpClient

logger = logging.getLogger("submux")


def language_pattern(language: str) -> re.Pattern:
    """Match ``<name>.<lang>[-variant].<ext>`` file names, e.g. ``Talk.en-US.vtt``."""
    return re.compile(rf"\.{re.escape(language)}(?:[-_][\w-]+)?\.[^.]+$", re.IGNORECASE)


def pick_subtitle_file(files: set[Path], language: str) -> tuple[Path, str] | None:
    """Return ``(path, "vtt"|"srt")`` following VTT-in-language, then any SRT."""
    lang_re = language_pattern(language)
    ordered = sorted(files)
    for p in ordered:
        if p.suffix.lower() == ".vtt" and lang_re.search(p.name):
            return p, "vtt"
    for p in ordered:
        if p.suffix.lower() == ".srt":
            return p, "srt"
    return None


def select_manual_subtitles(
    ctx: PipelineContext, source: YtDlpClient, language: str, *, ffmpeg: str = "ffmpeg"
) -> Path:
    """Fetch manual subtitles into ``ctx.srt_path`` or raise NoManualSubtitles."""
    logger.info("Checking for manually uploaded subtitles …")
    subs_dir = ctx.workdir / "subs"
    try:
        files = source.fetch_subtitles(ctx.url, f"{language}.*", subs_dir / f"{ctx.title}.%(ext)s")
    except CommandFailed as e:
        logger.warning("Subtitle lookup failed: %s", e)
        files = set()

    picked = pick_subtitle_file(files, language)
    if picked is None:
        raise NoManualSubtitles("No manually uploaded subtitles found")

    path, kind = picked
    if kind == "vtt":
        logger.info("Converting detected VTT subtitle to SRT …")
        try:
            io_ffmpeg.convert(str(path), str(ctx.srt_path), ffmpeg=ffmpeg)
        except CommandFailed as e:
            # a malformed manual track is handled like a missing one
            raise NoManualSubtitles(f"Manual subtitle {path.name} could not be converted: {e}") from e
        finally:
            path.unlink(missing_ok=True)
        ctx.subtitle_source = "manual-vtt"
    else:
        logger.info("Using manually uploaded SRT subtitles.")
        shutil.move(str(path), str(ctx.srt_path))
        ctx.subtitle_source = "manual-srt"

    ctx.subtitle_path = ctx.srt_path
    return ctx.srt_path
