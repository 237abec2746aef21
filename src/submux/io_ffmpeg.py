"""
Audio, video and subtitle conversion utilities using ffmpeg.
"""

import logging
import subprocess
from pathlib import Path

from pydub.utils import mediainfo

from .errors import CommandFailed

logger = logging.getLogger("submux")

# Audio containers each target container can carry without re-encoding.
_AUDIO_COMPAT = {
    "mkv": {"m4a", "aac", "mp3", "opus", "ogg", "webm", "flac"},
    "mp4": {"m4a", "aac", "mp3"},
    "webm": {"opus", "ogg", "webm"},
}


def run(
    cmd: list[str],
    *,
    check: bool = True,
    ok_codes: tuple[int, ...] = (0,),
    merge_stderr: bool = True,
) -> str:
    """Run a command and return stdout."""
    cmd = [str(c) for c in cmd]
    logger.debug("Running: %s", " ".join(cmd))
    proc = subprocess.run(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
        text=True,
        check=False,
    )
    if proc.returncode not in ok_codes and check:
        output = proc.stdout if merge_stderr else (proc.stderr or "")
        logger.error("Command failed with code %d: %s", proc.returncode, output)
        raise CommandFailed(cmd, proc.returncode, output)
    return proc.stdout


def ensure_dir(path: str) -> None:
    """Ensure directory exists."""
    if path:
        Path(path).mkdir(parents=True, exist_ok=True)


def convert(src: str, dst: str, *, ffmpeg: str = "ffmpeg") -> None:
    """Convert a file by extension (e.g. VTT -> SRT)."""
    run([ffmpeg, "-y", "-i", src, dst])


def audio_codec_for(audio_path: str, container: str) -> str:
    """Return "copy" when the audio fits the target container, else "aac"."""
    ext = Path(audio_path).suffix.lstrip(".").lower()
    if ext in _AUDIO_COMPAT.get(container, set()):
        return "copy"
    return "aac"


def remux(
    video: str,
    audio: str,
    dst: str,
    *,
    audio_codec: str | None = None,
    ffmpeg: str = "ffmpeg",
) -> None:
    """Merge a video-only and an audio-only stream (video stream copy)."""
    if audio_codec is None:
        audio_codec = audio_codec_for(audio, Path(dst).suffix.lstrip("."))
    cmd = [
        ffmpeg,
        "-y",
        "-i",
        video,
        "-i",
        audio,
        "-map",
        "0:v:0",
        "-map",
        "1:a:0",
        "-c:v",
        "copy",
        "-c:a",
        audio_codec,
        dst,
    ]
    run(cmd)


def reformat_srt(src: str, dst: str, *, ffmpeg: str = "ffmpeg") -> None:
    """Re-parse and re-serialize an SRT file through ffmpeg's subtitle codec."""
    run([ffmpeg, "-y", "-i", src, "-c:s", "srt", dst])


def get_duration_s(path: str) -> float:
    """Get media duration in seconds (0.0 if unknown or ffprobe is unavailable)."""
    try:
        info = mediainfo(str(path))
        return float(info.get("duration", 0.0))
    except (OSError, TypeError, ValueError) as e:
        logger.debug("Could not probe duration of %s: %s", path, e)
        return 0.0
