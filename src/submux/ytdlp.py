"""
Remote media source client driving the yt-dlp command line.
"""

import logging
from pathlib import Path

from .io_ffmpeg import run

logger = logging.getLogger("submux")

BEST_SELECTOR = "bestvideo+bestaudio/best"
BEST_AUDIO_SELECTOR = "bestaudio/best"


class YtDlpClient:
    """Thin wrapper around ``yt-dlp``; every call carries the cookies file."""

    def __init__(self, cookies_file: str | Path, binary: str = "yt-dlp"):
        self.cookies_file = str(cookies_file)
        self.binary = binary

    def _base(self) -> list[str]:
        return [self.binary, "--cookies", self.cookies_file, "--no-playlist"]

    def list_formats(self, url: str) -> str:
        """Return the raw ``-F`` format table."""
        return run([*self._base(), "-F", url])

    def fetch_title(self, url: str) -> str:
        """Return the video title (unsanitized)."""
        out = run(
            [*self._base(), "--get-filename", "-o", "%(title)s", url], merge_stderr=False
        )
        lines = [ln.strip() for ln in out.splitlines() if ln.strip()]
        return lines[-1] if lines else ""

    def fetch(
        self,
        url: str,
        selector: str,
        destination: str | Path,
        *,
        merge_format: str | None = None,
        audio_only: bool = False,
        extract_format: str | None = None,
    ) -> Path:
        """Download ``selector`` to ``destination`` and return the path."""
        cmd = [*self._base(), "-f", selector]
        if merge_format:
            cmd += ["--merge-output-format", merge_format]
        if audio_only:
            cmd += ["--extract-audio"]
            if extract_format:
                cmd += ["--audio-format", extract_format]
        cmd += ["-o", str(destination), url]
        run(cmd)
        return Path(destination)

    def fetch_subtitles(self, url: str, languages: str, destination_pattern: str | Path) -> set[Path]:
        """Write manually uploaded subtitles only; return the files written.

        ``destination_pattern`` is a yt-dlp output template such as
        ``<dir>/<title>.%(ext)s``; its directory should be dedicated to
        subtitle files.
        """
        folder = Path(destination_pattern).parent
        folder.mkdir(parents=True, exist_ok=True)
        before = set(folder.iterdir())
        run(
            [
                *self._base(),
                "--write-subs",
                "--sub-langs",
                languages,
                "--skip-download",
                "-o",
                str(destination_pattern),
                url,
            ]
        )
        written = set(folder.iterdir()) - before
        logger.debug("yt-dlp wrote %d subtitle file(s)", len(written))
        return written
