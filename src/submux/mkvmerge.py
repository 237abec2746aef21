"""
Container packaging with mkvmerge.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import CommandFailed, MuxFailed
from .io_ffmpeg import run
from .models import MediaAsset

logger = logging.getLogger("submux")

# mkvmerge exits with 1 when it only emitted warnings
_MKVMERGE_OK = (0, 1)


@dataclass
class TrackSpec:
    """One input file of the packaged container.

    Flags apply to track 0 of the file, which is the only track of a
    subtitle file. Media inputs are usually added with no flags.
    """

    path: Path
    kind: str = "media"  # "media" | "subtitles"
    language: str | None = None
    name: str | None = None
    is_default: bool = False
    is_forced: bool = False


def build_command(output: Path, tracks: list[TrackSpec], mkvmerge: str = "mkvmerge") -> list[str]:
    cmd = [mkvmerge, "-o", str(output)]
    for t in tracks:
        if t.language:
            cmd += ["--language", f"0:{t.language}"]
        if t.name:
            cmd += ["--track-name", f"0:{t.name}"]
        if t.is_default:
            cmd += ["--default-track-flag", "0:yes"]
        if t.is_forced:
            cmd += ["--forced-display-flag", "0:yes"]
        cmd.append(str(t.path))
    return cmd


def package(output: Path, tracks: list[TrackSpec], *, mkvmerge: str = "mkvmerge") -> Path:
    """Write ``tracks`` into a single Matroska file at ``output``."""
    run(build_command(output, tracks, mkvmerge), ok_codes=_MKVMERGE_OK)
    return Path(output)


def embed_subtitles(
    media: MediaAsset,
    subtitle_path: Path | None,
    destination: Path,
    *,
    language: str = "eng",
    track_name: str = "English Subtitles",
    mkvmerge: str = "mkvmerge",
) -> Path:
    """Package the media (and the subtitle track, if any) at ``destination``.

    The subtitle file is removed after a successful mux. On failure or
    interrupt no partial file is left behind, and an existing file at
    ``destination`` is only replaced once the new one is complete.
    """
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    tracks = [TrackSpec(path=Path(media.path))]
    has_subs = subtitle_path is not None and Path(subtitle_path).is_file()
    if has_subs:
        logger.info("Embedding subtitles into final %s …", destination.suffix.lstrip(".").upper())
        tracks.append(
            TrackSpec(
                path=Path(subtitle_path),
                kind="subtitles",
                language=language,
                name=track_name,
                is_default=True,
                is_forced=True,
            )
        )
    else:
        logger.warning("No subtitle file; packaging the media alone.")

    # mkvmerge writes next to the destination; only a finished mux is renamed into place
    partial = destination.with_name(f".{destination.stem}.partial{destination.suffix}")
    try:
        package(partial, tracks, mkvmerge=mkvmerge)
        if not partial.is_file():
            raise MuxFailed(f"mkvmerge produced no file at {destination}")
        partial.replace(destination)
    except CommandFailed as e:
        raise MuxFailed(f"mkvmerge failed: {e}") from e
    finally:
        partial.unlink(missing_ok=True)

    if has_subs:
        Path(subtitle_path).unlink(missing_ok=True)
    return destination
