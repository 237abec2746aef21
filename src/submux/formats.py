"""
Format catalog parsing and filtering.

The catalog is the table printed by ``yt-dlp -F``::

    ID  EXT   RESOLUTION FPS CH |  FILESIZE   TBR PROTO | VCODEC       VBR ACODEC ...
    ---------------------------------------------------------------------------------
    sb0 mhtml 48x27        0    |                 mhtml | images                storyboard
    140 m4a   audio only      2 |   3.01MiB  129k https | audio only        mp4a.40.2
    18  mp4   640x360     25  2 | ≈ 6.31MiB  271k https | avc1.42001E       mp4a.40.2
    137 mp4   1920x1080   25    |  48.12MiB 2072k https | avc1.640028 2072k video only
"""

import logging
import re

from .errors import NoUsableFormats
from .models import StreamDescriptor

logger = logging.getLogger("submux")

_ROW_RE = re.compile(r"^(?P<id>\d[\w-]*)\s+(?P<ext>\S+)\s+(?P<res>audio only|\S+)")
_WXH_RE = re.compile(r"^\d+x(\d+)$")
_P_RE = re.compile(r"^(\d+)p\d*$")
_PLACEHOLDER_MARKERS = ("mhtml", "storyboard", "images")


def parse_height(resolution: str) -> int | None:
    """Vertical resolution from ``1920x1080`` or ``1080p`` (None if unknown)."""
    m = _WXH_RE.match(resolution) or _P_RE.match(resolution)
    return int(m.group(1)) if m else None


def parse_catalog(text: str, *, min_video_only_height: int = 1080) -> list[StreamDescriptor]:
    """Return the selectable streams of a format table, in catalog order.

    Audio-only rows and storyboard placeholders are dropped, as are video-only
    rows below ``min_video_only_height``. Raises NoUsableFormats when nothing
    is left.
    """
    out: list[StreamDescriptor] = []
    for line in text.splitlines():
        m = _ROW_RE.match(line.strip())
        if not m:
            continue
        lowered = line.lower()
        if "audio only" in lowered or any(x in lowered for x in _PLACEHOLDER_MARKERS):
            continue
        res = m.group("res")
        height = parse_height(res)
        video_only = "video only" in lowered
        if video_only and (height is None or height < min_video_only_height):
            logger.debug("Skipping low-resolution video-only format %s (%s)", m.group("id"), res)
            continue
        out.append(
            StreamDescriptor(
                format_id=m.group("id"),
                ext=m.group("ext"),
                resolution=res,
                height=height,
                has_audio=not video_only,
                raw=line.rstrip(),
            )
        )

    if not out:
        raise NoUsableFormats("No usable video formats found")
    return out


def describe_format(index: int, fmt: StreamDescriptor) -> str:
    """One line of the format menu."""
    if fmt.is_video_only:
        note = "(Video-only: audio will be downloaded separately and merged)"
    else:
        note = "(Combined video+audio)"
    return f"{index} - ID:{fmt.format_id} | EXT:{fmt.ext} | RES:{fmt.resolution} | {note}"


def format_menu(formats: list[StreamDescriptor]) -> str:
    lines = [describe_format(i, f) for i, f in enumerate(formats, 1)]
    lines.append("0 - Automatically pick best available (default)")
    return "\n".join(lines)


def resolve_selection(formats: list[StreamDescriptor], index: int | None) -> StreamDescriptor | None:
    """Map a 1-based menu index to a format; None means best available.

    An out-of-range index is not an error: it falls back to best available.
    """
    if not index:
        return None
    if index < 1 or index > len(formats):
        logger.warning("Invalid choice %s. Downloading best available instead.", index)
        return None
    return formats[index - 1]
