"""
Data models for the subtitle muxing pipeline.
"""

from dataclasses import dataclass, field
from pathlib import Path

COMBINED = "combined"
VIDEO_ONLY = "video-only"


@dataclass(frozen=True)
class StreamDescriptor:
    """One selectable entry of the remote format catalog."""

    format_id: str
    ext: str
    resolution: str
    height: int | None
    has_audio: bool
    raw: str = ""

    @property
    def kind(self) -> str:
        return COMBINED if self.has_audio else VIDEO_ONLY

    @property
    def is_video_only(self) -> bool:
        return not self.has_audio


@dataclass
class MediaAsset:
    """A media file in the scratch directory."""

    path: Path
    kind: str  # "video" | "audio" | "merged"

    @property
    def present(self) -> bool:
        """True when the file exists and is non-empty."""
        p = Path(self.path)
        return p.is_file() and p.stat().st_size > 0


@dataclass
class Segment:
    """A single subtitle segment with timing and text."""

    start: float  # seconds
    end: float  # seconds
    text: str


@dataclass
class SubtitleTrack:
    """Ordered, non-overlapping subtitle segments."""

    segments: list[Segment] = field(default_factory=list)

    @classmethod
    def from_segments(cls, segments: list[Segment]) -> "SubtitleTrack":
        """Build a track, repairing order and overlaps.

        Segments are stably sorted by start, every end is clamped to be at
        least its start and at most the next segment's start.
        """
        ordered = sorted(segments, key=lambda s: s.start)
        out: list[Segment] = []
        for i, seg in enumerate(ordered):
            end = max(seg.start, seg.end)
            if i + 1 < len(ordered):
                end = min(end, ordered[i + 1].start)
            out.append(Segment(start=seg.start, end=end, text=seg.text))
        return cls(segments=out)

    def is_valid(self) -> bool:
        for i, seg in enumerate(self.segments):
            if seg.start > seg.end:
                return False
            if i and self.segments[i - 1].end > seg.start:
                return False
        return True

    def __len__(self) -> int:
        return len(self.segments)


@dataclass
class PipelineContext:
    """State of one pipeline run, scoped to its scratch directory."""

    url: str
    workdir: Path
    output_dir: Path
    title: str = "video"
    container: str = "mkv"
    video_asset: MediaAsset | None = None
    audio_asset: MediaAsset | None = None
    subtitle_path: Path | None = None
    subtitle_source: str | None = None  # "manual-vtt" | "manual-srt" | "transcribed"
    degraded: bool = False

    @property
    def video_path(self) -> Path:
        return self.workdir / f"{self.title}.{self.container}"

    @property
    def audio_path(self) -> Path:
        return self.workdir / f"{self.title}.m4a"

    @property
    def srt_path(self) -> Path:
        return self.workdir / f"{self.title}.srt"

    @property
    def output_path(self) -> Path:
        return self.output_dir / f"{self.title}.{self.container}"

    def has_audio(self) -> bool:
        return self.audio_asset is not None and self.audio_asset.present


@dataclass
class PipelineResult:
    """Outcome reported to the operator."""

    output_path: Path
    subtitle_source: str | None
    degraded: bool
