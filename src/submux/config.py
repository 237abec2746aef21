"""
Pipeline configuration.

Values come from defaults, then a ``.env`` file and ``SUBMUX_*`` environment
variables, then command-line overrides. The resulting object is passed into
the pipeline explicitly; nothing below reads the environment afterwards.
"""

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path

from dotenv import load_dotenv
from pydub.utils import which

from .errors import MissingCredentials, MissingTool

logger = logging.getLogger("submux")

VERBATIM_PROMPT = (
    "Transcribe everything exactly as spoken, with no censorship of profanity, "
    "slurs and sensitive language."
)


@dataclass
class PipelineConfig:
    output_dir: Path = field(default_factory=lambda: Path.home() / "Downloads")
    cookies_file: Path = field(default_factory=lambda: Path.home() / "cookies.txt")
    model_dir: Path = field(default_factory=lambda: Path.home() / "whisper-env" / "models")
    scratch_root: Path | None = None  # parent of the per-run scratch dir; None = system temp

    # Subtitles
    subtitle_language: str = "en"  # yt-dlp language tag
    track_language: str = "eng"  # ISO 639-2 tag written into the container
    track_name: str = "English Subtitles"

    # Speech-to-text
    stt: str = "local"  # "local" | "openai"
    preferred_model: str = "large-v2"
    fallback_model: str = "small"
    compute_type: str = "int8"
    whisper_api_model: str = "whisper-1"
    initial_prompt: str = VERBATIM_PROMPT
    openai_api_key: str | None = None

    # Format catalog
    min_video_only_height: int = 1080

    # Tool binaries
    yt_dlp: str = "yt-dlp"
    ffmpeg: str = "ffmpeg"
    mkvmerge: str = "mkvmerge"

    def with_overrides(self, **overrides) -> "PipelineConfig":
        """Return a copy with the non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


_ENV_FIELDS = {
    "SUBMUX_OUTPUT_DIR": ("output_dir", Path),
    "SUBMUX_COOKIES": ("cookies_file", Path),
    "SUBMUX_MODEL_DIR": ("model_dir", Path),
    "SUBMUX_SCRATCH_ROOT": ("scratch_root", Path),
    "SUBMUX_SUB_LANG": ("subtitle_language", str),
    "SUBMUX_TRACK_LANG": ("track_language", str),
    "SUBMUX_TRACK_NAME": ("track_name", str),
    "SUBMUX_STT": ("stt", str),
    "SUBMUX_PREFERRED_MODEL": ("preferred_model", str),
    "SUBMUX_FALLBACK_MODEL": ("fallback_model", str),
    "SUBMUX_COMPUTE_TYPE": ("compute_type", str),
    "SUBMUX_WHISPER_API_MODEL": ("whisper_api_model", str),
    "SUBMUX_MIN_HEIGHT": ("min_video_only_height", int),
    "SUBMUX_YT_DLP": ("yt_dlp", str),
    "SUBMUX_FFMPEG": ("ffmpeg", str),
    "SUBMUX_MKVMERGE": ("mkvmerge", str),
}


def load_config(env_file: str | None = None) -> PipelineConfig:
    """Load configuration from ``.env`` and the environment."""
    if env_file:
        load_dotenv(env_file)
    else:
        # Look for .env in the project root (parent of src directory)
        project_root = Path(__file__).parent.parent.parent
        env_path = project_root / ".env"
        if env_path.exists():
            load_dotenv(env_path)
        else:
            load_dotenv()

    values = {}
    for var, (name, conv) in _ENV_FIELDS.items():
        raw = os.getenv(var)
        if raw:
            values[name] = Path(raw).expanduser() if conv is Path else conv(raw)
    values["openai_api_key"] = os.getenv("OPENAI_API_KEY")
    return PipelineConfig(**values)


def require_tools(config: PipelineConfig) -> None:
    """Check that every external binary the pipeline calls can be found."""
    missing = [b for b in (config.yt_dlp, config.ffmpeg, config.mkvmerge) if not which(b)]
    if missing:
        raise MissingTool(f"Required tool(s) not found on PATH: {', '.join(missing)}")


def require_credentials(config: PipelineConfig) -> None:
    """The remote source needs a cookies file; it is never created here."""
    if not Path(config.cookies_file).is_file():
        raise MissingCredentials(
            f"Cookies file not found at {config.cookies_file}. "
            "Export your browser cookies and save them to this file."
        )
