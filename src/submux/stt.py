"""
Speech-to-text transcription modules.
"""

import logging
from collections.abc import Callable
from pathlib import Path

from . import io_ffmpeg
from .config import PipelineConfig
from .errors import MissingAudioAsset, MissingCredentials, MissingTool, TranscriptionFailed
from .models import PipelineContext, Segment
from .srt_utils import format_timestamp, write_srt

logger = logging.getLogger("submux")

# Optional OpenAI SDK
try:
    from openai import OpenAI
except ImportError:
    OpenAI = None

Transcriber = Callable[[str], list[Segment]]


def model_is_cached(model_dir: str | Path, name: str) -> bool:
    """True when weights for ``name`` already exist under ``model_dir``.

    Accepts a plain ``<dir>/<name>`` folder or the Hugging Face cache layout
    faster-whisper uses when given ``download_root``.
    """
    root = Path(model_dir)
    candidates = [root / name, root / f"models--Systran--faster-whisper-{name}"]
    return any(p.is_dir() for p in candidates)


def select_model(model_dir: str | Path, preferred: str, fallback: str) -> str:
    """Prefer the accurate model when present locally; never downloads it."""
    return preferred if model_is_cached(model_dir, preferred) else fallback


def transcribe_local_faster_whisper(
    audio_path: str,
    local_model: str = "small",
    *,
    model_dir: str | None = None,
    compute_type: str = "int8",
    initial_prompt: str | None = None,
) -> list[Segment]:
    """Transcribe audio using local faster-whisper with word timestamps."""
    try:
        from faster_whisper import WhisperModel
    except ImportError as e:
        raise RuntimeError(
            "faster-whisper is not installed. Install with: pip install faster-whisper"
        ) from e

    logger.info(f"Using Faster Whisper model: {local_model}")
    model = WhisperModel(
        local_model,
        compute_type=compute_type,
        download_root=str(model_dir) if model_dir else None,
    )

    logger.info("Transcribing audio... This may take a while.")
    segments_iter, _info = model.transcribe(
        audio_path,
        word_timestamps=True,
        initial_prompt=initial_prompt,
    )
    out: list[Segment] = []
    for i, s in enumerate(segments_iter, 1):
        seg = Segment(start=float(s.start), end=float(s.end), text=str(s.text).strip())
        logger.info(
            "Segment %d: %s --> %s | %s",
            i, format_timestamp(seg.start), format_timestamp(seg.end), seg.text,
        )
        out.append(seg)
    return out


def transcribe_whisper_api(
    client: OpenAI, audio_path: str, model: str = "whisper-1", prompt: str | None = None
) -> list[Segment]:
    """Transcribe audio using OpenAI Whisper API."""
    if client is None:
        raise RuntimeError("OpenAI client is not initialized (missing OPENAI_API_KEY)")

    with open(audio_path, "rb") as f:
        logger.info(f"Transcribing with {model} …")
        kwargs = {
            "model": model,
            "file": f,
            "response_format": "verbose_json",
            "timestamp_granularities": ["word", "segment"],
        }
        if prompt:
            kwargs["prompt"] = prompt
        resp = client.audio.transcriptions.create(**kwargs)

    segs = getattr(resp, "segments", None)
    if segs is None and isinstance(resp, dict):
        segs = resp.get("segments")
    out: list[Segment] = []
    for seg in segs or []:
        if isinstance(seg, dict):
            start, end, text = seg.get("start", 0.0), seg.get("end", 0.0), seg.get("text", "")
        else:
            start, end, text = seg.start, seg.end, seg.text
        out.append(Segment(start=float(start), end=float(end), text=str(text).strip()))
    return out


def make_transcriber_local(config: PipelineConfig) -> Transcriber:
    """Create a faster-whisper transcription function."""

    def _transcribe(audio_path: str) -> list[Segment]:
        model = select_model(config.model_dir, config.preferred_model, config.fallback_model)
        return transcribe_local_faster_whisper(
            audio_path,
            local_model=model,
            model_dir=str(config.model_dir),
            compute_type=config.compute_type,
            initial_prompt=config.initial_prompt,
        )

    return _transcribe


def make_transcriber_openai(client: OpenAI, config: PipelineConfig) -> Transcriber:
    """Create an OpenAI Whisper API transcription function."""

    def _transcribe(audio_path: str) -> list[Segment]:
        return transcribe_whisper_api(
            client, audio_path, model=config.whisper_api_model, prompt=config.initial_prompt
        )

    return _transcribe


def make_transcriber(config: PipelineConfig) -> Transcriber:
    if config.stt == "openai":
        if not OpenAI:
            raise MissingTool("openai package not installed. Install with: pip install openai")
        if not config.openai_api_key:
            raise MissingCredentials("OPENAI_API_KEY is not set. Put it in .env or environment.")
        return make_transcriber_openai(OpenAI(api_key=config.openai_api_key), config)
    return make_transcriber_local(config)


def generate_subtitles(ctx: PipelineContext, transcribe: Transcriber, fetch_audio) -> Path:
    """Transcribe the run's audio into ``ctx.srt_path``.

    ``fetch_audio`` is called with the context when no audio asset exists yet
    (normally ``StreamAcquirer.fetch_audio``).
    """
    logger.warning("No manually uploaded subtitles found. Generating new ones …")
    if not ctx.has_audio():
        fetch_audio(ctx)
    if not ctx.has_audio():
        raise MissingAudioAsset("No valid audio file found for transcription")

    audio_path = str(ctx.audio_asset.path)
    duration = io_ffmpeg.get_duration_s(audio_path)
    logger.info(f"Found audio file: {audio_path} ({duration / 60:.2f} min)")

    try:
        segments = transcribe(audio_path)
    except Exception as e:
        raise TranscriptionFailed(f"Speech-to-text engine failed: {e}") from e

    segments = [Segment(s.start, s.end, s.text.strip()) for s in segments if s.text.strip()]
    write_srt(segments, str(ctx.srt_path))
    if not ctx.srt_path.is_file() or ctx.srt_path.stat().st_size == 0:
        raise TranscriptionFailed("Failed to generate subtitles: transcription is empty")

    logger.info("Generated subtitles saved as SRT (%d segments).", len(segments))
    ctx.subtitle_path = ctx.srt_path
    ctx.subtitle_source = "transcribed"
    return ctx.srt_path
