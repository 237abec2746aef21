"""
End-to-end pipeline: formats -> download -> subtitles -> normalize -> mux.

Stages run strictly one after another inside a private scratch directory
that is always removed before ``run`` returns, fails or is interrupted.
"""

import logging
import re
import shutil
import tempfile
from collections.abc import Callable
from pathlib import Path

from .acquire import StreamAcquirer
from .config import PipelineConfig, require_credentials
from .errors import CommandFailed, NoManualSubtitles, NoUsableFormats
from .formats import parse_catalog, resolve_selection
from .io_ffmpeg import ensure_dir
from .mkvmerge import embed_subtitles
from .models import PipelineContext, PipelineResult, StreamDescriptor
from .srt_utils import normalize_subtitles
from .stt import Transcriber, generate_subtitles, make_transcriber
from .subtitles import select_manual_subtitles
from .ytdlp import YtDlpClient

logger = logging.getLogger("submux")

FormatChooser = Callable[[list[StreamDescriptor]], int | None]


def sanitize_title(title: str) -> str:
    """Keep ``[A-Za-z0-9 ._-]``, squeeze whitespace, trim."""
    cleaned = re.sub(r"[^a-zA-Z0-9 ._-]", " ", title or "")
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    return cleaned or "video"


class SubtitlePipeline:
    def __init__(
        self,
        config: PipelineConfig,
        *,
        source: YtDlpClient | None = None,
        transcriber: Transcriber | None = None,
    ):
        self.config = config
        self.source = source or YtDlpClient(config.cookies_file, binary=config.yt_dlp)
        self.acquirer = StreamAcquirer(self.source, ffmpeg=config.ffmpeg)
        self._transcriber = transcriber

    @property
    def transcriber(self) -> Transcriber:
        if self._transcriber is None:
            self._transcriber = make_transcriber(self.config)
        return self._transcriber

    def list_formats(self, url: str) -> list[StreamDescriptor]:
        logger.info("Checking available video formats …")
        try:
            text = self.source.list_formats(url)
        except CommandFailed as e:
            raise NoUsableFormats(f"Could not list formats: {e}") from e
        return parse_catalog(text, min_video_only_height=self.config.min_video_only_height)

    def run(self, url: str, choose: FormatChooser | int | None = None) -> PipelineResult:
        """Produce ``<output_dir>/<title>.mkv`` for ``url``.

        ``choose`` is a menu index (0/None = best available) or a callable
        that receives the format list and returns one.
        """
        require_credentials(self.config)
        if self.config.scratch_root:
            ensure_dir(str(self.config.scratch_root))
        workdir = Path(tempfile.mkdtemp(prefix="submux-", dir=self.config.scratch_root))
        try:
            return self._run(url, workdir, choose)
        except KeyboardInterrupt:
            logger.warning("Interrupted. Cleaning up temporary files …")
            raise
        finally:
            shutil.rmtree(workdir, ignore_errors=True)
            if workdir.exists():
                logger.error("Could not fully remove temp files from: %s", workdir)
            else:
                logger.info("Temp files removed from: %s", workdir)

    def _run(self, url: str, workdir: Path, choose: FormatChooser | int | None) -> PipelineResult:
        cfg = self.config
        ctx = PipelineContext(url=url, workdir=workdir, output_dir=Path(cfg.output_dir))
        ensure_dir(str(ctx.output_dir))

        try:
            ctx.title = sanitize_title(self.source.fetch_title(url))
        except CommandFailed as e:
            logger.warning("Could not fetch title (%s); using '%s'", e, ctx.title)
        logger.info("Title: %s", ctx.title)

        formats = self.list_formats(url)
        index = choose(formats) if callable(choose) else choose
        self.acquirer.acquire(ctx, resolve_selection(formats, index))

        try:
            select_manual_subtitles(ctx, self.source, cfg.subtitle_language, ffmpeg=cfg.ffmpeg)
        except NoManualSubtitles as e:
            logger.info("%s", e)
            generate_subtitles(ctx, self.transcriber, self.acquirer.fetch_audio)

        logger.info("Deep cleaning and reconstructing SRT file …")
        normalize_subtitles(ctx.subtitle_path, workdir, ffmpeg=cfg.ffmpeg)

        output = embed_subtitles(
            ctx.video_asset,
            ctx.subtitle_path,
            ctx.output_path,
            language=cfg.track_language,
            track_name=cfg.track_name,
            mkvmerge=cfg.mkvmerge,
        )
        if ctx.degraded:
            logger.warning("Finished without audio: the selected stream was video-only.")
        logger.info("Done! Final file saved in: %s", output)
        return PipelineResult(
            output_path=output, subtitle_source=ctx.subtitle_source, degraded=ctx.degraded
        )
