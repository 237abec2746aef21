"""
Stream acquisition: download the chosen format and merge audio when needed.
"""

import logging

from . import io_ffmpeg
from .errors import CommandFailed, MissingVideoAsset
from .models import MediaAsset, PipelineContext, StreamDescriptor
from .ytdlp import BEST_AUDIO_SELECTOR, BEST_SELECTOR, YtDlpClient

logger = logging.getLogger("submux")


class StreamAcquirer:
    def __init__(self, source: YtDlpClient, *, ffmpeg: str = "ffmpeg"):
        self.source = source
        self.ffmpeg = ffmpeg

    def fetch_audio(self, ctx: PipelineContext) -> MediaAsset | None:
        """Make sure ``ctx.audio_asset`` holds a usable audio file.

        Reuses an existing asset; otherwise downloads the best audio stream.
        Returns None (and leaves the context without audio) on failure.
        """
        if ctx.has_audio():
            logger.info("Reusing existing audio file: %s", ctx.audio_asset.path)
            return ctx.audio_asset

        logger.info("Downloading best audio stream …")
        asset = MediaAsset(path=ctx.audio_path, kind="audio")
        try:
            self.source.fetch(
                ctx.url, BEST_AUDIO_SELECTOR, asset.path, audio_only=True, extract_format="m4a"
            )
        except CommandFailed as e:
            logger.warning("Audio download failed: %s", e)
        if not asset.present:
            return None
        ctx.audio_asset = asset
        return asset

    def acquire(self, ctx: PipelineContext, selection: StreamDescriptor | None) -> MediaAsset:
        """Download the selection (None = best available) into ``ctx.video_asset``."""
        try:
            if selection is None:
                asset = self._fetch_best(ctx)
            elif selection.is_video_only:
                asset = self._fetch_video_only(ctx, selection)
            else:
                logger.info("Downloading selected combined video+audio format: %s", selection.format_id)
                self.source.fetch(
                    ctx.url, selection.format_id, ctx.video_path, merge_format=ctx.container
                )
                asset = MediaAsset(path=ctx.video_path, kind="merged")
        except CommandFailed as e:
            raise MissingVideoAsset(f"Video download failed: {e}") from e

        if not asset.present:
            raise MissingVideoAsset(f"No video file found at {asset.path}")
        ctx.video_asset = asset
        return asset

    def _fetch_best(self, ctx: PipelineContext) -> MediaAsset:
        logger.info("Downloading best available video + audio …")
        self.source.fetch(ctx.url, BEST_SELECTOR, ctx.video_path, merge_format=ctx.container)
        return MediaAsset(path=ctx.video_path, kind="merged")

    def _fetch_video_only(self, ctx: PipelineContext, selection: StreamDescriptor) -> MediaAsset:
        logger.warning(
            "Format %s is video-only. Audio will be downloaded separately and merged.",
            selection.format_id,
        )
        video_only = MediaAsset(
            path=ctx.workdir / f"{ctx.title}_video.{selection.ext}", kind="video"
        )
        self.source.fetch(ctx.url, selection.format_id, video_only.path)

        audio = self.fetch_audio(ctx)
        if audio is None:
            logger.warning("Audio missing for merging. Keeping the video-only file as final output.")
            ctx.degraded = True
            return video_only

        codec = io_ffmpeg.audio_codec_for(str(audio.path), ctx.container)
        logger.info("Merging video and audio into %s (audio: %s) …", ctx.container.upper(), codec)
        io_ffmpeg.remux(
            str(video_only.path),
            str(audio.path),
            str(ctx.video_path),
            audio_codec=codec,
            ffmpeg=self.ffmpeg,
        )
        return MediaAsset(path=ctx.video_path, kind="merged")
