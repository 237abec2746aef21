"""
Command-line interface for the subtitle muxing pipeline.
"""

import argparse
import logging
import re
import signal
import sys
from pathlib import Path

from .config import PipelineConfig, load_config, require_tools
from .errors import CommandFailed, PipelineError
from .formats import format_menu
from .models import StreamDescriptor
from .pipeline import SubtitlePipeline

logger = logging.getLogger("submux")

URL_RE = re.compile(r"^https://((www\.|m\.)?youtube\.com/watch\?v=|youtu\.be/)[\w-]+")


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    ap = argparse.ArgumentParser(description="Download a video and embed subtitles into an MKV")

    # IO
    ap.add_argument("--url", default=None, help="Video URL (prompted when omitted)")
    ap.add_argument(
        "--format",
        type=int,
        default=None,
        help="Format number from the menu, 0 for best (prompted when omitted)",
    )
    ap.add_argument("--list-formats", action="store_true", help="Print the format menu and exit")
    ap.add_argument("--output-dir", type=Path, default=None)
    ap.add_argument("--cookies", type=Path, default=None, help="cookies.txt in Netscape format")
    ap.add_argument("--env-file", default=None, help="Load settings from this .env file")

    # Subtitles & STT
    ap.add_argument("--language", default=None, help="Manual subtitle language tag (e.g. 'en')")
    ap.add_argument(
        "--stt", choices=["local", "openai"], default=None, help="Speech-to-text backend"
    )
    ap.add_argument("--model-dir", type=Path, default=None, help="faster-whisper model directory")

    # Logging
    ap.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    return ap.parse_args(argv)


def is_valid_url(url: str) -> bool:
    return bool(URL_RE.match(url.strip()))


def prompt_url() -> str:
    return input("Enter the YouTube video URL: ").strip()


def prompt_format(formats: list[StreamDescriptor]) -> int:
    """Show the format menu and read a choice; anything unparsable means best."""
    print("Available Video Formats (video-only formats indicate audio will be downloaded separately):")
    print(format_menu(formats))
    raw = input("Choose a format number (0 for best): ").strip()
    try:
        return int(raw) if raw else 0
    except ValueError:
        logger.warning("Invalid choice %r. Downloading best available instead.", raw)
        return 0


def _raise_interrupt(signum, frame):
    raise KeyboardInterrupt


def build_config(args: argparse.Namespace) -> PipelineConfig:
    return load_config(args.env_file).with_overrides(
        output_dir=args.output_dir,
        cookies_file=args.cookies,
        model_dir=args.model_dir,
        subtitle_language=args.language,
        stt=args.stt,
    )


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = parse_args(argv)
    setup_logging(args.verbose)
    signal.signal(signal.SIGTERM, _raise_interrupt)

    try:
        config = build_config(args)
        require_tools(config)
        url = args.url or prompt_url()
        if not is_valid_url(url):
            logger.error("That doesn't look like a valid YouTube URL. Please try again.")
            return 2

        pipeline = SubtitlePipeline(config)
        if args.list_formats:
            print(format_menu(pipeline.list_formats(url)))
            return 0

        choose = args.format if args.format is not None else prompt_format
        result = pipeline.run(url, choose)
    except KeyboardInterrupt:
        logger.error("Script interrupted.")
        return 130
    except (PipelineError, CommandFailed) as e:
        logger.error("%s", e)
        return 1

    if result.degraded:
        logger.warning("Output has no audio track: %s", result.output_path)
    print(f"Done! Your final MKV file with subtitles is saved in: {result.output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
