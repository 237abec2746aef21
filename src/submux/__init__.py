"""
Submux - download a video and ship it with embedded subtitles.

A sequential pipeline for:
- Listing and picking remote stream formats (yt-dlp)
- Downloading video and audio and merging them (ffmpeg)
- Adopting manually uploaded subtitles when they exist
- Transcribing speech otherwise (local faster-whisper or OpenAI Whisper)
- Cleaning, renumbering and validating the SRT track
- Embedding the track into a single MKV file (mkvmerge)
"""

__version__ = "0.1.0"
