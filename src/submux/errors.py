"""
Error taxonomy for the pipeline.

Every fatal error carries the stage it was raised from so the operator
sees which step failed and why.
"""


class PipelineError(Exception):
    """Base error for the submux pipeline."""

    stage = "pipeline"

    def __init__(self, message: str, *, stage: str | None = None):
        super().__init__(message)
        if stage:
            self.stage = stage

    def __str__(self) -> str:
        return f"[{self.stage}] {super().__str__()}"


class CommandFailed(RuntimeError):
    """Raised when an external tool exits with an unexpected code."""

    def __init__(self, cmd: list[str], returncode: int, output: str = ""):
        self.cmd = cmd
        self.returncode = returncode
        self.output = output
        super().__init__(f"{cmd[0]} failed with code {returncode}")


class MissingTool(PipelineError):
    stage = "setup"


class MissingCredentials(PipelineError):
    stage = "setup"


class NoUsableFormats(PipelineError):
    stage = "formats"


class MissingVideoAsset(PipelineError):
    stage = "acquire"


class NoManualSubtitles(PipelineError):
    """Not a failure: selects the transcription branch."""

    stage = "subtitles"


class MissingAudioAsset(PipelineError):
    stage = "transcribe"


class TranscriptionFailed(PipelineError):
    stage = "transcribe"


class NoSubtitleBlocks(PipelineError):
    stage = "normalize"


class SubtitleReformatFailed(PipelineError):
    stage = "normalize"


class MuxFailed(PipelineError):
    stage = "mux"
