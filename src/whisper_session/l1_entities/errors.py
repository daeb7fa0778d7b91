"""Domain error types."""


class ModelResolutionError(Exception):
    """Raised when a whisper model cannot be resolved to local files."""


class WorkerError(Exception):
    """An error reported by the transcription worker."""


class ModelCheckError(WorkerError):
    """The model check failed or was never acknowledged."""


class DownloadError(WorkerError):
    """Downloading or loading the model failed."""


class TranscriptionError(WorkerError):
    """Inference failed."""


class AudioDecodeError(Exception):
    """Input audio could not be fetched or decoded."""


class ExportUnavailableError(Exception):
    """Raised when exporting while no final transcript is available."""
