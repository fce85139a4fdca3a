GENERIC_FAILURE_MESSAGE = (
    "Video analysis failed. The file might be corrupted or in an unsupported format."
)


class AnalysisFailedError(RuntimeError):
    """Fatal pipeline failure; the message is safe to show to end users."""

    def __init__(self, message: str = GENERIC_FAILURE_MESSAGE) -> None:
        super().__init__(message)
