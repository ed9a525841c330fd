"""Error taxonomy for the grading workflow."""


class GraderError(Exception):
    """Base class for errors recorded against a submission or an export."""

    retryable = True

    def __init__(self, message: str, *, retryable: bool = None):
        super().__init__(message)
        if retryable is not None:
            self.retryable = retryable

    @property
    def message(self) -> str:
        return str(self)


class ExtractionError(GraderError):
    """Uploaded content could not be turned into gradeable input."""

    retryable = False


class BackendError(GraderError):
    """The grading backend failed, timed out, or returned a malformed result."""


class ExportError(GraderError):
    """Rendering, encoding or assembly failed while exporting."""

    retryable = False
