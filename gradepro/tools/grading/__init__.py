"""Grading tool: submission lifecycle, backend calls and batch orchestration."""

from .errors import BackendError, ExportError, ExtractionError, GraderError
from .grader import GradingClient
from .models import GradingConfig, GradingResult, Submission, SubmissionStatus, UploadedFile
from .orchestrator import GradingOrchestrator
from .store import SubmissionStore

__all__ = [
    'BackendError',
    'ExportError',
    'ExtractionError',
    'GraderError',
    'GradingClient',
    'GradingConfig',
    'GradingResult',
    'Submission',
    'SubmissionStatus',
    'UploadedFile',
    'GradingOrchestrator',
    'SubmissionStore',
]
