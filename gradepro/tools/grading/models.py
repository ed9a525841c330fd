"""Pydantic models for submissions and their grading results."""

import mimetypes
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from gradepro.libs.config_loader import ConfigType, get_config
from gradepro.libs.extraction.models import ContentKind


class SubmissionStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


class GradingResult(BaseModel):
    """Structured grading output. The backend must return exactly these six fields.

    Validation is strict: a score sent as "85" or true is rejected, not coerced.
    """
    model_config = ConfigDict(extra="forbid", populate_by_name=True, strict=True)

    score: float = Field(description="The numerical score based on the rubric.")
    letter_grade: str = Field(alias="letterGrade", description="The letter grade (A, B, C, D, F).")
    summary: str = Field(description="A brief summary of the grading.")
    strengths: List[str] = Field(description="List of strong points in the submission.")
    improvements: List[str] = Field(description="List of areas for improvement.")
    detailed_feedback: str = Field(
        alias="detailedFeedback",
        description="Comprehensive feedback explaining the score."
    )

    @property
    def is_pass(self) -> bool:
        """Passing grades are the ones containing A, B or C."""
        return any(g in self.letter_grade for g in ("A", "B", "C"))

    @classmethod
    def from_edit_form(cls, score: float, letter_grade: str, summary: str,
                       strengths_text: str, improvements_text: str,
                       detailed_feedback: str) -> "GradingResult":
        """Build a result from free-text edit fields, one list item per line."""
        return cls(
            score=score,
            letter_grade=letter_grade,
            summary=summary,
            strengths=strengths_text.split("\n"),
            improvements=improvements_text.split("\n"),
            detailed_feedback=detailed_feedback,
        )


class GradingConfig(BaseModel):
    """Assignment prompt, rubric and model shared by every grading call of a batch."""
    model_config = ConfigDict(frozen=True)

    assignment_prompt: str
    grading_rubric: str
    model: str

    @classmethod
    def from_configs(cls, configs: ConfigType) -> "GradingConfig":
        return cls(
            assignment_prompt=get_config("grading.default_assignment", configs, default=""),
            grading_rubric=get_config("grading.default_rubric", configs, default=""),
            model=get_config("grading.default_model", configs),
        )


def new_submission_id() -> str:
    return uuid.uuid4().hex


class Submission(BaseModel):
    """One uploaded artifact plus its grading lifecycle state."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_submission_id)
    file_name: str
    content_kind: ContentKind
    content: str
    last_modified: int = Field(default_factory=lambda: int(time.time() * 1000))
    status: SubmissionStatus = SubmissionStatus.PENDING
    result: Optional[GradingResult] = None
    error_message: Optional[str] = None
    retryable: bool = True
    # Raw upload, kept only when extraction failed so it can be retried.
    source: Optional[bytes] = Field(default=None, repr=False, exclude=True)

    @model_validator(mode="after")
    def _validate_state(self) -> "Submission":
        self.check_state()
        return self

    def check_state(self) -> None:
        """Enforce: result set iff COMPLETED, error message set iff ERROR."""
        completed = self.status == SubmissionStatus.COMPLETED
        if completed != (self.result is not None):
            raise ValueError(f"Submission {self.id}: result must be set if and only if status is COMPLETED")
        errored = self.status == SubmissionStatus.ERROR
        if errored != (self.error_message is not None):
            raise ValueError(f"Submission {self.id}: error_message must be set if and only if status is ERROR")

    def evolve(self, **changes) -> "Submission":
        """Return a validated copy with the given fields replaced."""
        updated = self.model_copy(update=changes)
        updated.check_state()
        return updated

    @property
    def is_extraction_error(self) -> bool:
        return self.content_kind == ContentKind.EXTRACTION_ERROR

    @property
    def is_gradeable(self) -> bool:
        """PENDING, or ERROR that a batch pass may retry."""
        if self.status == SubmissionStatus.PENDING:
            return True
        return (self.status == SubmissionStatus.ERROR
                and self.retryable
                and not self.is_extraction_error)


@dataclass
class UploadedFile:
    """A file handed over by the presentation layer for ingestion."""
    file_name: str
    content_type: str
    data: bytes = field(repr=False)
    last_modified: int = field(default_factory=lambda: int(time.time() * 1000))

    @classmethod
    def from_path(cls, path: Path) -> "UploadedFile":
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return cls(
            file_name=path.name,
            content_type=content_type,
            data=path.read_bytes(),
            last_modified=int(path.stat().st_mtime * 1000),
        )
