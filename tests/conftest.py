"""Shared fixtures and builders for grading tests."""

import pytest

from gradepro.libs.extraction import ContentKind
from gradepro.tools.grading.models import GradingResult, Submission, SubmissionStatus


def make_result(score=85, letter_grade="B", summary="Good work.", **overrides) -> GradingResult:
    fields = dict(
        score=score,
        letter_grade=letter_grade,
        summary=summary,
        strengths=["Clear structure"],
        improvements=["Cite more sources"],
        detailed_feedback="Well argued overall.\nSee the rubric notes.",
    )
    fields.update(overrides)
    return GradingResult(**fields)


def make_submission(file_name="essay.txt", status=SubmissionStatus.PENDING, **overrides) -> Submission:
    fields = dict(file_name=file_name, content_kind=ContentKind.PLAIN_TEXT, content=f"Text of {file_name}",
                  status=status)
    if status == SubmissionStatus.COMPLETED:
        fields["result"] = make_result()
    if status == SubmissionStatus.ERROR:
        fields["error_message"] = "Backend unavailable"
    fields.update(overrides)
    return Submission(**fields)


@pytest.fixture
def result():
    return make_result()
