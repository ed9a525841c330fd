"""Turn uploaded files into new submissions."""

import asyncio
import logging
from typing import List, Sequence

from gradepro.libs.extraction import ContentExtractor, ExtractedContent
from .models import Submission, SubmissionStatus, UploadedFile

LOG = logging.getLogger(__name__)


def build_submission(upload: UploadedFile, extracted: ExtractedContent) -> Submission:
    """Create a PENDING submission, or an ERROR one if extraction failed."""
    if extracted.failed:
        return Submission(
            file_name=upload.file_name,
            content_kind=extracted.kind,
            content=extracted.content,
            last_modified=upload.last_modified,
            status=SubmissionStatus.ERROR,
            error_message=extracted.content,
            retryable=False,
            source=upload.data,
        )
    return Submission(
        file_name=upload.file_name,
        content_kind=extracted.kind,
        content=extracted.content,
        last_modified=upload.last_modified,
    )


async def extract_submission(extractor: ContentExtractor, upload: UploadedFile) -> Submission:
    """Extract one upload off the event loop. Never raises."""
    try:
        extracted = await asyncio.to_thread(
            extractor.extract, upload.file_name, upload.content_type, upload.data
        )
    except Exception as exc:  # pylint: disable=broad-except
        LOG.error("File processing error for %s: %s", upload.file_name, exc)
        extracted = ExtractedContent.error(f"Could not process {upload.file_name}: {exc}")
    return build_submission(upload, extracted)


async def ingest_files(extractor: ContentExtractor, uploads: Sequence[UploadedFile]) -> List[Submission]:
    """
    Extract every upload concurrently.

    Args:
        extractor: Content extractor to use
        uploads: Files in upload order

    Returns:
        One submission per upload, in upload order
    """
    submissions = await asyncio.gather(*(extract_submission(extractor, u) for u in uploads))
    failed = sum(1 for s in submissions if s.status == SubmissionStatus.ERROR)
    LOG.info("Ingested %d files (%d failed extraction)", len(submissions), failed)
    return list(submissions)
