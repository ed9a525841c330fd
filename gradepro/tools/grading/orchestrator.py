"""Batch grading orchestrator driving the store through grading calls."""

import asyncio
import logging
from typing import Callable, List, Optional, Set

from tqdm import tqdm

from gradepro.libs.extraction import ContentExtractor
from .errors import GraderError
from .grader import GradingClient
from .models import GradingConfig, Submission, SubmissionStatus
from .store import SubmissionStore

LOG = logging.getLogger(__name__)


class GradingOrchestrator:
    """Grade queued submissions with failure isolation and an in-flight guard."""

    def __init__(self, store: SubmissionStore, client: GradingClient,
                 config_provider: Callable[[], GradingConfig],
                 extractor: Optional[ContentExtractor] = None,
                 max_concurrent: int = 1):
        """
        Initialize the orchestrator.

        Args:
            store: Store holding the submissions
            client: Grading client used for backend calls
            config_provider: Returns the current grading config; called when each call is issued
            extractor: Used to retry extraction when reanalyzing an unreadable upload
            max_concurrent: Maximum number of grading calls in flight at once
        """
        self.store = store
        self.client = client
        self.config_provider = config_provider
        self.extractor = extractor or ContentExtractor()
        self.max_concurrent = max(1, int(max_concurrent))
        self._in_flight: Set[str] = set()

        LOG.info("GradingOrchestrator initialized with max_concurrent=%d", self.max_concurrent)

    @property
    def in_flight(self) -> frozenset:
        return frozenset(self._in_flight)

    def is_in_flight(self, submission_id: str) -> bool:
        return submission_id in self._in_flight

    def select_batch(self) -> List[str]:
        """Ids of PENDING and retryable ERROR submissions, in store order."""
        return [s.id for s in self.store.list() if s.is_gradeable and s.id not in self._in_flight]

    async def grade_all(self, show_progress: bool = False) -> List[Submission]:
        """
        Grade every PENDING or retryable ERROR submission.

        The batch always runs to completion over the selected set; one failure
        never stops the others.

        Returns:
            Final versions of the processed submissions still present in the store
        """
        batch = self.select_batch()
        if not batch:
            LOG.info("No submissions to grade")
            return []

        LOG.info("Grading %d submissions", len(batch))
        semaphore = asyncio.Semaphore(self.max_concurrent)

        with tqdm(total=len(batch), desc="Grading submissions", disable=not show_progress) as progress:

            async def grade_with_semaphore(submission_id: str) -> Optional[Submission]:
                async with semaphore:
                    try:
                        return await self._grade_one(submission_id, batch_only=True)
                    finally:
                        progress.update(1)

            results = await asyncio.gather(*(grade_with_semaphore(i) for i in batch))

        processed = [r for r in results if r is not None]
        completed = sum(1 for r in processed if r.status == SubmissionStatus.COMPLETED)
        LOG.info("Batch finished: %d graded, %d failed", completed, len(processed) - completed)
        return processed

    async def reanalyze(self, submission_id: str) -> Optional[Submission]:
        """
        Re-grade one submission on demand, whatever its current status.

        Returns None when the id is unknown or already being graded.
        """
        return await self._grade_one(submission_id, batch_only=False)

    async def _grade_one(self, submission_id: str, batch_only: bool) -> Optional[Submission]:
        current = self.store.get(submission_id)
        if current is None:
            return None
        if submission_id in self._in_flight or current.status == SubmissionStatus.PROCESSING:
            LOG.warning("Submission %s is already being graded; ignoring request", current.file_name)
            return None
        # State may have changed since the batch was selected (e.g. reanalyzed meanwhile).
        if batch_only and not current.is_gradeable:
            LOG.debug("Skipping %s: no longer queued (%s)", current.file_name, current.status.value)
            return None

        self._in_flight.add(submission_id)
        try:
            self.store.update_status(submission_id, SubmissionStatus.PROCESSING)

            if current.is_extraction_error:
                current = await self._retry_extraction(current)
                if current is None or current.status == SubmissionStatus.ERROR:
                    return current

            config = self.config_provider()
            LOG.debug("Grading %s with model %s", current.file_name, config.model)
            try:
                result = await self.client.grade(current.content, current.content_kind, config)
            except GraderError as exc:
                LOG.warning("Failed: %s - %s", current.file_name, exc)
                return self.store.update_status(
                    submission_id, SubmissionStatus.ERROR,
                    error_message=exc.message or "Unknown error",
                    retryable=exc.retryable,
                )
            except Exception as exc:  # pylint: disable=broad-except
                LOG.exception("Unexpected error grading %s", current.file_name)
                return self.store.update_status(
                    submission_id, SubmissionStatus.ERROR,
                    error_message=str(exc) or "Unknown error",
                )

            updated = self.store.update_status(submission_id, SubmissionStatus.COMPLETED, result=result)
            if updated is None:
                LOG.info("Discarding result for %s: submission was deleted", current.file_name)
            else:
                LOG.debug("Completed: %s - %s (%s)", current.file_name, result.score, result.letter_grade)
            return updated
        finally:
            self._in_flight.discard(submission_id)

    async def _retry_extraction(self, current: Submission) -> Optional[Submission]:
        """Run extraction again for an upload that could not be read at ingestion."""
        if current.source is None:
            return self.store.update_status(
                current.id, SubmissionStatus.ERROR,
                error_message=current.content, retryable=False,
            )

        extracted = await asyncio.to_thread(self.extractor.extract, current.file_name, None, current.source)
        if extracted.failed:
            return self.store.update_status(
                current.id, SubmissionStatus.ERROR,
                error_message=extracted.content, retryable=False,
            )
        LOG.info("Extraction succeeded on retry for %s", current.file_name)
        return self.store.update(
            current.id, content=extracted.content, content_kind=extracted.kind, source=None,
        )
