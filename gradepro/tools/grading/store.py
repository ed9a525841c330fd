"""In-memory submission store with copy-on-write snapshots."""

import logging
from typing import Callable, Iterable, List, Optional, Tuple

from .models import GradingResult, Submission, SubmissionStatus

LOG = logging.getLogger(__name__)

Snapshot = Tuple[Submission, ...]
Observer = Callable[[Snapshot], None]


class SubmissionStore:
    """Single source of truth for submissions.

    Every mutation swaps in a new tuple of immutable Submission objects, so a
    snapshot obtained from ``list()`` never changes underneath its reader.
    Updates are keyed by id and silently ignored when the id is gone.
    """

    def __init__(self, submissions: Iterable[Submission] = ()):
        self._submissions: Snapshot = tuple(submissions)
        self._observers: List[Observer] = []

    def list(self) -> Snapshot:
        return self._submissions

    def get(self, submission_id: str) -> Optional[Submission]:
        for submission in self._submissions:
            if submission.id == submission_id:
                return submission
        return None

    def __len__(self) -> int:
        return len(self._submissions)

    def __contains__(self, submission_id: str) -> bool:
        return self.get(submission_id) is not None

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register a callback for new snapshots. Returns an unsubscribe function."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _publish(self, submissions: Snapshot) -> None:
        self._submissions = submissions
        for observer in list(self._observers):
            try:
                observer(submissions)
            except Exception as exc:  # pylint: disable=broad-except
                LOG.error("Store observer %r failed: %s", observer, exc)

    def add(self, submissions: Iterable[Submission]) -> None:
        """Append submissions in order as one combined update."""
        new_items = tuple(submissions)
        if not new_items:
            return
        existing = {s.id for s in self._submissions}
        for submission in new_items:
            if submission.id in existing:
                raise ValueError(f"Duplicate submission id {submission.id}")
            existing.add(submission.id)
        LOG.debug("Adding %d submissions", len(new_items))
        self._publish(self._submissions + new_items)

    def remove(self, submission_id: str) -> bool:
        """Delete a submission regardless of its status."""
        remaining = tuple(s for s in self._submissions if s.id != submission_id)
        if len(remaining) == len(self._submissions):
            return False
        LOG.debug("Removed submission %s", submission_id)
        self._publish(remaining)
        return True

    def update(self, submission_id: str, **changes) -> Optional[Submission]:
        """Replace fields of one submission. No-op (returns None) if the id is gone."""
        updated: Optional[Submission] = None
        items = []
        for submission in self._submissions:
            if submission.id == submission_id:
                updated = submission.evolve(**changes)
                items.append(updated)
            else:
                items.append(submission)
        if updated is None:
            LOG.debug("Ignoring update for missing submission %s", submission_id)
            return None
        self._publish(tuple(items))
        return updated

    def update_status(self, submission_id: str, status: SubmissionStatus,
                      result: Optional[GradingResult] = None,
                      error_message: Optional[str] = None,
                      retryable: bool = True) -> Optional[Submission]:
        """
        Move a submission to a new status.

        ``result`` is only kept for COMPLETED and ``error_message`` only for ERROR,
        so fields from the previous state never leak into the next one.
        """
        if status == SubmissionStatus.COMPLETED and result is None:
            raise ValueError("COMPLETED status requires a result")
        if status == SubmissionStatus.ERROR and not error_message:
            raise ValueError("ERROR status requires an error message")

        return self.update(
            submission_id,
            status=status,
            result=result if status == SubmissionStatus.COMPLETED else None,
            error_message=error_message if status == SubmissionStatus.ERROR else None,
            retryable=retryable if status == SubmissionStatus.ERROR else True,
        )

    def edit_result(self, submission_id: str, result: GradingResult) -> Optional[Submission]:
        """Overwrite the result of a graded submission with a manually edited one."""
        current = self.get(submission_id)
        if current is None or current.status != SubmissionStatus.COMPLETED:
            LOG.warning("Cannot edit result of submission %s: not graded", submission_id)
            return None
        return self.update(submission_id, result=result)
