"""Facade bundling the store, orchestrator and exporters for one grading session."""

import asyncio
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from gradepro.libs.config_loader import ConfigType, get_config
from gradepro.libs.extraction import ContentExtractor
from gradepro.tools.reporting import ReportExporter, export_summary
from .grader import GradingClient
from .ingest import ingest_files
from .models import GradingConfig, GradingResult, Submission, UploadedFile
from .orchestrator import GradingOrchestrator
from .store import SubmissionStore

LOG = logging.getLogger(__name__)


class GradingSession:
    """
    Everything a presentation layer needs: upload, grade, edit, delete, export.

    State lives only as long as the session object.
    """

    def __init__(self, configs: ConfigType,
                 client: Optional[GradingClient] = None,
                 extractor: Optional[ContentExtractor] = None,
                 store: Optional[SubmissionStore] = None,
                 report_exporter: Optional[ReportExporter] = None,
                 max_concurrent: Optional[int] = None):
        """
        Initialize the session.

        Args:
            configs: Configuration dictionary (required)
            client: Grading client (defaults to one built from configs)
            extractor: Content extractor (defaults to the built-in plugins)
            store: Submission store (defaults to an empty one)
            report_exporter: PDF exporter (defaults to one built from configs)
            max_concurrent: Grading calls in flight at once (overrides grading.max_concurrent)
        """
        self.configs = configs
        self.store = store or SubmissionStore()
        self.extractor = extractor or ContentExtractor()
        self.client = client or GradingClient(configs)
        self.report_exporter = report_exporter or ReportExporter(configs)
        self._config = GradingConfig.from_configs(configs)

        if max_concurrent is None:
            max_concurrent = get_config("grading.max_concurrent", configs, default=1)
        self.orchestrator = GradingOrchestrator(
            store=self.store,
            client=self.client,
            config_provider=lambda: self._config,
            extractor=self.extractor,
            max_concurrent=max_concurrent,
        )

    @property
    def config(self) -> GradingConfig:
        return self._config

    @property
    def submissions(self):
        """Current read-only snapshot of all submissions."""
        return self.store.list()

    def available_models(self) -> List[Dict[str, str]]:
        return list(get_config("grading.available_models", self.configs, default=[]))

    def update_config(self, **changes) -> GradingConfig:
        """
        Replace some fields of the grading config.

        Calls already in flight keep the snapshot they started with.

        Raises:
            ValueError: If a field name is unknown
        """
        unknown = set(changes) - set(GradingConfig.model_fields)
        if unknown:
            raise ValueError(f"Unknown grading config field(s): {', '.join(sorted(unknown))}")
        self._config = GradingConfig(**(self._config.model_dump() | changes))
        LOG.debug("Grading config updated: %s", sorted(changes))
        return self._config

    async def add_submissions(self, files: Iterable[UploadedFile]) -> List[Submission]:
        """Extract the files and append them to the store as one update."""
        submissions = await ingest_files(self.extractor, list(files))
        self.store.add(submissions)
        return submissions

    def delete_submission(self, submission_id: str) -> bool:
        return self.store.remove(submission_id)

    async def grade_all(self, show_progress: bool = False) -> List[Submission]:
        return await self.orchestrator.grade_all(show_progress=show_progress)

    async def reanalyze(self, submission_id: str) -> Optional[Submission]:
        return await self.orchestrator.reanalyze(submission_id)

    def edit_result(self, submission_id: str, result: GradingResult) -> Optional[Submission]:
        return self.store.edit_result(submission_id, result)

    def export_summary(self, output_dir: Path) -> Optional[Path]:
        """Write the CSV summary of every submission. Returns None if there are none."""
        snapshot = self.store.list()
        if not snapshot:
            LOG.info("No submissions to summarize")
            return None
        return export_summary(snapshot, output_dir)

    async def export_report(self, output_dir: Path) -> Optional[Path]:
        """Write the PDF report of graded submissions. Returns None if none are graded."""
        snapshot = self.store.list()
        if not any(s.result is not None for s in snapshot):
            LOG.info("No graded submissions to export")
            return None
        return await asyncio.to_thread(self.report_exporter.export, snapshot, output_dir)
