import time
from collections.abc import Callable
from datetime import datetime, timedelta

from invoice_worker.config.settings import Settings
from invoice_worker.database.repositories.base import BaseDocumentRepository
from invoice_worker.documents.state_machine import utc_now
from invoice_worker.logging.logger import Log
from invoice_worker.service.document_service import DocumentService
from invoice_worker.worker.job_runner import JobRunner


class Worker:
    """Poll loop: sweep stuck documents -> claim -> dispatch -> sleep when idle."""

    def __init__(
        self,
        repository: BaseDocumentRepository,
        job_runner: JobRunner,
        service: DocumentService,
        settings: Settings,
        clock: Callable[[], datetime] = utc_now,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._repository = repository
        self._job_runner = job_runner
        self._service = service
        self._settings = settings
        self._clock = clock
        self._sleep = sleep
        self._last_sweep: datetime | None = None

    def run(self, max_iterations: int | None = None) -> None:
        """Main poll loop. Runs forever until interrupted.

        If max_iterations is set, stop after that many polls (for testing).
        """
        Log.info("Worker started, polling for documents")
        iterations = 0
        try:
            while max_iterations is None or iterations < max_iterations:
                iterations += 1
                self._maybe_sweep_stuck()
                document_id = self._try_claim_document()
                if document_id is not None:
                    self._job_runner.run(document_id)
                else:
                    Log.debug("No documents waiting, sleeping")
                    self._sleep(self._settings.worker_poll_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully")

    def _try_claim_document(self) -> int | None:
        """Find the next uploaded document. Gracefully handle DB errors."""
        try:
            return self._repository.find_next_uploaded()
        except Exception as exc:
            Log.warning("Database error, will retry", error=exc)
            return None

    def _maybe_sweep_stuck(self) -> None:
        now = self._clock()
        interval = timedelta(seconds=self._settings.stuck_sweep_interval_seconds)
        if self._last_sweep is not None and now - self._last_sweep < interval:
            return
        self._last_sweep = now
        cutoff = now - timedelta(minutes=self._settings.stuck_processing_timeout_minutes)
        try:
            recovered = self._service.recover_stuck(cutoff)
        except Exception as exc:
            Log.warning("Stuck document sweep failed, will retry", error=exc)
            return
        if recovered:
            Log.info("Stuck documents recovered", count=len(recovered))
