"""Caller-facing tailoring service: start jobs, read progress, poll to completion."""

import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

import structlog

from resumetailor.config import Config
from resumetailor.exceptions import PollingTimeout, ValidationError
from resumetailor.gateway import CompletionGateway
from resumetailor.generators.resume_text import build_fallback_document
from resumetailor.orchestrator import TailoringOrchestrator
from resumetailor.progress import ProgressTracker
from resumetailor.schemas.records import ProgressRecord, ResumeRecord, ResumeUpdate, StartResult
from resumetailor.schemas.tailoring import TailoringRequest
from resumetailor.stores.base import AttemptStore, ProgressStore, ResumeStore

logger = structlog.get_logger(__name__)

DEFAULT_JOB_WORKERS = 4


class TailoringService:
    """
    Starts tailoring jobs in the background and answers progress queries.

    Progress records are keyed by the resume id, so polling a resume always
    shows its most recent job.
    """

    def __init__(
        self,
        config: Config,
        gateway: CompletionGateway,
        resume_store: ResumeStore,
        attempt_store: AttemptStore,
        progress_store: ProgressStore,
        executor: ThreadPoolExecutor | None = None,
    ):
        self.config = config
        self.gateway = gateway
        self.resume_store = resume_store
        self.attempt_store = attempt_store
        self.progress = ProgressTracker(progress_store)
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=DEFAULT_JOB_WORKERS, thread_name_prefix="tailoring-job"
        )
        self._futures: dict[str, Future] = {}

    def _build_orchestrator(self) -> TailoringOrchestrator:
        return TailoringOrchestrator(
            self.config,
            self.gateway,
            progress=self.progress,
            attempt_store=self.attempt_store,
        )

    def start_tailoring(self, resume_id: str, owner_id: str, is_refinement: bool = False) -> StartResult:
        """
        Validate ownership and launch a tailoring job.

        Returns immediately; the job runs on the service's worker pool.
        A missing resume or one owned by somebody else fails here without
        any model call.
        """
        record = self.resume_store.get(resume_id, owner_id)
        if record is None:
            logger.warning("tailoring_rejected", resume_id=resume_id, owner_id=owner_id, reason="not_found")
            return StartResult(success=False, error="Resume not found")

        run_id = uuid.uuid4().hex
        self.progress.start(resume_id, owner_id, max_attempts=self.config.tailoring.max_attempts)
        future = self._executor.submit(self._run_job, record, is_refinement, run_id)
        self._futures[resume_id] = future
        logger.info(
            "tailoring_submitted",
            resume_id=resume_id,
            owner_id=owner_id,
            run_id=run_id,
            is_refinement=is_refinement,
        )
        return StartResult(success=True, job_id=resume_id, run_id=run_id)

    def _run_job(self, record: ResumeRecord, is_refinement: bool, run_id: str) -> None:
        log = logger.bind(resume_id=record.resume_id, run_id=run_id)
        version = record.version + 1 if is_refinement else 1
        request = TailoringRequest(
            job_id=record.resume_id,
            owner_id=record.owner_id,
            resume_text=record.resume_text,
            job_description=record.job_description,
            mode=record.tailoring_mode,
            version=version,
            run_id=run_id,
        )

        try:
            outcome = self._build_orchestrator().run(request)
            self.resume_store.update(
                record.resume_id,
                record.owner_id,
                ResumeUpdate(
                    modified_resume=outcome.final_text,
                    ats_score=outcome.best_attempt.ats_score,
                    jd_score=outcome.best_attempt.jd_score,
                    version=version,
                    tailoring_mode=record.tailoring_mode,
                    golden_passed=outcome.golden_passed,
                    modified_sections=outcome.modified_sections,
                ),
            )
            self.progress.complete(record.resume_id, record.owner_id)
            log.info(
                "tailoring_completed",
                version=version,
                modified_sections=outcome.modified_sections,
                section_changes=len(outcome.section_history),
            )
        except ValidationError as e:
            log.error("tailoring_invalid_result", error=str(e))
            try:
                self.resume_store.update(
                    record.resume_id,
                    record.owner_id,
                    ResumeUpdate(
                        modified_resume=build_fallback_document(record.resume_text),
                        ats_score=0,
                        jd_score=0,
                        version=version,
                        tailoring_mode=record.tailoring_mode,
                        golden_passed=False,
                    ),
                )
            finally:
                self.progress.fail(record.resume_id, record.owner_id)
        except Exception as e:
            log.exception("tailoring_failed", error=str(e), error_type=type(e).__name__)
            self.progress.fail(record.resume_id, record.owner_id)

    def get_progress(self, resume_id: str, owner_id: str) -> ProgressRecord:
        """Current progress of the latest job for a resume."""
        return self.progress.read(resume_id, owner_id)

    def wait(self, resume_id: str, timeout: float | None = None) -> None:
        """Block until the latest job for a resume has finished."""
        future = self._futures.get(resume_id)
        if future is not None:
            future.result(timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.shutdown()


class ProgressPoller:
    """
    Polls a job's progress until it reaches a terminal status.

    The poller gives up after ``max_polls`` reads; the job itself keeps
    running.
    """

    def __init__(
        self,
        service: TailoringService,
        interval_seconds: float = 5,
        max_polls: int = 30,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.service = service
        self.interval_seconds = interval_seconds
        self.max_polls = max_polls
        self._sleep = sleep

    def wait(
        self,
        resume_id: str,
        owner_id: str,
        on_update: Callable[[ProgressRecord], None] | None = None,
    ) -> ProgressRecord:
        """
        Poll until completed or error.

        Raises:
            PollingTimeout: If the job is still running after max_polls reads
        """
        last_status = None
        for poll in range(1, self.max_polls + 1):
            record = self.service.get_progress(resume_id, owner_id)
            if on_update is not None and record.status != last_status:
                on_update(record)
            last_status = record.status
            if record.is_terminal:
                logger.debug("polling_finished", resume_id=resume_id, status=record.status, polls=poll)
                return record
            if poll < self.max_polls:
                self._sleep(self.interval_seconds)

        logger.warning("polling_timeout", resume_id=resume_id, max_polls=self.max_polls, status=last_status)
        raise PollingTimeout(
            f"Tailoring still running after {self.max_polls} polls (last status: {last_status})"
        )
