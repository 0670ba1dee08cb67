"""Tailoring orchestrator: the iterative section-based tailoring loop."""

import hashlib
import re
from concurrent.futures import ThreadPoolExecutor
from enum import Enum, auto
from typing import TYPE_CHECKING, Callable, Iterable

import structlog

from resumetailor.agents.golden_rules import GoldenRuleChecker
from resumetailor.agents.jd_analyst import JDAnalyst
from resumetailor.agents.quality_scorer import QualityScorer
from resumetailor.exceptions import OrchestrationError, ResumeTailorError, ValidationError
from resumetailor.generators.resume_text import reconstruct_resume_from_sections
from resumetailor.parsers.section_parser import (
    HEADER_SECTION,
    extract_sections,
    parse_delimited_sections,
)
from resumetailor.progress import (
    ProgressTracker,
    attempt_progress,
    attempt_status,
    scoring_progress,
    scoring_status,
)
from resumetailor.prompts import (
    compile_full_prompt,
    compile_refinement_prompt,
    extract_feedback_points,
    get_temperature_for_mode,
)
from resumetailor.schemas.records import TailoringStatus
from resumetailor.schemas.tailoring import (
    AttemptHistory,
    GoldenRuleResult,
    JobIntelligence,
    SectionModification,
    TailoringAttempt,
    TailoringOutcome,
    TailoringRequest,
)
from resumetailor.stores.base import AttemptStore
from resumetailor.utils.cleaning import clean_resume_output, clean_section_content
from resumetailor.utils.diff import calculate_change_confidence, diff_sections
from resumetailor.utils.metrics import timed_operation
from resumetailor.utils.validation import validate_ats_safe_resume, validate_final_resume

if TYPE_CHECKING:
    from resumetailor.config import Config
    from resumetailor.gateway import CompletionGateway

logger = structlog.get_logger(__name__)

FULL_REWRITE_REASON = "Rewritten with the whole resume for ATS compatibility and job match"
REFINEMENT_REASON = "Refined to address evaluator feedback"


class PipelineState(Enum):
    """Tailoring loop states."""

    INIT = auto()
    ANALYZING = auto()
    ANALYZING_JD = auto()
    ATTEMPT = auto()
    SCORING = auto()
    PROCESSING = auto()
    COMPLETE = auto()
    FAILED = auto()


class TailoringRun:
    """Mutable state of one orchestrator run."""

    def __init__(self, request: TailoringRequest, max_attempts: int):
        self.request = request
        self.max_attempts = max_attempts
        self.original_sections: dict[str, str] = {}
        self.current_sections: dict[str, str] = {}
        self.intelligence: JobIntelligence | None = None
        self.history = AttemptHistory()
        self.attempt_number = 0
        self.has_generation = False
        # Per-attempt scratch, reset at the start of every attempt
        self.candidate_text: str | None = None
        self.sections_sent: list[str] = []
        self.sections_received: list[str] = []
        self.prompt_chars = 0
        self.prompt_tokens = 0
        # Carried between attempts
        self.prior_feedback: list[str] = []
        self.golden_feedback: list[str] = []
        self.section_history: list[SectionModification] = []
        self.stop_reason: str | None = None
        self.outcome: TailoringOutcome | None = None
        self.error: Exception | None = None

    @property
    def attempts_exhausted(self) -> bool:
        return self.attempt_number >= self.max_attempts

    @property
    def generated_this_attempt(self) -> bool:
        return self.candidate_text is not None

    def record_change(self, name: str, before: str, after: str, reason: str) -> None:
        self.section_history.append(
            SectionModification(
                section=name,
                attempt_number=self.attempt_number,
                reason=reason,
                confidence=calculate_change_confidence(before, after),
            )
        )


class StateTransition:
    """Defines a state transition with condition."""

    def __init__(
        self,
        from_state: PipelineState,
        to_state: PipelineState,
        condition: Callable[[TailoringRun], bool] = lambda _: True,
    ):
        self.from_state = from_state
        self.to_state = to_state
        self.condition = condition


# Define valid state transitions. First matching condition wins.
TRANSITIONS = [
    StateTransition(PipelineState.INIT, PipelineState.ANALYZING),
    StateTransition(PipelineState.ANALYZING, PipelineState.ANALYZING_JD),
    StateTransition(PipelineState.ANALYZING_JD, PipelineState.ATTEMPT),
    StateTransition(
        PipelineState.ATTEMPT,
        PipelineState.SCORING,
        condition=lambda r: r.generated_this_attempt,
    ),
    StateTransition(
        PipelineState.ATTEMPT,
        PipelineState.ATTEMPT,
        condition=lambda r: not r.attempts_exhausted,
    ),
    StateTransition(
        PipelineState.ATTEMPT,
        PipelineState.PROCESSING,
        condition=lambda r: r.has_generation,
    ),
    StateTransition(PipelineState.ATTEMPT, PipelineState.FAILED),
    StateTransition(
        PipelineState.SCORING,
        PipelineState.PROCESSING,
        condition=lambda r: r.stop_reason is not None or r.attempts_exhausted,
    ),
    StateTransition(PipelineState.SCORING, PipelineState.ATTEMPT),
    StateTransition(PipelineState.PROCESSING, PipelineState.COMPLETE),
]


def _mentions_section(name: str, text: str) -> bool:
    pattern = r"(?<![A-Za-z])" + re.escape(name).replace(r"\ ", r"\s+") + r"(?![A-Za-z])"
    return re.search(pattern, text, re.IGNORECASE) is not None


def select_sections_to_refine(
    feedback: Iterable[str],
    previous_changed: Iterable[str],
    current_sections: dict[str, str],
    high_value_sections: Iterable[str],
) -> list[str]:
    """
    Choose which sections a refinement attempt should target.

    Preference order: sections named in the feedback (whole-word,
    case-insensitive), then sections changed by the previous attempt, then
    the high-value sections present in the current map.

    Returns:
        Section names in current-map order (may be empty)
    """
    candidates = [name for name in current_sections if name != HEADER_SECTION]
    feedback = [item for item in feedback if item]

    named = [name for name in candidates if any(_mentions_section(name, item) for item in feedback)]
    if named:
        return named

    changed = set(previous_changed)
    recent = [name for name in candidates if name in changed]
    if recent:
        return recent

    return [name for name in high_value_sections if name in current_sections]


def _digest(text: str) -> str:
    return hashlib.sha256(clean_section_content(text).encode()).hexdigest()


class TailoringOrchestrator:
    """
    Runs the tailoring loop for one request at a time per call.

    Up to ``max_attempts`` attempts: the first successful generation rewrites
    the whole resume; later attempts send only the sections the feedback
    points at. Each candidate is scored by both evaluators concurrently, the
    best-scoring attempt is tracked, and the loop stops early when the golden
    rules pass or the combined score clears ``early_stop_score``.
    """

    def __init__(
        self,
        config: "Config",
        gateway: "CompletionGateway",
        progress: ProgressTracker,
        attempt_store: AttemptStore,
        scorer: QualityScorer | None = None,
        golden_checker: GoldenRuleChecker | None = None,
        jd_analyst: JDAnalyst | None = None,
    ):
        """
        Initialize orchestrator.

        Args:
            config: Configuration object (tailoring settings are read from it)
            gateway: Completion gateway for tailoring calls
            progress: Progress tracker written at every state
            attempt_store: Where each recorded attempt is appended
            scorer: ATS/JD scorer (built from config if None)
            golden_checker: Golden-rule checker (built from config if None)
            jd_analyst: JD analyzer (built from config if None)
        """
        self.config = config
        self.settings = config.tailoring
        self.gateway = gateway
        self.progress = progress
        self.attempt_store = attempt_store
        self.scorer = scorer or QualityScorer(gateway, model=self.settings.scoring_model)
        self.golden_checker = golden_checker or GoldenRuleChecker(gateway, model=self.settings.golden_rules_model)
        self.jd_analyst = jd_analyst or JDAnalyst(gateway, model=self.settings.jd_model)
        self.logger = logger.bind(orchestrator="TailoringOrchestrator")

    def run(self, request: TailoringRequest) -> TailoringOutcome:
        """
        Execute the tailoring loop.

        Args:
            request: Resume, job description, mode and target version

        Returns:
            TailoringOutcome with the final text and the best attempt's scores

        Raises:
            ValidationError: If the final document is too short to be real
            OrchestrationError: If no attempt produced a usable generation,
                or a state failed unexpectedly
        """
        run = TailoringRun(request, self.settings.max_attempts)
        log = self.logger.bind(job_id=request.job_id, mode=request.mode.value)
        state = PipelineState.INIT
        log.info("tailoring_started", max_attempts=run.max_attempts, version=request.version)

        while state not in (PipelineState.COMPLETE, PipelineState.FAILED):
            try:
                self._report_progress(state, run)
                self._execute_state(state, run)
                next_state = self._get_next_state(state, run)
            except Exception as e:
                log.exception("state_failed", state=state.name, error=str(e))
                run.error = e
                state = PipelineState.FAILED
                break

            if next_state is None:
                log.error("no_valid_transition", current_state=state.name)
                state = PipelineState.FAILED
                break

            log.debug("state_transition", from_state=state.name, to_state=next_state.name)
            state = next_state

        if state == PipelineState.FAILED:
            if isinstance(run.error, ValidationError):
                raise run.error
            if run.error is not None:
                raise OrchestrationError(f"Tailoring failed: {run.error}") from run.error
            raise OrchestrationError(
                f"No usable generation after {run.attempt_number} attempt(s)"
            )

        log.info(
            "tailoring_finished",
            attempts=len(run.history),
            stop_reason=run.stop_reason or "max_attempts",
            best_combined=run.outcome.best_attempt.combined_score,
            golden_passed=run.outcome.golden_passed,
        )
        return run.outcome

    def _get_next_state(self, current: PipelineState, run: TailoringRun) -> PipelineState | None:
        for transition in TRANSITIONS:
            if transition.from_state == current and transition.condition(run):
                return transition.to_state
        return None

    def _report_progress(self, state: PipelineState, run: TailoringRun) -> None:
        job_id, owner_id = run.request.job_id, run.request.owner_id
        if state == PipelineState.ANALYZING:
            self.progress.enter(job_id, owner_id, TailoringStatus.ANALYZING)
        elif state == PipelineState.ANALYZING_JD:
            self.progress.enter(job_id, owner_id, TailoringStatus.ANALYZING_JD)
        elif state == PipelineState.ATTEMPT:
            k = run.attempt_number + 1
            self.progress.update(
                job_id, owner_id, attempt_status(k), attempt_progress(k, run.max_attempts), current_attempt=k
            )
        elif state == PipelineState.SCORING:
            k = run.attempt_number
            self.progress.update(
                job_id, owner_id, scoring_status(k), scoring_progress(k, run.max_attempts), current_attempt=k
            )
        elif state == PipelineState.PROCESSING:
            self.progress.enter(job_id, owner_id, TailoringStatus.PROCESSING)

    def _execute_state(self, state: PipelineState, run: TailoringRun) -> None:
        if state == PipelineState.INIT:
            if not run.request.resume_text.strip():
                raise ValidationError("Resume text is empty")
            if not run.request.job_description.strip():
                raise ValidationError("Job description is empty")
        elif state == PipelineState.ANALYZING:
            run.original_sections = extract_sections(run.request.resume_text)
            run.current_sections = dict(run.original_sections)
            self.logger.info(
                "sections_extracted",
                job_id=run.request.job_id,
                sections=list(run.original_sections),
            )
        elif state == PipelineState.ANALYZING_JD:
            if self.settings.analyze_job_description:
                with timed_operation("jd_analysis", job_id=run.request.job_id):
                    run.intelligence = self.jd_analyst.analyze(run.request.job_description)
        elif state == PipelineState.ATTEMPT:
            self._run_attempt(run)
        elif state == PipelineState.SCORING:
            self._score_attempt(run)
        elif state == PipelineState.PROCESSING:
            run.outcome = self._finalize(run)

    # ------------------------------------------------------------------
    # Attempts
    # ------------------------------------------------------------------

    def _run_attempt(self, run: TailoringRun) -> None:
        run.attempt_number += 1
        run.candidate_text = None
        log = self.logger.bind(job_id=run.request.job_id, attempt=run.attempt_number)

        targets: list[str] = []
        if run.has_generation:
            last = run.history.last
            targets = select_sections_to_refine(
                run.prior_feedback,
                last.sections_received if last else (),
                run.current_sections,
                self.settings.high_value_sections,
            )

        try:
            with timed_operation("tailoring_attempt", job_id=run.request.job_id, attempt=run.attempt_number):
                if targets:
                    self._refine_sections(run, targets)
                else:
                    self._full_rewrite(run)
        except ResumeTailorError as e:
            # Skipped attempts are neither recorded nor eligible for best
            log.warning("attempt_skipped", error=str(e), error_type=type(e).__name__)
            run.candidate_text = None
            return

        run.has_generation = True
        run.candidate_text = reconstruct_resume_from_sections(run.current_sections)
        log.info(
            "attempt_generated",
            sections_sent=run.sections_sent,
            sections_changed=run.sections_received,
            prompt_chars=run.prompt_chars,
        )

    def _temperature(self, run: TailoringRun) -> float:
        return get_temperature_for_mode(run.request.mode)

    def _full_rewrite(self, run: TailoringRun) -> None:
        """Send the whole document and merge every significantly changed section."""
        request = run.request
        base_text = (
            reconstruct_resume_from_sections(run.current_sections)
            if run.has_generation
            else request.resume_text
        )
        prompt = compile_full_prompt(
            resume_text=base_text,
            job_description=request.job_description,
            mode=request.mode,
            intelligence=run.intelligence,
            prior_feedback=run.prior_feedback,
            version=request.version,
        )
        model = self.settings.tailoring_model
        response = self.gateway.generate(prompt, model, self._temperature(run))
        cleaned = clean_resume_output(response)

        diff = diff_sections(base_text, cleaned, self.settings.significance_threshold)
        changed = []
        for name, entry in diff.items():
            if not entry.after:
                continue
            rewritten = clean_section_content(entry.after)
            run.record_change(name, run.current_sections.get(name, ""), rewritten, FULL_REWRITE_REASON)
            run.current_sections[name] = rewritten
            changed.append(name)

        run.sections_sent = list(extract_sections(base_text))
        run.sections_received = changed
        run.prompt_chars = len(prompt)
        run.prompt_tokens = self.gateway.estimate_tokens(prompt, model)

    def _refine_sections(self, run: TailoringRun, targets: list[str]) -> None:
        """Send only the target sections and merge the ones that really changed."""
        request = run.request
        last = run.history.last
        feedback = []
        if last is not None:
            feedback = [
                point
                for item in (last.ats_feedback, last.jd_feedback, *last.golden_suggestions)
                for point in extract_feedback_points(item)
            ]

        prompt = compile_refinement_prompt(
            sections_to_refine={name: run.current_sections[name] for name in targets},
            feedback=feedback,
            job_description=request.job_description,
            mode=request.mode,
            intelligence=run.intelligence,
            version=request.version,
            golden_rule_feedback=run.golden_feedback,
        )
        model = self.settings.tailoring_model
        response = self.gateway.generate(prompt, model, self._temperature(run), use_cache=False)
        parsed = parse_delimited_sections(response, expected=targets)

        changed = []
        for name, body in parsed.items():
            if name not in targets:
                self.logger.debug("unrequested_section_ignored", job_id=request.job_id, section=name)
                continue
            refined = clean_section_content(body)
            if not refined or _digest(refined) == _digest(run.current_sections[name]):
                continue
            reason = next(
                (point for point in run.prior_feedback if _mentions_section(name, point)),
                REFINEMENT_REASON,
            )
            run.record_change(name, run.current_sections[name], refined, reason)
            run.current_sections[name] = refined
            changed.append(name)

        run.sections_sent = list(targets)
        run.sections_received = changed
        run.prompt_chars = len(prompt)
        run.prompt_tokens = self.gateway.estimate_tokens(prompt, model)

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def _evaluate(self, run: TailoringRun, candidate: str):
        """Run both evaluators concurrently on one candidate."""
        request = run.request
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="evaluator") as executor:
            score_future = executor.submit(
                self.scorer.score, request.resume_text, candidate, request.job_description
            )
            golden_future = executor.submit(
                self.golden_checker.check, candidate, request.job_description
            )
            return score_future.result(), golden_future.result()

    def _score_attempt(self, run: TailoringRun) -> None:
        with timed_operation("scoring", job_id=run.request.job_id, attempt=run.attempt_number):
            scores, golden = self._evaluate(run, run.candidate_text)

        attempt = TailoringAttempt(
            attempt_number=run.attempt_number,
            ats_score=scores.ats_score,
            jd_score=scores.jd_score,
            golden_passed=golden.passed,
            ats_feedback=scores.ats_feedback,
            jd_feedback=scores.jd_feedback,
            golden_feedback=tuple(golden.feedback),
            golden_suggestions=tuple(golden.suggestions),
            sections_sent=tuple(run.sections_sent),
            sections_received=tuple(run.sections_received),
            prompt_chars=run.prompt_chars,
            prompt_tokens=run.prompt_tokens,
        )
        self.attempt_store.append(run.request.attempt_log_id, attempt)
        is_best = run.history.record(attempt)

        run.prior_feedback = [
            point for item in attempt.feedback_text() for point in extract_feedback_points(item)
        ]
        run.golden_feedback = list(golden.feedback)

        if golden.passed:
            run.stop_reason = "golden_rules_passed"
        elif attempt.combined_score > self.settings.early_stop_score:
            run.stop_reason = "score_threshold"

        self.logger.info(
            "attempt_scored",
            job_id=run.request.job_id,
            attempt=attempt.attempt_number,
            ats_score=attempt.ats_score,
            jd_score=attempt.jd_score,
            combined=attempt.combined_score,
            golden_passed=attempt.golden_passed,
            new_best=is_best,
            stop_reason=run.stop_reason,
        )

    # ------------------------------------------------------------------
    # Final merge
    # ------------------------------------------------------------------

    def _finalize(self, run: TailoringRun) -> TailoringOutcome:
        request = run.request
        for name, body in run.original_sections.items():
            if name not in run.current_sections:
                self.logger.warning("section_reinstated", job_id=request.job_id, section=name)
                run.current_sections[name] = clean_section_content(body)

        final_text = clean_section_content(reconstruct_resume_from_sections(run.current_sections))
        if len(final_text.strip()) < self.settings.min_result_length:
            raise ValidationError(
                f"Final resume too short ({len(final_text.strip())} < {self.settings.min_result_length} characters)"
            )

        final_golden: GoldenRuleResult = self.golden_checker.check(final_text, request.job_description)

        warnings = [
            issue
            for issue in validate_final_resume(final_text, self.settings.min_result_length)
            if not issue.startswith("Resume is too short")
        ]
        warnings.extend(validate_ats_safe_resume(final_text))
        if warnings:
            self.logger.warning("final_resume_warnings", job_id=request.job_id, warnings=warnings)

        final_diff = diff_sections(request.resume_text, final_text, self.settings.significance_threshold)
        modified_sections = [name for name, entry in final_diff.items() if entry.after]

        return TailoringOutcome(
            final_text=final_text,
            best_attempt=run.history.best,
            attempts=list(run.history.attempts),
            golden_passed=final_golden.passed,
            modified_sections=modified_sections,
            section_history=list(run.section_history),
            version=request.version,
            mode=request.mode,
            warnings=warnings,
        )
