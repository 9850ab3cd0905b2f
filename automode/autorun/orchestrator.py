"""
Adaptive Orchestrator: the Auto Mode run engine.

Composes the run store, progression engine, topic sequencer and question
generator. It is the only layer that performs I/O; callers never mutate a
Run directly and always pass back the Run most recently returned for that
slot.

Architecture:
- State/Persistence -> automode.autorun.store
- Decisions -> automode.autorun.progression
- Curriculum position -> automode.autorun.sequencer
- Question content -> automode.generation
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace

from loguru import logger

from automode.autorun.models import (
    AdaptiveAnalytics,
    CurriculumProgress,
    Difficulty,
    ModuleNavigation,
    Outcome,
    QuestionRequest,
    Run,
    RunStatus,
    RunSummary,
    RunToggle,
    TopicProgress,
    new_run,
    now_ms,
)
from automode.autorun.progression import ProgressionEngine, ProgressionRules
from automode.autorun.schema import SchemaError, dump_envelope, parse_envelope
from automode.autorun.sequencer import TopicSequencer, get_difficulty_policy
from automode.autorun.store import RunStore, validate_save_id
from automode.config import Settings, get_settings
from automode.curriculum import CurriculumCatalog, Topic
from automode.errors import RunCorruptedError, RunImportError, RunNotFoundError
from automode.generation import (
    QuestionContent,
    QuestionGenerator,
    SafeQuestionGenerator,
    TemplateQuestionGenerator,
)


@dataclass(frozen=True)
class Question:
    """A served question: where it sits in the curriculum plus its content."""

    request: QuestionRequest
    content: QuestionContent


@dataclass(frozen=True)
class RunStatusView:
    """Everything a dashboard needs to render one run."""

    run: Run
    current_topic: Topic
    next_topic: Topic | None
    difficulty: Difficulty
    topic_progress: TopicProgress
    curriculum_progress: CurriculumProgress


class AdaptiveOrchestrator:
    """
    Façade over one run store.

    Usage:
        orchestrator = AdaptiveOrchestrator.from_settings()
        run = orchestrator.start_or_resume_run("default")
        question = orchestrator.next_question(run)
        run = orchestrator.record_outcome(run, Outcome.CORRECT)
    """

    def __init__(
        self,
        store: RunStore,
        sequencer: TopicSequencer,
        generator: QuestionGenerator | None = None,
        settings: Settings | None = None,
    ):
        self.store = store
        self.sequencer = sequencer
        self.engine = sequencer.engine
        self.catalog = sequencer.catalog
        self.generator = SafeQuestionGenerator(generator or TemplateQuestionGenerator())
        self.settings = settings or get_settings()

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        generator: QuestionGenerator | None = None,
    ) -> AdaptiveOrchestrator:
        """Wire a fully configured orchestrator from application settings."""
        settings = settings or get_settings()
        catalog = CurriculumCatalog.load(settings.curriculum_path)
        engine = ProgressionEngine(
            catalog.topic_ids(),
            ProgressionRules(**settings.get_progression_config()),
            module_ids=catalog.module_ids(),
        )
        sequencer = TopicSequencer(
            catalog, engine, get_difficulty_policy(settings.difficulty_policy)
        )
        return cls(RunStore(settings.data_dir), sequencer, generator, settings)

    # =========================================================================
    # Run Lifecycle
    # =========================================================================

    def load_run(self, save_id: str) -> Run:
        """
        Load a stored run and check it against the current curriculum.

        A run sitting on the terminal pointer but stored as active (version 1
        records had no status) is marked completed and written back.

        Raises:
            RunNotFoundError: If the slot is empty, unreadable or inconsistent
        """
        run = self.store.load(save_id)
        problem = self._catalog_mismatch(run.topic_pointer, run.status)
        if problem:
            logger.warning(f"Discarding save slot {save_id}: {problem}")
            self.store.delete(save_id)
            raise RunCorruptedError(save_id, problem)

        reconciled = self._reconcile_status(run)
        if reconciled is not run:
            logger.info(f"Run {save_id}: stored as active at the end of the curriculum, marking completed")
            reconciled = self.store.save(reconciled)
        return reconciled

    def start_or_resume_run(self, save_id: str, name: str | None = None) -> Run:
        """Resume the run in a slot, or create and persist a fresh one."""
        try:
            run = self.load_run(save_id)
            logger.debug(f"Resumed run {save_id} at topic {run.topic_pointer}")
            return run
        except RunNotFoundError as e:
            logger.info(f"Starting fresh run in slot {save_id} ({e.reason})")

        run = new_run(
            validate_save_id(save_id),
            name=name,
            aggressive_progression=self.settings.default_aggressive_progression,
            remediation_mode=self.settings.default_remediation_mode,
        )
        return self.store.save(run)

    def list_runs(self) -> list[RunSummary]:
        """Stored runs that fit the current curriculum, most recent first."""
        return [
            s for s in self.store.list()
            if not self._catalog_mismatch(s.topic_pointer, s.status)
        ]

    def delete_run(self, save_id: str) -> bool:
        return self.store.delete(save_id)

    def rename_run(self, run: Run, name: str) -> Run:
        return self.store.save(self.engine.rename(run, name))

    # =========================================================================
    # Question Serving
    # =========================================================================

    def next_question_request(self, run: Run) -> QuestionRequest:
        """Topic and difficulty to serve next."""
        return self.sequencer.question_request(run)

    def next_question(self, run: Run) -> Question:
        """Resolve the next request and generate its content (never fails on generation)."""
        request = self.next_question_request(run)
        content = self.generator.generate(request.topic, request.difficulty)
        return Question(request=request, content=content)

    # =========================================================================
    # Mutations
    # =========================================================================

    def record_outcome(self, run: Run, outcome: Outcome) -> Run:
        """Advance the run with an attempt outcome and persist it."""
        outcome = Outcome(outcome)
        updated = self.engine.advance(run, outcome)
        saved = self.store.save(updated)
        self._track(run, saved, outcome)
        return saved

    def set_toggle(self, run: Run, toggle: RunToggle, enabled: bool) -> Run:
        return self.store.save(self.engine.set_toggle(run, toggle, enabled))

    def set_aggressive_progression(self, run: Run, enabled: bool) -> Run:
        return self.set_toggle(run, RunToggle.AGGRESSIVE_PROGRESSION, enabled)

    def set_remediation_mode(self, run: Run, enabled: bool) -> Run:
        return self.set_toggle(run, RunToggle.REMEDIATION_MODE, enabled)

    def jump_to_topic(self, run: Run, topic_id: str) -> Run:
        """
        Move the run to a chosen topic (user-initiated jump).

        Raises:
            TopicNotFoundError: If the topic is not in the curriculum
        """
        topic = self.catalog.get_topic(topic_id)
        updated = self.store.save(self.engine.jump_to(run, topic.position))
        self._record_analytics(jumps=1)
        logger.info(f"Run {run.save_id}: jumped to '{topic.id}' (position {topic.position})")
        return updated

    def skip_module(self, run: Run) -> Run:
        """
        Skip ahead to the first topic of the next module.

        Raises:
            OutOfRangeError: If there is no later module to skip to
        """
        updated = self.store.save(self.engine.skip_module(run))
        self._record_analytics(skips=1)
        return updated

    def slow_down(self, run: Run) -> Run:
        """Reset the streak and switch aggressive progression off."""
        return self.store.save(self.engine.slow_down(run))

    # =========================================================================
    # Views
    # =========================================================================

    def module_navigation(self, run: Run) -> list[ModuleNavigation]:
        return self.sequencer.module_navigation(run)

    def status(self, run: Run) -> RunStatusView:
        return RunStatusView(
            run=run,
            current_topic=self.sequencer.current_topic(run),
            next_topic=self.sequencer.next_topic(run),
            difficulty=self.sequencer.difficulty_for(run),
            topic_progress=self.sequencer.topic_progress(run),
            curriculum_progress=self.sequencer.curriculum_progress(run),
        )

    def analytics(self) -> AdaptiveAnalytics:
        return self.store.load_analytics()

    # =========================================================================
    # Export / Import
    # =========================================================================

    def export_run(self, run: Run) -> str:
        """Serialize a run to a portable JSON document."""
        return json.dumps(dump_envelope(run), indent=2)

    def import_run(self, payload: str, save_id: str | None = None) -> Run:
        """
        Import an exported run into a slot.

        If the target slot is taken, the run is stored under
        '<id>-imported-<timestamp>' and its name gets an "(Imported)" suffix.

        Raises:
            RunImportError: If the payload is not a valid exported run
        """
        try:
            run = parse_envelope(json.loads(payload))
        except (ValueError, SchemaError) as e:
            raise RunImportError(f"Invalid run export: {e}") from e

        problem = self._catalog_mismatch(run.topic_pointer, run.status)
        if problem:
            raise RunImportError(f"Run does not fit the current curriculum: {problem}")

        target = validate_save_id(save_id or run.save_id)
        name = run.name
        if self.store.exists(target):
            target = validate_save_id(f"{target[:40]}-imported-{now_ms()}")
            name = f"{run.name} (Imported)"

        imported = self.store.save(
            replace(self._reconcile_status(run), save_id=target, name=name)
        )
        logger.info(f"Imported run '{run.save_id}' into slot {target}")
        return imported

    # =========================================================================
    # Helpers
    # =========================================================================

    def _catalog_mismatch(self, topic_pointer: int, status: RunStatus) -> str | None:
        terminal = self.engine.terminal_index
        if topic_pointer > terminal:
            return f"topic pointer {topic_pointer} beyond curriculum of {terminal} topics"
        if status is RunStatus.COMPLETED and topic_pointer < terminal:
            return f"status 'completed' contradicts topic pointer {topic_pointer}"
        return None

    def _reconcile_status(self, run: Run) -> Run:
        if run.topic_pointer == self.engine.terminal_index and not run.is_completed:
            return replace(run, status=RunStatus.COMPLETED, streak=0)
        return run

    def _record_analytics(self, **deltas: int) -> None:
        # The run is already saved; a failed counter write must not undo that
        try:
            self.store.record_analytics(**deltas)
        except OSError as e:
            logger.warning(f"Could not update analytics {sorted(k for k, v in deltas.items() if v)}: {e}")

    def _track(self, before: Run, after: Run, outcome: Outcome) -> None:
        promoted = after.topic_pointer > before.topic_pointer
        reset = outcome is Outcome.INCORRECT and before.streak > 0
        remediated = outcome is Outcome.INCORRECT and before.remediation_mode and not before.is_completed
        completed = after.is_completed and not before.is_completed
        self._record_analytics(
            promotions=int(promoted),
            streak_resets=int(reset),
            remediations_triggered=int(remediated),
            completions=int(completed),
        )
