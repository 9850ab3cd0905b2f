"""
Topic Sequencer.

Translates a Run's topic pointer into catalog topics and display
projections. Thresholds come from the ProgressionEngine so the progress
bar always agrees with the actual promotion rule.

Difficulty is chosen by a pluggable banding policy (Topic → Difficulty).
"""
from __future__ import annotations

from typing import Literal, Protocol

from automode.autorun.models import (
    CurriculumProgress,
    Difficulty,
    ModuleNavigation,
    NavigationItem,
    QuestionRequest,
    Run,
    TopicProgress,
)
from automode.autorun.progression import ProgressionEngine
from automode.curriculum import CurriculumCatalog, Topic
from automode.errors import OutOfRangeError


# =============================================================================
# Difficulty Policies
# =============================================================================


class DifficultyPolicy(Protocol):
    def __call__(self, topic: Topic) -> Difficulty: ...


class ModuleBandingPolicy:
    """
    Band difficulty by a topic's position inside its module.

    The first third of a module's topics are beginner, the middle third
    intermediate and the last third advanced. Single-topic modules are
    beginner.
    """

    def __call__(self, topic: Topic) -> Difficulty:
        if topic.module_size <= 1:
            return Difficulty.BEGINNER
        fraction = topic.module_position / topic.module_size
        if fraction < 1 / 3:
            return Difficulty.BEGINNER
        if fraction < 2 / 3:
            return Difficulty.INTERMEDIATE
        return Difficulty.ADVANCED


class FixedDifficultyPolicy:
    """Serve every topic at the same difficulty."""

    def __init__(self, difficulty: Difficulty):
        self.difficulty = Difficulty(difficulty)

    def __call__(self, topic: Topic) -> Difficulty:
        return self.difficulty


def get_difficulty_policy(name: str) -> DifficultyPolicy:
    """Resolve a policy from its configuration name."""
    if name == "module":
        return ModuleBandingPolicy()
    try:
        return FixedDifficultyPolicy(Difficulty(name))
    except ValueError:
        raise ValueError(f"Unknown difficulty policy: {name!r}") from None


# =============================================================================
# Sequencer
# =============================================================================


class TopicSequencer:
    """Map run positions onto the curriculum."""

    def __init__(
        self,
        catalog: CurriculumCatalog,
        engine: ProgressionEngine,
        difficulty_policy: DifficultyPolicy | None = None,
    ):
        if engine.terminal_index != len(catalog):
            raise ValueError("ProgressionEngine and catalog disagree on curriculum length")
        self.catalog = catalog
        self.engine = engine
        self.difficulty_policy = difficulty_policy or ModuleBandingPolicy()

    def current_topic(self, run: Run) -> Topic:
        """
        Topic currently served.

        Completed runs keep practising the last topic.

        Raises:
            OutOfRangeError: If the pointer is negative
        """
        if run.topic_pointer < 0:
            raise OutOfRangeError(
                f"Run {run.save_id} has negative topic pointer {run.topic_pointer}"
            )
        index = min(run.topic_pointer, len(self.catalog) - 1)
        return self.catalog.topic_at(index)

    def next_topic(self, run: Run) -> Topic | None:
        """Topic served after the next promotion, or None at the end."""
        if run.is_completed:
            return None
        position = run.topic_pointer + 1
        if position >= len(self.catalog):
            return None
        return self.catalog.topic_at(position)

    def upcoming_topics(self, run: Run, count: int = 3) -> list[Topic]:
        """Preview of the next `count` topics after the current one."""
        if run.is_completed:
            return []
        start = run.topic_pointer + 1
        end = min(start + count, len(self.catalog))
        return [self.catalog.topic_at(i) for i in range(start, end)]

    def topic_progress(self, run: Run) -> TopicProgress:
        """
        Streak progress toward the promotion threshold in effect.

        The shown streak is capped one below the threshold: a streak at or
        above it (possible right after a toggle lowers the threshold) still
        needs one more correct answer to promote.
        """
        threshold = self.engine.threshold_for(run)
        current = min(run.streak, threshold - 1)
        return TopicProgress(
            current=current,
            total=threshold,
            percent=round(100 * current / threshold),
        )

    def curriculum_progress(self, run: Run) -> CurriculumProgress:
        total = len(self.catalog)
        done = min(run.topic_pointer, total)
        return CurriculumProgress(
            completed_topics=done,
            total_topics=total,
            percent=round(100 * done / total),
        )

    def difficulty_for(self, run: Run) -> Difficulty:
        return self.difficulty_policy(self.current_topic(run))

    def question_request(self, run: Run) -> QuestionRequest:
        topic = self.current_topic(run)
        return QuestionRequest(topic=topic, difficulty=self.difficulty_policy(topic))

    def module_navigation(self, run: Run) -> list[ModuleNavigation]:
        """Topics of the current module and of the next one, with their status."""
        current = self.current_topic(run)
        modules = self.catalog.modules()
        index = next(i for i, m in enumerate(modules) if m.id == current.module_id)

        sections = [("Current module", modules[index])]
        if index + 1 < len(modules):
            sections.append(("Next module", modules[index + 1]))

        return [
            ModuleNavigation(
                title=title,
                module=module,
                items=tuple(
                    NavigationItem(topic=t, status=self._navigation_status(run, t))
                    for t in module.topics
                ),
            )
            for title, module in sections
        ]

    @staticmethod
    def _navigation_status(run: Run, topic: Topic) -> Literal["completed", "current", "upcoming"]:
        if topic.position < run.topic_pointer:
            return "completed"
        if topic.position == run.topic_pointer:
            return "current"
        return "upcoming"
