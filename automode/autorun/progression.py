"""
Progression Engine.

Pure state transitions for an Auto Run:
- Streak tracking and promotion to the next topic
- Completion once the pointer walks past the last topic
- Toggle changes, renames, jumps, module skips and slow-downs

No I/O happens here. Callers pass `now` explicitly where a timestamp is
recorded; the run store stamps `last_updated_at` on every save anyway.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace

from loguru import logger

from automode.autorun.models import (
    Outcome,
    Run,
    RunStatus,
    RunToggle,
    TopicStats,
    now_ms,
)
from automode.errors import OutOfRangeError


@dataclass(frozen=True)
class ProgressionRules:
    """Promotion thresholds (consecutive correct answers on one topic)."""

    streak_to_promote: int = 3
    aggressive_streak_to_promote: int = 2

    def __post_init__(self):
        if self.streak_to_promote < 1 or self.aggressive_streak_to_promote < 1:
            raise ValueError("Promotion thresholds must be at least 1")


DEFAULT_RULES = ProgressionRules()


class ProgressionEngine:
    """
    Compute the next Run from an attempt outcome.

    The engine knows the flattened curriculum only as a sequence of topic ids
    and their owning module ids. That is enough to detect completion, key
    per-topic stats and find module boundaries for skips.
    """

    def __init__(
        self,
        topic_ids: Sequence[str],
        rules: ProgressionRules = DEFAULT_RULES,
        module_ids: Sequence[str] | None = None,
    ):
        if not topic_ids:
            raise ValueError("ProgressionEngine needs at least one topic")
        if module_ids is None:
            module_ids = [""] * len(topic_ids)
        if len(module_ids) != len(topic_ids):
            raise ValueError("module_ids must name one module per topic")
        self._topic_ids = tuple(topic_ids)
        self._module_ids = tuple(module_ids)
        self.rules = rules

    @property
    def terminal_index(self) -> int:
        """Pointer value of a completed run."""
        return len(self._topic_ids)

    def threshold_for(self, run: Run) -> int:
        """Streak needed to promote, given the run's progression toggle."""
        if run.aggressive_progression:
            return self.rules.aggressive_streak_to_promote
        return self.rules.streak_to_promote

    def advance(self, run: Run, outcome: Outcome, now: int | None = None) -> Run:
        """
        Apply one attempt outcome.

        Args:
            run: Current run state
            outcome: Correct or incorrect
            now: Timestamp recorded in the topic stats (defaults to wall clock)

        Returns:
            The updated Run (the input is never modified)
        """
        now = now if now is not None else now_ms()
        pointer = run.topic_pointer
        streak = run.streak
        stats = self._bump_stats(run, outcome, now)

        if outcome is Outcome.CORRECT:
            streak += 1
            # Completed runs are free practice: the pointer stays frozen
            if not run.is_completed and streak >= self.threshold_for(run):
                pointer += 1
                streak = 0
                logger.info(
                    f"Run {run.save_id}: promoted to topic {pointer} "
                    f"after {self.threshold_for(run)} correct"
                )
        elif outcome is Outcome.INCORRECT:
            # Remediation is implied: the reset streak keeps the learner on this topic
            streak = 0
        else:
            raise ValueError(f"Unsupported outcome: {outcome!r}")

        if run.is_completed:
            streak = 0

        status = self._status_for(pointer)
        if status is RunStatus.COMPLETED and not run.is_completed:
            logger.info(f"Run {run.save_id}: curriculum completed")

        return replace(
            run,
            topic_pointer=pointer,
            streak=streak,
            completed_questions=run.completed_questions + 1,
            status=status,
            topic_stats=stats,
        )

    def set_toggle(self, run: Run, toggle: RunToggle, value: bool, now: int | None = None) -> Run:
        """Set a progression toggle and refresh last_updated_at."""
        now = now if now is not None else now_ms()
        toggle = RunToggle(toggle)
        logger.debug(f"Run {run.save_id}: {toggle.value} -> {value}")
        return replace(
            run,
            **{toggle.value: bool(value)},
            last_updated_at=max(now, run.last_updated_at),
        )

    def jump_to(self, run: Run, position: int, now: int | None = None) -> Run:
        """
        Move the pointer to a chosen topic.

        The streak is reset because it belongs to the topic being left.
        completed_questions is untouched.

        Raises:
            OutOfRangeError: If position is not a valid topic index
        """
        if not 0 <= position < self.terminal_index:
            raise OutOfRangeError(
                f"Topic position {position} outside curriculum of {self.terminal_index} topics"
            )
        now = now if now is not None else now_ms()
        return replace(
            run,
            topic_pointer=position,
            streak=0,
            status=RunStatus.ACTIVE,
            last_updated_at=max(now, run.last_updated_at),
        )

    def next_module_start(self, position: int) -> int | None:
        """First position after `position` that belongs to a different module."""
        index = min(position, self.terminal_index - 1)
        module_id = self._module_ids[index]
        for candidate in range(index + 1, self.terminal_index):
            if self._module_ids[candidate] != module_id:
                return candidate
        return None

    def skip_module(self, run: Run, now: int | None = None) -> Run:
        """
        Leave the current module for the first topic of the next one.

        A skip is neutral: it is not an attempt, so completed_questions and
        topic stats are untouched. The streak starts over on the new topic.

        Raises:
            OutOfRangeError: If the run is completed or already in the last module
        """
        if run.is_completed:
            raise OutOfRangeError(f"Run {run.save_id} is completed; nothing left to skip")
        target = self.next_module_start(self._served_index(run))
        if target is None:
            raise OutOfRangeError(f"Run {run.save_id} is already in the last module")

        now = now if now is not None else now_ms()
        logger.info(f"Run {run.save_id}: skipped from topic {run.topic_pointer} to {target}")
        return replace(
            run,
            topic_pointer=target,
            streak=0,
            status=RunStatus.ACTIVE,
            last_updated_at=max(now, run.last_updated_at),
        )

    def slow_down(self, run: Run, now: int | None = None) -> Run:
        """Reset the streak and switch aggressive progression off."""
        now = now if now is not None else now_ms()
        logger.debug(f"Run {run.save_id}: slowing down")
        return replace(
            run,
            streak=0,
            aggressive_progression=False,
            last_updated_at=max(now, run.last_updated_at),
        )

    def rename(self, run: Run, name: str, now: int | None = None) -> Run:
        name = name.strip()
        if not name:
            raise ValueError("Run name cannot be empty")
        now = now if now is not None else now_ms()
        return replace(run, name=name, last_updated_at=max(now, run.last_updated_at))

    # =========================================================================
    # Helpers
    # =========================================================================

    def _status_for(self, pointer: int) -> RunStatus:
        if pointer >= self.terminal_index:
            return RunStatus.COMPLETED
        return RunStatus.ACTIVE

    def _served_index(self, run: Run) -> int:
        if run.topic_pointer < 0:
            raise OutOfRangeError(f"Run {run.save_id} has negative topic pointer {run.topic_pointer}")
        # Free practice after completion is served from the last topic
        return min(run.topic_pointer, self.terminal_index - 1)

    def _served_topic_id(self, run: Run) -> str:
        return self._topic_ids[self._served_index(run)]

    def _bump_stats(self, run: Run, outcome: Outcome, now: int) -> dict[str, TopicStats]:
        topic_id = self._served_topic_id(run)
        current = run.topic_stats.get(topic_id, TopicStats())
        stats = dict(run.topic_stats)
        stats[topic_id] = TopicStats(
            attempts=current.attempts + 1,
            solved=current.solved + (1 if outcome is Outcome.CORRECT else 0),
            last_attempt_at=now,
        )
        return stats
