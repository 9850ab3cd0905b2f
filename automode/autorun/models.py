"""
Auto Run domain types.

A Run is an immutable value: the progression engine returns a new Run for
every change and the store persists it. Timestamps are integer epoch
milliseconds.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Literal

from automode.curriculum.models import Difficulty, Module, Topic

__all__ = [
    "AdaptiveAnalytics",
    "CurriculumProgress",
    "Difficulty",
    "ModuleNavigation",
    "NavigationItem",
    "Outcome",
    "QuestionRequest",
    "Run",
    "RunStatus",
    "RunSummary",
    "RunToggle",
    "TopicProgress",
    "TopicStats",
    "new_run",
    "now_ms",
]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


# =============================================================================
# Enums
# =============================================================================


class Outcome(str, Enum):
    """Result of one attempt. New variants must be handled by ProgressionEngine.advance."""

    CORRECT = "correct"
    INCORRECT = "incorrect"


class RunStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class RunToggle(str, Enum):
    """User-facing switches that only set_toggle may change."""

    AGGRESSIVE_PROGRESSION = "aggressive_progression"
    REMEDIATION_MODE = "remediation_mode"


# =============================================================================
# Run State
# =============================================================================


@dataclass(frozen=True)
class TopicStats:
    """Attempt counters for one topic within a run."""

    attempts: int = 0
    solved: int = 0
    last_attempt_at: int | None = None

    @property
    def accuracy(self) -> float:
        if self.attempts == 0:
            return 0.0
        return self.solved / self.attempts


@dataclass(frozen=True)
class Run:
    """One learner's progress through the curriculum, owned by a save slot."""

    save_id: str
    name: str
    created_at: int
    last_updated_at: int
    topic_pointer: int = 0
    streak: int = 0  # consecutive correct answers on the current topic
    completed_questions: int = 0
    aggressive_progression: bool = False
    remediation_mode: bool = True
    status: RunStatus = RunStatus.ACTIVE
    topic_stats: dict[str, TopicStats] = field(default_factory=dict)

    @property
    def is_completed(self) -> bool:
        return self.status is RunStatus.COMPLETED

    @property
    def solved_questions(self) -> int:
        return sum(s.solved for s in self.topic_stats.values())


@dataclass(frozen=True)
class RunSummary:
    """Lightweight listing entry for a save slot."""

    save_id: str
    name: str
    topic_pointer: int
    completed_questions: int
    status: RunStatus
    last_updated_at: int

    @classmethod
    def from_run(cls, run: Run) -> RunSummary:
        return cls(
            save_id=run.save_id,
            name=run.name,
            topic_pointer=run.topic_pointer,
            completed_questions=run.completed_questions,
            status=run.status,
            last_updated_at=run.last_updated_at,
        )


def new_run(
    save_id: str,
    name: str | None = None,
    aggressive_progression: bool = False,
    remediation_mode: bool = True,
    now: int | None = None,
) -> Run:
    """Create a fresh run at the start of the curriculum."""
    now = now if now is not None else now_ms()
    display_name = (name or "").strip() or f"Run {datetime.fromtimestamp(now / 1000):%Y-%m-%d}"
    return Run(
        save_id=save_id,
        name=display_name,
        created_at=now,
        last_updated_at=now,
        aggressive_progression=aggressive_progression,
        remediation_mode=remediation_mode,
    )


# =============================================================================
# Projections
# =============================================================================


@dataclass(frozen=True)
class QuestionRequest:
    """What to ask next: a catalog topic at a difficulty."""

    topic: Topic
    difficulty: Difficulty


@dataclass(frozen=True)
class TopicProgress:
    """Streak progress toward promotion on the current topic."""

    current: int
    total: int
    percent: int


@dataclass(frozen=True)
class CurriculumProgress:
    """Topics promoted past, out of the whole curriculum."""

    completed_topics: int
    total_topics: int
    percent: int


@dataclass(frozen=True)
class AdaptiveAnalytics:
    """Lifetime counters across all runs in a store."""

    promotions: int = 0
    streak_resets: int = 0
    remediations_triggered: int = 0
    completions: int = 0
    jumps: int = 0
    skips: int = 0


@dataclass(frozen=True)
class NavigationItem:
    """One topic in the module navigator, relative to the run's pointer."""

    topic: Topic
    status: Literal["completed", "current", "upcoming"]


@dataclass(frozen=True)
class ModuleNavigation:
    title: str
    module: Module
    items: tuple[NavigationItem, ...]
