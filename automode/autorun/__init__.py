"""Auto Mode run engine: persisted adaptive practice runs."""

from .models import (
    AdaptiveAnalytics,
    CurriculumProgress,
    Difficulty,
    ModuleNavigation,
    NavigationItem,
    Outcome,
    QuestionRequest,
    Run,
    RunStatus,
    RunSummary,
    RunToggle,
    TopicProgress,
    TopicStats,
    new_run,
)
from .orchestrator import AdaptiveOrchestrator, Question, RunStatusView
from .progression import DEFAULT_RULES, ProgressionEngine, ProgressionRules
from .sequencer import (
    FixedDifficultyPolicy,
    ModuleBandingPolicy,
    TopicSequencer,
    get_difficulty_policy,
)
from .store import RunStore

__all__ = [
    "AdaptiveAnalytics",
    "AdaptiveOrchestrator",
    "CurriculumProgress",
    "DEFAULT_RULES",
    "Difficulty",
    "FixedDifficultyPolicy",
    "ModuleBandingPolicy",
    "ModuleNavigation",
    "NavigationItem",
    "Outcome",
    "ProgressionEngine",
    "ProgressionRules",
    "Question",
    "QuestionRequest",
    "Run",
    "RunStatus",
    "RunStatusView",
    "RunStore",
    "RunSummary",
    "RunToggle",
    "TopicProgress",
    "TopicSequencer",
    "TopicStats",
    "get_difficulty_policy",
    "new_run",
]
