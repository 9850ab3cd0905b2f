"""
Question Generation: Deterministic practice prompts.

The orchestrator only depends on the QuestionGenerator protocol. Two
implementations live here:

- TemplateQuestionGenerator: difficulty-keyed templates, no external calls.
  Same (topic, difficulty) always produces the same question.
- SafeQuestionGenerator: wraps any generator and turns failures into a
  deterministic placeholder, so serving a question never raises.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Protocol

from loguru import logger

from automode.curriculum import Difficulty, Topic

QuestionSource = Literal["template", "placeholder"]


@dataclass(frozen=True)
class QuestionContent:
    """
    A practice question ready to display.

    Attributes:
        topic_id: Catalog topic the question exercises
        difficulty: Difficulty it was generated for
        title: Short heading
        prompt: Problem statement
        hints: Optional progressive hints
        source: Which generator produced it
    """

    topic_id: str
    difficulty: Difficulty
    title: str
    prompt: str
    hints: tuple[str, ...] = field(default_factory=tuple)
    source: QuestionSource = "template"


class QuestionGenerator(Protocol):
    def generate(self, topic: Topic, difficulty: Difficulty) -> QuestionContent: ...


# =============================================================================
# Templates
# =============================================================================

_PROMPTS: dict[Difficulty, str] = {
    Difficulty.BEGINNER: (
        "Write a Python function that solves a small '{name}' problem from {subtopic}. "
        "Keep the input tiny and focus on a correct, readable solution."
    ),
    Difficulty.INTERMEDIATE: (
        "Implement '{name}' ({subtopic}) for inputs of up to 10^4 elements. "
        "Handle empty and single-element inputs, and state the time complexity."
    ),
    Difficulty.ADVANCED: (
        "Solve '{name}' ({module} › {subtopic}) for inputs of up to 10^6 elements "
        "in optimal time and space. Justify why no asymptotically faster approach exists."
    ),
}

_HINTS: dict[Difficulty, tuple[str, ...]] = {
    Difficulty.BEGINNER: (
        "Start from a brute-force version and make it correct first.",
        "Trace your function by hand on a two-element example.",
    ),
    Difficulty.INTERMEDIATE: (
        "Think about which data structure gives O(1) lookups.",
    ),
    Difficulty.ADVANCED: (),
}


class TemplateQuestionGenerator:
    """Build questions from fixed templates (no LLM, no randomness)."""

    def generate(self, topic: Topic, difficulty: Difficulty) -> QuestionContent:
        difficulty = Difficulty(difficulty)
        prompt = _PROMPTS[difficulty].format(
            name=topic.name,
            subtopic=topic.subtopic_name,
            module=topic.module_name,
        )
        return QuestionContent(
            topic_id=topic.id,
            difficulty=difficulty,
            title=f"{topic.name} ({difficulty.value.title()})",
            prompt=prompt,
            hints=_HINTS[difficulty],
            source="template",
        )


def placeholder_question(topic: Topic, difficulty: Difficulty) -> QuestionContent:
    """Deterministic fallback when generation fails."""
    return QuestionContent(
        topic_id=topic.id,
        difficulty=Difficulty(difficulty),
        title=topic.name,
        prompt=(
            f"Practice '{topic.name}' from {topic.subtopic_name}: write a function, "
            "then test it on three inputs of your own."
        ),
        source="placeholder",
    )


class SafeQuestionGenerator:
    """Best-effort wrapper: never raises, falls back to a placeholder."""

    def __init__(self, inner: QuestionGenerator):
        self.inner = inner

    def generate(self, topic: Topic, difficulty: Difficulty) -> QuestionContent:
        try:
            return self.inner.generate(topic, difficulty)
        except Exception as e:
            logger.warning(f"Question generation failed for {topic.id} ({difficulty}): {e}")
            return placeholder_question(topic, difficulty)
