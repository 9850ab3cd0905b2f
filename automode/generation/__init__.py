"""Question content generation."""

from .questions import (
    QuestionContent,
    QuestionGenerator,
    SafeQuestionGenerator,
    TemplateQuestionGenerator,
    placeholder_question,
)

__all__ = [
    "QuestionContent",
    "QuestionGenerator",
    "SafeQuestionGenerator",
    "TemplateQuestionGenerator",
    "placeholder_question",
]
