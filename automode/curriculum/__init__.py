"""Curriculum catalog: modules → subtopics → problem types."""

from .catalog import BUNDLED_CURRICULUM, CurriculumCatalog
from .models import Difficulty, Module, Topic

__all__ = [
    "BUNDLED_CURRICULUM",
    "CurriculumCatalog",
    "Difficulty",
    "Module",
    "Topic",
]
