"""Data models for the curriculum catalog."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


# =============================================================================
# File schema (validated on load)
# =============================================================================


class ProblemTypeEntry(BaseModel):
    """A problem archetype as written in curriculum.json."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = ""


class SubtopicEntry(BaseModel):
    """A subtopic as written in curriculum.json."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    section_number: str | None = Field(default=None, alias="sectionNumber")
    concepts: list[str] = Field(default_factory=list)
    problem_types: list[ProblemTypeEntry] = Field(default_factory=list, alias="problemTypes")

    model_config = {"populate_by_name": True}


class ModuleEntry(BaseModel):
    """A module as written in curriculum.json."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    order: int
    overview: str = ""
    subtopics: list[SubtopicEntry] = Field(default_factory=list)


class CurriculumFile(BaseModel):
    """Root of curriculum.json."""

    version: str
    modules: list[ModuleEntry]


# =============================================================================
# Runtime view
# =============================================================================


@dataclass(frozen=True)
class Topic:
    """One problem archetype at a fixed position in the flattened curriculum."""

    id: str
    name: str
    module_id: str
    module_name: str
    subtopic_id: str
    subtopic_name: str
    position: int  # index in the flattened sequence
    module_position: int  # index among the topics of its module
    module_size: int  # number of topics in its module

    @property
    def label(self) -> str:
        """Short display label: 'Module › Subtopic › Topic'."""
        return f"{self.module_name} › {self.subtopic_name} › {self.name}"


@dataclass(frozen=True)
class Module:
    """A curriculum module with its flattened topics."""

    id: str
    name: str
    order: int
    topics: tuple[Topic, ...]
