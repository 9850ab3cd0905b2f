"""
Curriculum Catalog.

Read-only lookup over the module → subtopic → problem type hierarchy.
The flattened sequence orders modules by their `order` field, then keeps
subtopics and problem types in file order. It is stable for the lifetime
of the process.
"""
from __future__ import annotations

import json
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from automode.curriculum.models import CurriculumFile, Module, Topic
from automode.errors import CurriculumError, TopicNotFoundError

BUNDLED_CURRICULUM = Path(__file__).resolve().parent.parent / "data" / "curriculum.json"


class CurriculumCatalog:
    """
    Immutable curriculum lookup service.

    Usage:
        catalog = CurriculumCatalog.load()
        topics = catalog.flattened_sequence()
    """

    def __init__(self, data: CurriculumFile):
        self.version = data.version
        self._modules: tuple[Module, ...] = ()
        self._topics: tuple[Topic, ...] = ()
        self._by_id: dict[str, Topic] = {}
        self._build(data)

    @classmethod
    def load(cls, path: Path | None = None) -> CurriculumCatalog:
        """
        Load a catalog from a curriculum JSON file.

        Args:
            path: Curriculum file (defaults to the bundled curriculum)

        Raises:
            CurriculumError: If the file is missing, unreadable or malformed
        """
        path = path or BUNDLED_CURRICULUM
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CurriculumError(f"Cannot read curriculum {path}: {e}") from e

        try:
            data = CurriculumFile.model_validate(raw)
        except ValidationError as e:
            raise CurriculumError(f"Invalid curriculum {path}: {e}") from e

        catalog = cls(data)
        logger.debug(f"Loaded curriculum v{catalog.version}: {len(catalog)} topics from {path}")
        return catalog

    def _build(self, data: CurriculumFile) -> None:
        modules: list[Module] = []
        topics: list[Topic] = []

        for mod in sorted(data.modules, key=lambda m: m.order):
            entries = [
                (subtopic, problem_type)
                for subtopic in mod.subtopics
                for problem_type in subtopic.problem_types
            ]
            module_topics = []
            for local_index, (subtopic, problem_type) in enumerate(entries):
                topic = Topic(
                    id=problem_type.id,
                    name=problem_type.name,
                    module_id=mod.id,
                    module_name=mod.name,
                    subtopic_id=subtopic.id,
                    subtopic_name=subtopic.name,
                    position=len(topics),
                    module_position=local_index,
                    module_size=len(entries),
                )
                if topic.id in self._by_id:
                    raise CurriculumError(f"Duplicate topic id '{topic.id}'")
                self._by_id[topic.id] = topic
                topics.append(topic)
                module_topics.append(topic)
            modules.append(
                Module(id=mod.id, name=mod.name, order=mod.order, topics=tuple(module_topics))
            )

        if not topics:
            raise CurriculumError("Curriculum contains no topics")

        self._modules = tuple(modules)
        self._topics = tuple(topics)

    # =========================================================================
    # Lookups
    # =========================================================================

    def flattened_sequence(self) -> tuple[Topic, ...]:
        """All topics in curriculum order."""
        return self._topics

    def modules(self) -> tuple[Module, ...]:
        return self._modules

    def get_topic(self, topic_id: str) -> Topic:
        """
        Look up a topic by id.

        Raises:
            TopicNotFoundError: If the id is not in the curriculum
        """
        try:
            return self._by_id[topic_id]
        except KeyError:
            raise TopicNotFoundError(topic_id) from None

    def topic_at(self, position: int) -> Topic:
        """Topic at a flattened position (IndexError outside the sequence)."""
        if position < 0:
            raise IndexError(position)
        return self._topics[position]

    def topic_ids(self) -> tuple[str, ...]:
        return tuple(t.id for t in self._topics)

    def module_ids(self) -> tuple[str, ...]:
        """Owning module id for each topic, in curriculum order."""
        return tuple(t.module_id for t in self._topics)

    def __len__(self) -> int:
        return len(self._topics)

    def __contains__(self, topic_id: object) -> bool:
        return topic_id in self._by_id
