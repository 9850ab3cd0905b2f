"""
Unit tests for TopicSequencer and difficulty policies.
"""

from dataclasses import replace

import pytest

from automode.autorun import (
    Difficulty,
    FixedDifficultyPolicy,
    ModuleBandingPolicy,
    ProgressionEngine,
    RunStatus,
    TopicSequencer,
    get_difficulty_policy,
)
from automode.curriculum import CurriculumCatalog
from automode.errors import OutOfRangeError


class TestTopics:
    def test_current_topic_follows_pointer(self, sequencer, fresh_run):
        assert sequencer.current_topic(fresh_run).id == "reverse"
        assert sequencer.current_topic(replace(fresh_run, topic_pointer=2)).id == "is-palindrome"

    def test_completed_run_serves_last_topic(self, sequencer, fresh_run):
        run = replace(fresh_run, topic_pointer=3, status=RunStatus.COMPLETED)
        assert sequencer.current_topic(run).id == "is-palindrome"

    def test_negative_pointer_is_out_of_range(self, sequencer, fresh_run):
        with pytest.raises(OutOfRangeError):
            sequencer.current_topic(replace(fresh_run, topic_pointer=-1))

    def test_next_topic(self, sequencer, fresh_run):
        assert sequencer.next_topic(fresh_run).id == "count"
        assert sequencer.next_topic(replace(fresh_run, topic_pointer=2)) is None

    def test_next_topic_none_when_completed(self, sequencer, fresh_run):
        run = replace(fresh_run, topic_pointer=3, status=RunStatus.COMPLETED)
        assert sequencer.next_topic(run) is None

    def test_upcoming_topics(self, sequencer, fresh_run):
        assert [t.id for t in sequencer.upcoming_topics(fresh_run, count=5)] == [
            "count",
            "is-palindrome",
        ]

    def test_rejects_mismatched_engine(self, small_catalog):
        with pytest.raises(ValueError):
            TopicSequencer(small_catalog, ProgressionEngine(["only-one"]))


class TestProgress:
    @pytest.mark.parametrize(
        "streak, aggressive, expected",
        [
            (0, False, (0, 3, 0)),
            (1, False, (1, 3, 33)),
            (2, False, (2, 3, 67)),
            (1, True, (1, 2, 50)),
            # a streak left over from a higher threshold still needs one more answer
            (2, True, (1, 2, 50)),
            (5, False, (2, 3, 67)),
        ],
    )
    def test_topic_progress_uses_engine_threshold(self, sequencer, fresh_run, streak, aggressive, expected):
        run = replace(fresh_run, streak=streak, aggressive_progression=aggressive)
        progress = sequencer.topic_progress(run)
        assert (progress.current, progress.total, progress.percent) == expected

    def test_curriculum_progress(self, sequencer, fresh_run):
        progress = sequencer.curriculum_progress(replace(fresh_run, topic_pointer=1))
        assert progress.completed_topics == 1
        assert progress.total_topics == 3
        assert progress.percent == 33

    def test_curriculum_progress_complete(self, sequencer, fresh_run):
        run = replace(fresh_run, topic_pointer=3, status=RunStatus.COMPLETED)
        assert sequencer.curriculum_progress(run).percent == 100


class TestDifficulty:
    def test_module_banding_over_bundled_curriculum(self):
        catalog = CurriculumCatalog.load()
        policy = ModuleBandingPolicy()
        first_module = catalog.modules()[0].topics

        bands = [policy(t) for t in first_module]
        assert bands[0] is Difficulty.BEGINNER
        assert bands[-1] is Difficulty.ADVANCED
        # Bands never step back down inside a module
        order = list(Difficulty)
        assert [order.index(b) for b in bands] == sorted(order.index(b) for b in bands)

    def test_module_banding_small_module(self, small_catalog):
        policy = ModuleBandingPolicy()
        assert [policy(t) for t in small_catalog.flattened_sequence()] == [
            Difficulty.BEGINNER,
            Difficulty.INTERMEDIATE,
            Difficulty.ADVANCED,
        ]

    def test_fixed_policy(self, small_catalog):
        policy = FixedDifficultyPolicy(Difficulty.ADVANCED)
        assert all(policy(t) is Difficulty.ADVANCED for t in small_catalog.flattened_sequence())

    def test_policy_lookup(self):
        assert isinstance(get_difficulty_policy("module"), ModuleBandingPolicy)
        assert get_difficulty_policy("beginner").difficulty is Difficulty.BEGINNER
        with pytest.raises(ValueError):
            get_difficulty_policy("expert")

    def test_question_request(self, sequencer, fresh_run):
        request = sequencer.question_request(replace(fresh_run, topic_pointer=1))
        assert request.topic.id == "count"
        assert request.difficulty is Difficulty.INTERMEDIATE


class TestModuleNavigation:
    def test_single_module_has_no_next_section(self, sequencer, fresh_run):
        sections = sequencer.module_navigation(replace(fresh_run, topic_pointer=1))

        assert len(sections) == 1
        assert sections[0].module.id == "strings"
        assert [(i.topic.id, i.status) for i in sections[0].items] == [
            ("reverse", "completed"),
            ("count", "current"),
            ("is-palindrome", "upcoming"),
        ]

    def test_completed_run_marks_everything_done(self, sequencer, fresh_run):
        run = replace(fresh_run, topic_pointer=3, status=RunStatus.COMPLETED)
        items = sequencer.module_navigation(run)[0].items
        assert {i.status for i in items} == {"completed"}

    def test_next_module_of_bundled_curriculum(self, fresh_run):
        catalog = CurriculumCatalog.load()
        sequencer = TopicSequencer(
            catalog, ProgressionEngine(catalog.topic_ids(), module_ids=catalog.module_ids())
        )
        modules = catalog.modules()

        sections = sequencer.module_navigation(fresh_run)
        assert [s.module.id for s in sections] == [modules[0].id, modules[1].id]
        assert len(sections[1].items) == len(modules[1].topics)
