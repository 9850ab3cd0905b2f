"""
Unit tests for ProgressionEngine.

Tests:
- Promotion thresholds (default 3, aggressive 2)
- Streak resets on incorrect answers
- Completion and free practice after the last topic
- Toggles, jumps and renames
"""

from dataclasses import replace

import pytest

from automode.autorun import Outcome, ProgressionEngine, ProgressionRules, RunStatus, RunToggle
from automode.errors import OutOfRangeError


class TestPromotion:
    def test_three_correct_promotes_in_default_mode(self, engine, fresh_run):
        run = fresh_run
        for _ in range(3):
            run = engine.advance(run, Outcome.CORRECT)

        assert run.topic_pointer == 1
        assert run.streak == 0
        assert run.completed_questions == 3
        assert run.status is RunStatus.ACTIVE

    def test_two_correct_promotes_in_aggressive_mode(self, engine, fresh_run):
        run = replace(fresh_run, aggressive_progression=True)
        for _ in range(2):
            run = engine.advance(run, Outcome.CORRECT)

        assert run.topic_pointer == 1
        assert run.streak == 0
        assert run.completed_questions == 2

    def test_one_below_threshold_promotes_on_next_correct(self, engine, fresh_run):
        run = replace(fresh_run, streak=2)
        run = engine.advance(run, Outcome.CORRECT)

        assert run.topic_pointer == 1
        assert run.streak == 0

    def test_aggressive_promotes_one_answer_earlier(self, engine, fresh_run):
        default = replace(fresh_run, streak=1)
        aggressive = replace(fresh_run, streak=1, aggressive_progression=True)

        assert engine.advance(default, Outcome.CORRECT).topic_pointer == 0
        assert engine.advance(aggressive, Outcome.CORRECT).topic_pointer == 1

    def test_custom_rules(self, small_catalog, fresh_run):
        engine = ProgressionEngine(small_catalog.topic_ids(), ProgressionRules(streak_to_promote=1))
        assert engine.advance(fresh_run, Outcome.CORRECT).topic_pointer == 1

    def test_invalid_rules_rejected(self):
        with pytest.raises(ValueError):
            ProgressionRules(streak_to_promote=0)


class TestIncorrect:
    def test_incorrect_resets_streak_and_keeps_topic(self, engine, fresh_run):
        run = replace(fresh_run, streak=2)
        updated = engine.advance(run, Outcome.INCORRECT)

        assert updated.streak == 0
        assert updated.topic_pointer == run.topic_pointer
        assert updated.completed_questions == run.completed_questions + 1

    @pytest.mark.parametrize("aggressive", [False, True])
    @pytest.mark.parametrize("remediation", [False, True])
    def test_incorrect_never_moves_pointer(self, engine, fresh_run, aggressive, remediation):
        run = replace(
            fresh_run,
            topic_pointer=1,
            streak=1,
            aggressive_progression=aggressive,
            remediation_mode=remediation,
        )
        assert engine.advance(run, Outcome.INCORRECT).topic_pointer == 1

    def test_remediation_requires_full_streak_after_mistake(self, engine, fresh_run):
        run = replace(fresh_run, streak=2, remediation_mode=True)
        run = engine.advance(run, Outcome.INCORRECT)
        run = engine.advance(run, Outcome.CORRECT)

        assert run.topic_pointer == 0
        assert run.streak == 1


class TestCompletion:
    def test_promoting_past_last_topic_completes(self, engine, fresh_run):
        run = replace(fresh_run, topic_pointer=2, streak=2)
        run = engine.advance(run, Outcome.CORRECT)

        assert run.topic_pointer == engine.terminal_index == 3
        assert run.status is RunStatus.COMPLETED
        assert run.is_completed

    @pytest.mark.parametrize("outcome", [Outcome.CORRECT, Outcome.INCORRECT])
    def test_completed_run_keeps_pointer_but_counts_questions(self, engine, fresh_run, outcome):
        run = replace(fresh_run, topic_pointer=3, status=RunStatus.COMPLETED, completed_questions=9)
        for expected in (10, 11, 12):
            run = engine.advance(run, outcome)
            assert run.topic_pointer == 3
            assert run.status is RunStatus.COMPLETED
            assert run.completed_questions == expected

    def test_free_practice_stats_go_to_last_topic(self, engine, fresh_run):
        run = replace(fresh_run, topic_pointer=3, status=RunStatus.COMPLETED)
        run = engine.advance(run, Outcome.CORRECT)
        assert run.topic_stats["is-palindrome"].solved == 1


class TestInvariants:
    def test_streak_and_total_over_mixed_sequence(self, engine, fresh_run):
        outcomes = [Outcome.CORRECT, Outcome.INCORRECT, Outcome.CORRECT, Outcome.CORRECT] * 5
        run = fresh_run
        previous_total = run.completed_questions
        for outcome in outcomes:
            run = engine.advance(run, outcome)
            assert run.streak >= 0
            assert run.completed_questions == previous_total + 1
            assert 0 <= run.topic_pointer <= engine.terminal_index
            previous_total = run.completed_questions

    def test_advance_does_not_mutate_input(self, engine, fresh_run):
        engine.advance(fresh_run, Outcome.CORRECT)
        assert fresh_run.streak == 0
        assert fresh_run.completed_questions == 0
        assert fresh_run.topic_stats == {}

    def test_toggles_pass_through_advance(self, engine, fresh_run):
        run = replace(fresh_run, aggressive_progression=True, remediation_mode=True)
        updated = engine.advance(run, Outcome.INCORRECT)
        assert updated.aggressive_progression is True
        assert updated.remediation_mode is True

    def test_topic_stats_track_attempts(self, engine, fresh_run):
        run = engine.advance(fresh_run, Outcome.CORRECT, now=5_000)
        run = engine.advance(run, Outcome.INCORRECT, now=6_000)

        stats = run.topic_stats["reverse"]
        assert stats.attempts == 2
        assert stats.solved == 1
        assert stats.last_attempt_at == 6_000
        assert stats.accuracy == pytest.approx(0.5)


class TestToggles:
    def test_set_toggle_changes_only_that_field(self, engine, fresh_run):
        run = engine.set_toggle(fresh_run, RunToggle.AGGRESSIVE_PROGRESSION, True, now=2_000)

        assert run.aggressive_progression is True
        assert run.remediation_mode == fresh_run.remediation_mode
        assert run.streak == fresh_run.streak
        assert run.last_updated_at == 2_000

    def test_set_toggle_accepts_string_name(self, engine, fresh_run):
        run = engine.set_toggle(fresh_run, "remediation_mode", True)
        assert run.remediation_mode is True

    def test_threshold_follows_toggle(self, engine, fresh_run):
        assert engine.threshold_for(fresh_run) == 3
        aggressive = engine.set_toggle(fresh_run, RunToggle.AGGRESSIVE_PROGRESSION, True)
        assert engine.threshold_for(aggressive) == 2


class TestJumpAndRename:
    def test_jump_resets_streak_only(self, engine, fresh_run):
        run = replace(fresh_run, streak=2, completed_questions=4)
        jumped = engine.jump_to(run, 2)

        assert jumped.topic_pointer == 2
        assert jumped.streak == 0
        assert jumped.completed_questions == 4

    def test_jump_back_reactivates_completed_run(self, engine, fresh_run):
        run = replace(fresh_run, topic_pointer=3, status=RunStatus.COMPLETED)
        jumped = engine.jump_to(run, 0)
        assert jumped.status is RunStatus.ACTIVE

    @pytest.mark.parametrize("position", [-1, 3, 10])
    def test_jump_out_of_range(self, engine, fresh_run, position):
        with pytest.raises(OutOfRangeError):
            engine.jump_to(fresh_run, position)

    def test_rename_trims(self, engine, fresh_run):
        assert engine.rename(fresh_run, "  Evening  ").name == "Evening"

    def test_rename_rejects_blank(self, engine, fresh_run):
        with pytest.raises(ValueError):
            engine.rename(fresh_run, "   ")


class TestModuleSkip:
    @pytest.fixture
    def modular_engine(self):
        return ProgressionEngine(["a1", "a2", "a3", "b1", "b2"], module_ids=["a", "a", "a", "b", "b"])

    def test_skip_lands_on_next_module_start(self, modular_engine, fresh_run):
        run = replace(fresh_run, topic_pointer=1, streak=2, completed_questions=7)
        skipped = modular_engine.skip_module(run, now=5_000)

        assert skipped.topic_pointer == 3
        assert skipped.streak == 0
        assert skipped.completed_questions == 7
        assert skipped.topic_stats == run.topic_stats
        assert skipped.last_updated_at == 5_000

    def test_skip_in_last_module_rejected(self, modular_engine, fresh_run):
        with pytest.raises(OutOfRangeError):
            modular_engine.skip_module(replace(fresh_run, topic_pointer=3))

    def test_skip_completed_run_rejected(self, modular_engine, fresh_run):
        run = replace(fresh_run, topic_pointer=5, status=RunStatus.COMPLETED)
        with pytest.raises(OutOfRangeError):
            modular_engine.skip_module(run)

    def test_next_module_start(self, modular_engine):
        assert modular_engine.next_module_start(0) == 3
        assert modular_engine.next_module_start(3) is None

    def test_module_ids_must_match_topics(self):
        with pytest.raises(ValueError):
            ProgressionEngine(["a1", "a2"], module_ids=["a"])


class TestSlowDown:
    def test_resets_streak_and_aggressive(self, engine, fresh_run):
        run = replace(fresh_run, streak=1, aggressive_progression=True, topic_pointer=1)
        slowed = engine.slow_down(run, now=9_000)

        assert slowed.streak == 0
        assert slowed.aggressive_progression is False
        assert slowed.topic_pointer == 1
        assert slowed.completed_questions == run.completed_questions
        assert slowed.last_updated_at == 9_000
