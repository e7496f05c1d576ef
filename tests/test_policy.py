"""
Unit tests for the target filter and threshold policy.
"""

import pytest

from chatguard.moderation.base import Verdict
from chatguard.processing.models import DecisionKind
from chatguard.processing.policy import evaluate, in_scope


EPSILON = 1e-6


class TestInScope:
    """Test cases for the author filter."""

    def test_all_users_mode_includes_everyone(self):
        assert in_scope("anyone", True, frozenset()) is True
        assert in_scope("anyone", True, frozenset({"someone-else"})) is True

    def test_target_user_is_in_scope(self):
        assert in_scope("user1", False, frozenset({"user1", "user2"})) is True

    def test_non_target_user_is_skipped(self):
        assert in_scope("user3", False, frozenset({"user1", "user2"})) is False

    def test_no_targets_and_not_all_users_is_inert(self):
        for author in ("user1", "admin", ""):
            assert in_scope(author, False, frozenset()) is False

    def test_deterministic(self):
        targets = frozenset({"user1"})
        results = {in_scope("user1", False, targets) for _ in range(10)}
        assert results == {True}


class TestEvaluate:
    """Test cases for the threshold policy."""

    @pytest.mark.parametrize("threshold", [0.1, 0.5, 0.8, 1.0])
    def test_score_equal_to_threshold_acts(self, threshold):
        decision = evaluate(Verdict({"hate": threshold}), threshold)
        assert decision.kind is DecisionKind.ACT

    @pytest.mark.parametrize("threshold", [0.1, 0.5, 0.8, 1.0])
    def test_score_just_below_threshold_allows(self, threshold):
        decision = evaluate(Verdict({"hate": threshold - EPSILON}), threshold)
        assert decision.kind is DecisionKind.ALLOW

    @pytest.mark.parametrize("threshold", [0.1, 0.5, 0.8])
    def test_score_just_above_threshold_acts(self, threshold):
        decision = evaluate(Verdict({"hate": threshold + EPSILON}), threshold)
        assert decision.kind is DecisionKind.ACT

    def test_acts_on_maximum_category(self):
        verdict = Verdict({"toxicity": 0.3, "violence": 0.95, "hate": 0.85})
        decision = evaluate(verdict, 0.8)

        assert decision.should_act is True
        assert decision.category == "violence"
        assert decision.score == 0.95
        assert decision.threshold == 0.8

    def test_allow_keeps_top_category_for_logging(self):
        decision = evaluate(Verdict({"toxicity": 0.1, "sexual": 0.2}), 0.8)

        assert decision.kind is DecisionKind.ALLOW
        assert decision.category == "sexual"
        assert decision.score == 0.2

    def test_empty_verdict_allows(self):
        decision = evaluate(Verdict.safe(), 0.1)
        assert decision.kind is DecisionKind.ALLOW
        assert decision.category is None


class TestVerdict:
    """Test cases for Verdict helpers."""

    def test_max_category(self):
        verdict = Verdict({"a": 0.2, "b": 0.7})
        assert verdict.max_category() == ("b", 0.7)
        assert verdict.max_score == 0.7

    def test_is_flagged_uses_greater_or_equal(self):
        verdict = Verdict({"a": 0.5})
        assert verdict.is_flagged(0.5) is True
        assert verdict.is_flagged(0.51) is False

    def test_safe_verdict_has_no_categories(self):
        assert Verdict.safe().categories == {}
        assert Verdict.safe().max_category() == (None, 0.0)
