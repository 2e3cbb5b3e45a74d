"""
Unit tests for answer evaluation and scoring.
"""
import unittest

from quiz_runner.evaluator import (
    PerformanceBand,
    evaluate,
    is_correct,
    percentage,
    performance_band,
    score,
)
from tests.test_fixtures import TestFixtures


class TestIsCorrect(unittest.TestCase):
    """Test cases for single-choice and multi-select correctness."""

    def setUp(self):
        """Set up test fixtures."""
        self.true_false = TestFixtures.create_true_false_question()
        self.multi_select = TestFixtures.create_multi_select_question()

    def test_single_choice_matching_key(self):
        self.assertTrue(is_correct(self.true_false, "A"))

    def test_single_choice_other_key(self):
        self.assertFalse(is_correct(self.true_false, "B"))

    def test_single_choice_is_case_sensitive(self):
        self.assertFalse(is_correct(self.true_false, "a"))

    def test_single_choice_unanswered(self):
        self.assertFalse(is_correct(self.true_false, None))

    def test_single_choice_rejects_collection(self):
        """A set submitted for a single-choice question is wrong, not an error."""
        self.assertFalse(is_correct(self.true_false, frozenset({"A"})))

    def test_multi_select_order_independent(self):
        self.assertTrue(is_correct(self.multi_select, frozenset({"C", "A"})))
        self.assertTrue(is_correct(self.multi_select, ["C", "A"]))

    def test_multi_select_duplicate_independent(self):
        self.assertTrue(is_correct(self.multi_select, ["A", "C", "A"]))

    def test_multi_select_subset_is_wrong(self):
        self.assertFalse(is_correct(self.multi_select, frozenset({"A"})))

    def test_multi_select_superset_is_wrong(self):
        self.assertFalse(is_correct(self.multi_select, frozenset({"A", "B", "C"})))

    def test_multi_select_unanswered(self):
        self.assertFalse(is_correct(self.multi_select, None))

    def test_multi_select_non_collection_is_wrong(self):
        """A single key submitted for a multi-select question never raises."""
        self.assertFalse(is_correct(self.multi_select, "A"))
        self.assertFalse(is_correct(self.multi_select, 42))

    def test_multi_select_unhashable_keys_are_wrong(self):
        self.assertFalse(is_correct(self.multi_select, [["A"], ["C"]]))
        self.assertFalse(is_correct(self.multi_select, ("A", {"C": True})))


class TestScore(unittest.TestCase):
    """Test cases for session scoring."""

    def setUp(self):
        """Set up test fixtures."""
        self.questions = TestFixtures.create_sample_bank().snapshot()

    def test_score_empty_answers(self):
        self.assertEqual(score(self.questions, {}), 0)

    def test_score_all_correct(self):
        answers = {1: "A", 2: "B", 3: frozenset({"A", "C"})}
        self.assertEqual(score(self.questions, answers), 3)

    def test_score_partial(self):
        answers = {1: "A", 2: "C", 3: frozenset({"A"})}
        self.assertEqual(score(self.questions, answers), 1)

    def test_score_ignores_answers_for_unknown_questions(self):
        answers = {1: "A", 99: "A"}
        self.assertEqual(score(self.questions, answers), 1)

    def test_score_within_range(self):
        answer_sets = [
            {},
            {1: "B"},
            {1: "A", 2: "B"},
            {1: "A", 2: "B", 3: ["A", "C"]},
        ]
        for answers in answer_sets:
            result = score(self.questions, answers)
            self.assertGreaterEqual(result, 0)
            self.assertLessEqual(result, len(self.questions))

    def test_score_no_questions(self):
        self.assertEqual(score((), {1: "A"}), 0)

    def test_true_false_scenario(self):
        """Single true/false question scored with correct, missing and wrong answers."""
        questions = [TestFixtures.create_true_false_question()]
        self.assertEqual(score(questions, {1: "A"}), 1)
        self.assertEqual(score(questions, {}), 0)
        self.assertEqual(score(questions, {1: "B"}), 0)


class TestPercentageAndBands(unittest.TestCase):
    """Test cases for result percentage and performance bands."""

    def test_percentage_rounds_half_up(self):
        self.assertEqual(percentage(1, 8), 13)
        self.assertEqual(percentage(2, 3), 67)

    def test_percentage_empty_session(self):
        self.assertEqual(percentage(0, 0), 0)

    def test_performance_band_boundaries(self):
        self.assertEqual(performance_band(100), PerformanceBand.EXCELLENT)
        self.assertEqual(performance_band(90), PerformanceBand.EXCELLENT)
        self.assertEqual(performance_band(89), PerformanceBand.GOOD)
        self.assertEqual(performance_band(70), PerformanceBand.GOOD)
        self.assertEqual(performance_band(69), PerformanceBand.AVERAGE)
        self.assertEqual(performance_band(50), PerformanceBand.AVERAGE)
        self.assertEqual(performance_band(49), PerformanceBand.NEEDS_IMPROVEMENT)
        self.assertEqual(performance_band(0), PerformanceBand.NEEDS_IMPROVEMENT)

    def test_evaluate_summary(self):
        questions = TestFixtures.create_sample_bank().snapshot()
        summary = evaluate(questions, {1: "A", 2: "B"})

        self.assertEqual(summary['score'], 2)
        self.assertEqual(summary['total'], 3)
        self.assertEqual(summary['percentage'], 67)
        self.assertEqual(summary['band'], PerformanceBand.AVERAGE)
        self.assertEqual(summary['message'], PerformanceBand.AVERAGE.message)


if __name__ == '__main__':
    unittest.main()
