"""Unit tests for the result calculator."""

import random
from datetime import date

import pytest

from safecheck.engine.calculator import calculate, findings, score_band
from safecheck.schemas.assessment import Answer, Assessment, AssessmentResult, QuestionAnswer


def _assessment(*answers):
    return Assessment(
        id="a1",
        user_id="u1",
        store_name="Warehouse 4",
        date=date(2026, 10, 18),
        questions=[
            QuestionAnswer(
                id=f"q{i}",
                assessment_id="a1",
                question_number=i,
                question_text=f"Question {i}?",
                answer=answer,
            )
            for i, answer in enumerate(answers, start=1)
        ],
    )


def test_yes_no_na_mix():
    """Yes / No / N/A gives 50%."""
    result = calculate(_assessment(Answer.YES, Answer.NO, Answer.NOT_APPLICABLE))
    assert result == AssessmentResult(
        total_questions=3, applicable_questions=2, yes_answers=1, percentage=50
    )


def test_no_applicable_questions_scores_zero():
    """All N/A must not divide by zero."""
    result = calculate(_assessment(Answer.NOT_APPLICABLE, Answer.NOT_APPLICABLE))
    assert result.applicable_questions == 0
    assert result.percentage == 0


def test_empty_assessment_is_all_zero():
    assert calculate(_assessment()) == AssessmentResult()


def test_unanswered_excluded_from_denominator():
    """Unanswered questions count toward the total only."""
    result = calculate(_assessment(Answer.YES, None, None, Answer.YES))
    assert result.total_questions == 4
    assert result.applicable_questions == 2
    assert result.percentage == 100


def test_rounds_half_up():
    # 1/8 = 12.5% -> 13, 2/3 = 66.67% -> 67
    assert calculate(_assessment(Answer.YES, *[Answer.NO] * 7)).percentage == 13
    assert calculate(_assessment(Answer.YES, Answer.YES, Answer.NO)).percentage == 67


def test_order_independent_and_repeatable():
    answers = [Answer.YES] * 7 + [Answer.NO] * 4 + [Answer.NOT_APPLICABLE] * 3 + [None] * 2
    assessment = _assessment(*answers)
    expected = calculate(assessment)
    rng = random.Random(7)
    for _ in range(20):
        shuffled = list(assessment.questions)
        rng.shuffle(shuffled)
        assert calculate(assessment.model_copy(update={"questions": shuffled})) == expected
    assert calculate(assessment) == expected


@pytest.mark.parametrize(
    "percentage,band",
    [(100, "good"), (90, "good"), (89, "fair"), (70, "fair"), (69, "poor"), (0, "poor")],
)
def test_score_band(percentage, band):
    assert score_band(percentage) == band


def test_findings_are_no_answers_in_question_order():
    assessment = _assessment(Answer.NO, Answer.YES, Answer.NO, None)
    reversed_questions = list(reversed(assessment.questions))
    result = findings(assessment.model_copy(update={"questions": reversed_questions}))
    assert [q.question_number for q in result] == [1, 3]
