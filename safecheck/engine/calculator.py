"""Result calculator - reduces an assessment to a compliance score."""

from decimal import ROUND_HALF_UP, Decimal

from safecheck.schemas.assessment import Answer, Assessment, AssessmentResult, QuestionAnswer

GOOD_THRESHOLD = 90
FAIR_THRESHOLD = 70


def calculate(assessment: Assessment) -> AssessmentResult:
    """
    Score = Yes answers / applicable answers, as a whole percentage.
    Applicable means answered Yes or No; N/A and unanswered are excluded.
    Returns all zeros when nothing is applicable.
    """
    answers = [q.answer for q in assessment.questions]
    yes_answers = sum(1 for a in answers if a == Answer.YES)
    applicable = sum(1 for a in answers if a in (Answer.YES, Answer.NO))

    percentage = 0
    if applicable > 0:
        # Half-up, not banker's rounding: 50.5 -> 51
        ratio = Decimal(yes_answers * 100) / Decimal(applicable)
        percentage = int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    return AssessmentResult(
        total_questions=len(answers),
        applicable_questions=applicable,
        yes_answers=yes_answers,
        percentage=percentage,
    )


def score_band(percentage: int) -> str:
    """Bucket a percentage into good / fair / poor."""
    if percentage >= GOOD_THRESHOLD:
        return "good"
    if percentage >= FAIR_THRESHOLD:
        return "fair"
    return "poor"


def findings(assessment: Assessment) -> list[QuestionAnswer]:
    """Questions answered No, in question order."""
    return sorted(
        (q for q in assessment.questions if q.answer == Answer.NO),
        key=lambda q: q.question_number,
    )
