from typing import Any, Dict, Iterable, List

from gradebook.api.v1.schemas.result import SubExamBreakdown, SubjectTermTotal, TypeSubtotal, YearScore
from gradebook.api.v1.schemas.sub_exam import ExamType
from gradebook.core.errors import AggregationInconsistency
from gradebook.core.logger import logger
from gradebook.scoring.weights import order_sub_exams

GRADE_BANDS = (
    (90.0, "A"),
    (80.0, "B"),
    (70.0, "C"),
    (60.0, "D"),
)

SUBTOTAL_KEYS = ("quizzes", "assignments", "mid_exams", "sub_total", "general_test", "grand_total")

_TYPE_SUBTOTAL = {
    ExamType.QUIZ: "quizzes",
    ExamType.ASSIGNMENT: "assignments",
    ExamType.MID_EXAM: "mid_exams",
    ExamType.GENERAL_TEST: "general_test",
}


def band_grade(percentage: float) -> str:
    """Letter grade of a raw percentage; lower bounds are inclusive."""
    for lower, letter in GRADE_BANDS:
        if percentage >= lower:
            return letter
    return "F"


def compute_subject_term_total(scores: Iterable[Any], sub_exams: Iterable[Any]) -> SubjectTermTotal:
    """
    Aggregate one student's scores for one subject and term.

    Only sub-exams with a recorded score count towards both the total and the
    maximum total, so an assessment that was not given yet is not a zero.
    Scores that point at an unknown sub-exam are skipped.

    Args:
        scores: Score records (``sub_exam_id``, ``score``) of the student
        sub_exams: Sub-exams of the subject

    Returns:
        SubjectTermTotal: Totals, percentage, grade and per-type breakdown
    """
    by_id = {se.id: se for se in sub_exams}

    # upsert semantics: the last score of a sub-exam wins
    recorded: Dict[int, float] = {}
    for score in scores:
        if score.score is None:
            continue
        if score.sub_exam_id not in by_id:
            logger.warning(f"[AGGREGATION] {AggregationInconsistency(score.sub_exam_id)}, excluded")
            continue
        recorded[score.sub_exam_id] = float(score.score)

    subtotals = {key: TypeSubtotal() for key in SUBTOTAL_KEYS}
    breakdown: List[SubExamBreakdown] = []
    total = 0.0
    max_total = 0.0

    for sub_exam in order_sub_exams(se for se in by_id.values() if se.id in recorded):
        value = recorded[sub_exam.id]
        max_score = float(sub_exam.max_score)
        exam_type = ExamType(sub_exam.exam_type)

        total += value
        max_total += max_score

        bucket = subtotals[_TYPE_SUBTOTAL[exam_type]]
        bucket.total += value
        bucket.max_total += max_score
        if exam_type != ExamType.GENERAL_TEST:
            subtotals["sub_total"].total += value
            subtotals["sub_total"].max_total += max_score

        breakdown.append(SubExamBreakdown(
            sub_exam_id=sub_exam.id,
            sub_exam_name=sub_exam.name,
            exam_type=exam_type,
            score=value,
            max_score=max_score,
        ))

    subtotals["grand_total"] = TypeSubtotal(total=total, max_total=max_total)
    percentage = 100.0 * total / max_total if breakdown and max_total > 0 else 0.0

    return SubjectTermTotal(
        total=total,
        max_total=max_total,
        percentage=percentage,
        contributing_count=len(breakdown),
        grade=band_grade(percentage),
        breakdown=breakdown,
        subtotals=subtotals,
    )


def compute_year_score(term1: SubjectTermTotal, term2: SubjectTermTotal) -> YearScore:
    """Mean of two term totals of a subject and its grade."""
    year_average = (term1.total + term2.total) / 2
    return YearScore(
        term1_total=term1.total,
        term2_total=term2.total,
        year_average=year_average,
        grade=band_grade(year_average),
        term1_details=term1,
        term2_details=term2,
    )
