"""
Sub-exam weight model.

A sub-exam's weight is denominated in points: it always equals its maximum
score, and the maximum scores of one (grade, subject) are meant to add up to
a 100 point term total.
"""
from enum import Enum
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel

from gradebook.api.v1.schemas.sub_exam import ExamType
from gradebook.core.config import settings
from gradebook.core.logger import logger

EXAM_TYPE_PRESETS = {
    ExamType.QUIZ: 10.0,
    ExamType.ASSIGNMENT: 10.0,
    ExamType.MID_EXAM: 20.0,
    ExamType.GENERAL_TEST: 40.0,
}

# The ceiling of every type is its preset.
EXAM_TYPE_CEILINGS = dict(EXAM_TYPE_PRESETS)

SINGLETON_TYPES = frozenset({ExamType.MID_EXAM, ExamType.GENERAL_TEST})

EXAM_TYPE_ORDER = {
    ExamType.QUIZ: 1,
    ExamType.ASSIGNMENT: 2,
    ExamType.MID_EXAM: 3,
    ExamType.GENERAL_TEST: 4,
}

EXAM_TYPE_LABELS = {
    ExamType.QUIZ: "Quiz",
    ExamType.ASSIGNMENT: "Assignment",
    ExamType.MID_EXAM: "Mid Exam",
    ExamType.GENERAL_TEST: "General Test",
}


class FailureKind(str, Enum):
    EXCEEDS_TYPE_CEILING = "ExceedsTypeCeiling"
    DUPLICATE_SINGLETON = "DuplicateSingleton"
    MISSING_MAX_SCORE = "MissingMaxScore"
    EXCEEDS_SUBJECT_TOTAL = "ExceedsSubjectTotal"


class SubExamValidationFailure(BaseModel):
    kind: FailureKind
    message: str
    exam_type: ExamType
    max_score: Optional[float] = None
    limit: Optional[float] = None


def preset_max_score(exam_type: ExamType) -> float:
    """Default maximum score offered for a new sub-exam of this type."""
    return EXAM_TYPE_PRESETS[ExamType(exam_type)]


def validate_sub_exam(
        exam_type: ExamType,
        max_score: Optional[float],
        existing: Iterable[Any] = (),
        exclude_id: Optional[int] = None,
) -> Optional[SubExamValidationFailure]:
    """
    Check a proposed sub-exam against the type ceilings and singleton rule.

    Args:
        exam_type: Proposed exam type
        max_score: Proposed maximum score
        existing: Sub-exams already defined for the same grade and subject
        exclude_id: Id of the sub-exam being edited, ignored in ``existing``

    Returns:
        SubExamValidationFailure | None: The first failed rule, or None when valid
    """
    exam_type = ExamType(exam_type)

    if max_score is None or max_score <= 0:
        return SubExamValidationFailure(
            kind=FailureKind.MISSING_MAX_SCORE,
            message="Maximum score is required and must be greater than zero",
            exam_type=exam_type,
            max_score=max_score,
        )

    ceiling = EXAM_TYPE_CEILINGS[exam_type]
    if max_score > ceiling:
        return SubExamValidationFailure(
            kind=FailureKind.EXCEEDS_TYPE_CEILING,
            message=f"{EXAM_TYPE_LABELS[exam_type]} maximum score cannot exceed {ceiling:g}",
            exam_type=exam_type,
            max_score=max_score,
            limit=ceiling,
        )

    if exam_type in SINGLETON_TYPES:
        for other in existing:
            if exclude_id is not None and other.id == exclude_id:
                continue
            if ExamType(other.exam_type) == exam_type:
                return SubExamValidationFailure(
                    kind=FailureKind.DUPLICATE_SINGLETON,
                    message=f"Only one {EXAM_TYPE_LABELS[exam_type]} is allowed per subject",
                    exam_type=exam_type,
                    max_score=max_score,
                )

    return None


def subject_max_total(sub_exams: Iterable[Any], exclude_id: Optional[int] = None) -> float:
    return sum(float(se.max_score) for se in sub_exams if exclude_id is None or se.id != exclude_id)


def check_subject_total(
        exam_type: ExamType,
        max_score: float,
        existing: Iterable[Any] = (),
        exclude_id: Optional[int] = None,
        target: Optional[float] = None,
        strict: Optional[bool] = None,
) -> Optional[SubExamValidationFailure]:
    """
    Soft check that a subject's maximum scores still add up to the target.

    A sum different from the target is only logged, unless ``strict`` is on,
    in which case a sum above the target is rejected.
    """
    target = settings.SUBEXAM_TOTAL_TARGET if target is None else target
    strict = settings.SUBEXAM_TOTAL_STRICT if strict is None else strict

    projected = subject_max_total(existing, exclude_id) + float(max_score)
    if projected == target:
        return None

    if strict and projected > target:
        return SubExamValidationFailure(
            kind=FailureKind.EXCEEDS_SUBJECT_TOTAL,
            message=f"Sub-exam maximum scores would total {projected:g}, above {target:g}",
            exam_type=ExamType(exam_type),
            max_score=max_score,
            limit=target,
        )

    logger.warning(f"[SUB-EXAM TOTAL] Subject maximum scores total {projected:g} instead of {target:g}")
    return None


def order_sub_exams(sub_exams: Iterable[Any]) -> List[Any]:
    """Display order: quizzes, assignments, mid exam, general test, then by name."""
    return sorted(sub_exams, key=lambda se: (EXAM_TYPE_ORDER[ExamType(se.exam_type)], se.name.lower()))
