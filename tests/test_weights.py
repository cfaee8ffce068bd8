from types import SimpleNamespace

import pytest

from gradebook.api.v1.schemas.sub_exam import ExamType
from gradebook.scoring.weights import (
    FailureKind,
    check_subject_total,
    order_sub_exams,
    preset_max_score,
    validate_sub_exam,
)


def sub_exam(id, exam_type, max_score, name="x"):
    return SimpleNamespace(id=id, exam_type=exam_type, max_score=max_score, name=name)


@pytest.mark.parametrize("exam_type, preset", [
    (ExamType.QUIZ, 10),
    (ExamType.ASSIGNMENT, 10),
    (ExamType.MID_EXAM, 20),
    (ExamType.GENERAL_TEST, 40),
])
def test_presets(exam_type, preset):
    assert preset_max_score(exam_type) == preset
    assert validate_sub_exam(exam_type, preset) is None


@pytest.mark.parametrize("exam_type, too_high", [
    ("quiz", 11),
    ("assignment", 10.5),
    ("mid_exam", 21),
    ("general_test", 41),
])
def test_ceiling_rejected(exam_type, too_high):
    failure = validate_sub_exam(exam_type, too_high)

    assert failure.kind == FailureKind.EXCEEDS_TYPE_CEILING
    assert failure.limit == preset_max_score(ExamType(exam_type))


@pytest.mark.parametrize("max_score", [None, 0, -5])
def test_missing_max_score(max_score):
    failure = validate_sub_exam(ExamType.QUIZ, max_score)
    assert failure.kind == FailureKind.MISSING_MAX_SCORE


@pytest.mark.parametrize("exam_type", [ExamType.MID_EXAM, ExamType.GENERAL_TEST])
def test_second_singleton_rejected(exam_type):
    existing = [sub_exam(1, "quiz", 10), sub_exam(2, exam_type.value, 20)]

    failure = validate_sub_exam(exam_type, 20, existing)

    assert failure.kind == FailureKind.DUPLICATE_SINGLETON


def test_quizzes_and_assignments_repeat():
    existing = [sub_exam(1, "quiz", 10), sub_exam(2, "quiz", 10), sub_exam(3, "assignment", 10)]

    assert validate_sub_exam(ExamType.QUIZ, 10, existing) is None
    assert validate_sub_exam(ExamType.ASSIGNMENT, 10, existing) is None


def test_editing_the_singleton_itself_is_allowed():
    existing = [sub_exam(5, "mid_exam", 15)]

    assert validate_sub_exam(ExamType.MID_EXAM, 20, existing, exclude_id=5) is None


def test_subject_total_is_soft_by_default():
    existing = [sub_exam(1, "quiz", 10), sub_exam(2, "mid_exam", 20), sub_exam(3, "general_test", 40)]

    assert check_subject_total(ExamType.QUIZ, 10, existing, strict=False) is None
    assert check_subject_total(ExamType.QUIZ, 10, existing + [sub_exam(4, "quiz", 10)] * 3, strict=False) is None


def test_subject_total_strict_rejects_overflow():
    existing = [sub_exam(i, "quiz", 10) for i in range(1, 4)] + [
        sub_exam(10, "mid_exam", 20),
        sub_exam(11, "general_test", 40),
    ]

    assert check_subject_total(ExamType.ASSIGNMENT, 10, existing, strict=True) is None

    failure = check_subject_total(ExamType.ASSIGNMENT, 10, existing + [sub_exam(12, "assignment", 10)], strict=True)
    assert failure.kind == FailureKind.EXCEEDS_SUBJECT_TOTAL
    assert failure.limit == 100


def test_display_order():
    items = [
        sub_exam(1, "general_test", 40, "General"),
        sub_exam(2, "quiz", 10, "Quiz 2"),
        sub_exam(3, "mid_exam", 20, "Mid"),
        sub_exam(4, "assignment", 10, "Essay"),
        sub_exam(5, "quiz", 10, "quiz 1"),
    ]

    assert [se.id for se in order_sub_exams(items)] == [5, 2, 4, 3, 1]
