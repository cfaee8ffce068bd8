"""
Roster assembly for a class: one term, or a semester made of two terms.

Every student gets a value for every subject of the class, so the rows stay
rectangular; a subject without any recorded score reports a total of 0.
"""
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from gradebook.api.v1.schemas.result import (
    NamedRef,
    RosterStudent,
    RosterSubject,
    SemesterRosterResponse,
    SemesterRow,
    SemesterStudent,
    SemesterSubject,
    SemesterTerms,
    SubjectTermTotal,
    TermRosterResponse,
)
from gradebook.core.errors import AggregationInconsistency
from gradebook.core.logger import logger
from gradebook.scoring.aggregation import band_grade, compute_subject_term_total
from gradebook.scoring.ranking import RankEntry, format_rank, rank

SEMESTER_DIMENSIONS = ("term1", "term2", "avg")


def student_name(student: Any) -> str:
    return f"{student.first_name} {student.last_name}"


def _sorted_students(students: Iterable[Any]) -> List[Any]:
    return sorted(students, key=lambda s: (student_name(s).lower(), s.id))


def _group_scores(
        scores: Iterable[Any],
        term_id: int,
        subject_of: Mapping[int, int],
) -> Dict[Tuple[int, int], List[Any]]:
    """Scores of one term keyed by (student_id, subject_id)."""
    grouped: Dict[Tuple[int, int], List[Any]] = defaultdict(list)
    for score in scores:
        if score.term_id != term_id:
            continue
        subject_id = subject_of.get(score.sub_exam_id)
        if subject_id is None:
            logger.warning(f"[ROSTER] {AggregationInconsistency(score.sub_exam_id)}, excluded")
            continue
        grouped[(score.student_id, subject_id)].append(score)
    return grouped


def _subject_index(sub_exams_by_subject: Mapping[int, Iterable[Any]]) -> Dict[int, int]:
    return {
        sub_exam.id: subject_id
        for subject_id, sub_exams in sub_exams_by_subject.items()
        for sub_exam in sub_exams
    }


def compute_term_totals(
        students: Iterable[Any],
        subjects: Iterable[Any],
        sub_exams_by_subject: Mapping[int, Iterable[Any]],
        scores: Iterable[Any],
        term_id: int,
) -> Dict[Tuple[int, int], SubjectTermTotal]:
    """Subject term total of every (student_id, subject_id) pair of the class."""
    sub_exams_by_subject = {k: list(v) for k, v in sub_exams_by_subject.items()}
    grouped = _group_scores(scores, term_id, _subject_index(sub_exams_by_subject))

    totals: Dict[Tuple[int, int], SubjectTermTotal] = {}
    for student in students:
        for subject in subjects:
            totals[(student.id, subject.id)] = compute_subject_term_total(
                grouped.get((student.id, subject.id), []),
                sub_exams_by_subject.get(subject.id, []),
            )
    return totals


def build_term_roster(
        school_class: Any,
        term: Any,
        students: Iterable[Any],
        subjects: Iterable[Any],
        sub_exams_by_subject: Mapping[int, Iterable[Any]],
        scores: Iterable[Any],
) -> TermRosterResponse:
    """
    Single-term roster of a class.

    The overall average of a student is the mean percentage over the subjects
    that have at least one recorded score; students are ranked on it.

    Args:
        school_class: Class (``id``, ``name``)
        term: Term (``id``, ``name``)
        students: Enrolled students (``id``, ``first_name``, ``last_name``)
        subjects: Subjects taught in the class (``id``, ``name``, ``code``)
        sub_exams_by_subject: Sub-exams of each subject for the class grade
        scores: Score records; scores of other terms are ignored

    Returns:
        TermRosterResponse: Students sorted by name, with per-subject totals and rank
    """
    students = _sorted_students(students)
    subjects = list(subjects)
    totals = compute_term_totals(students, subjects, sub_exams_by_subject, scores, term.id)

    rows = []
    for student in students:
        row_subjects = []
        graded_percentages = []
        for subject in subjects:
            total = totals[(student.id, subject.id)]
            row_subjects.append(RosterSubject(
                subject_id=subject.id,
                subject_name=subject.name,
                subject_code=getattr(subject, "code", None),
                term_total=total.total,
                percentage=total.percentage,
                contributing_count=total.contributing_count,
                grade=total.grade,
            ))
            if total.contributing_count:
                graded_percentages.append(total.percentage)

        overall_average = sum(graded_percentages) / len(graded_percentages) if graded_percentages else 0.0
        rows.append((student, row_subjects, overall_average))

    ranks = rank(
        RankEntry(student_id=student.id, name=student_name(student), score=average)
        for student, _, average in rows
    )

    return TermRosterResponse(
        school_class=NamedRef(id=school_class.id, name=school_class.name),
        term=NamedRef(id=term.id, name=term.name),
        students=[
            RosterStudent(
                student_id=student.id,
                first_name=student.first_name,
                last_name=student.last_name,
                subjects=row_subjects,
                overall_average=average,
                overall_grade=band_grade(average),
                rank=ranks[student.id],
                rank_label=format_rank(ranks[student.id]),
            )
            for student, row_subjects, average in rows
        ],
    )


def build_semester_roster(
        school_class: Any,
        term1: Any,
        term2: Any,
        students: Iterable[Any],
        subjects: Iterable[Any],
        sub_exams_by_subject: Mapping[int, Iterable[Any]],
        scores: Iterable[Any],
) -> SemesterRosterResponse:
    """
    Semester roster of a class over two terms.

    Each subject carries both term totals and their mean. Each student gets
    three rows (Term 1, Term 2, Average) whose value is the mean of that
    dimension over all subjects of the class, ranked independently.
    """
    students = _sorted_students(students)
    subjects = list(subjects)
    sub_exams_by_subject = {k: list(v) for k, v in sub_exams_by_subject.items()}
    scores = list(scores)

    totals1 = compute_term_totals(students, subjects, sub_exams_by_subject, scores, term1.id)
    totals2 = compute_term_totals(students, subjects, sub_exams_by_subject, scores, term2.id)

    per_student: Dict[int, List[SemesterSubject]] = {}
    averages: Dict[str, Dict[int, float]] = {key: {} for key in SEMESTER_DIMENSIONS}

    for student in students:
        row_subjects = []
        for subject in subjects:
            t1 = totals1[(student.id, subject.id)].total
            t2 = totals2[(student.id, subject.id)].total
            row_subjects.append(SemesterSubject(
                subject_id=subject.id,
                subject_name=subject.name,
                subject_code=getattr(subject, "code", None),
                term1_total=t1,
                term2_total=t2,
                average_total=(t1 + t2) / 2,
            ))
        per_student[student.id] = row_subjects

        count = len(row_subjects)
        averages["term1"][student.id] = sum(s.term1_total for s in row_subjects) / count if count else 0.0
        averages["term2"][student.id] = sum(s.term2_total for s in row_subjects) / count if count else 0.0
        averages["avg"][student.id] = sum(s.average_total for s in row_subjects) / count if count else 0.0

    ranks = {
        key: rank(
            RankEntry(student_id=student.id, name=student_name(student), score=averages[key][student.id])
            for student in students
        )
        for key in SEMESTER_DIMENSIONS
    }
    labels = {"term1": term1.name, "term2": term2.name, "avg": "Average"}

    return SemesterRosterResponse(
        school_class=NamedRef(id=school_class.id, name=school_class.name),
        terms=SemesterTerms(
            term1=NamedRef(id=term1.id, name=term1.name),
            term2=NamedRef(id=term2.id, name=term2.name),
        ),
        students=[
            SemesterStudent(
                student_id=student.id,
                first_name=student.first_name,
                last_name=student.last_name,
                subjects=per_student[student.id],
                rows=[
                    SemesterRow(
                        key=key,
                        label=labels[key],
                        average=averages[key][student.id],
                        grade=band_grade(averages[key][student.id]),
                        rank=ranks[key][student.id],
                        rank_label=format_rank(ranks[key][student.id]),
                    )
                    for key in SEMESTER_DIMENSIONS
                ],
            )
            for student in students
        ],
    )
