from types import SimpleNamespace as NS

from gradebook.scoring.roster import build_semester_roster, build_term_roster

CLASS = NS(id=1, name="7A")
TERM1 = NS(id=1, name="Term 1")
TERM2 = NS(id=2, name="Term 2")
STUDENTS = [
    NS(id=1, first_name="Bob", last_name="Stone"),
    NS(id=2, first_name="alice", last_name="Reed"),
    NS(id=3, first_name="Carol", last_name="Moss"),
]
SUBJECTS = [NS(id=1, name="Math", code="MTH"), NS(id=2, name="English", code=None)]
SUB_EXAMS = {
    1: [
        NS(id=11, name="Quiz", exam_type="quiz", max_score=10),
        NS(id=12, name="Mid", exam_type="mid_exam", max_score=20),
        NS(id=13, name="General", exam_type="general_test", max_score=40),
        NS(id=14, name="Project", exam_type="assignment", max_score=30),
    ],
    2: [
        NS(id=21, name="Quiz", exam_type="quiz", max_score=10),
        NS(id=22, name="General", exam_type="general_test", max_score=40),
    ],
}


def mark(student_id, sub_exam_id, score, term_id=1):
    return NS(student_id=student_id, sub_exam_id=sub_exam_id, term_id=term_id, score=score)


def by_id(roster):
    return {s.student_id: s for s in roster.students}


def test_term_roster_totals_and_average():
    scores = [
        mark(1, 11, 9), mark(1, 12, 18),             # Math 27/30 = 90%
        mark(1, 21, 7),                              # English 7/10 = 70%
        mark(2, 11, 10), mark(2, 12, 20), mark(2, 13, 40), mark(2, 14, 30),
        mark(3, 21, 5),
        mark(3, 11, 10, term_id=2),                  # other term, ignored
    ]

    roster = build_term_roster(CLASS, TERM1, STUDENTS, SUBJECTS, SUB_EXAMS, scores)
    rows = by_id(roster)

    bob = rows[1]
    assert [s.term_total for s in bob.subjects] == [27, 7]
    assert [s.grade for s in bob.subjects] == ["A", "C"]
    assert bob.overall_average == 80.0
    assert bob.overall_grade == "B"

    # alice has no English score: averaged over Math only
    alice = rows[2]
    assert alice.subjects[1].term_total == 0
    assert alice.subjects[1].contributing_count == 0
    assert alice.overall_average == 100.0

    carol = rows[3]
    assert carol.subjects[0].term_total == 0
    assert carol.overall_average == 50.0

    assert {sid: r.rank for sid, r in rows.items()} == {2: 1, 1: 2, 3: 3}
    assert {sid: r.rank_label for sid, r in rows.items()} == {2: "1st", 1: "2nd", 3: "3rd"}
    assert roster.school_class.name == "7A"


def test_term_roster_is_rectangular_and_sorted_by_name():
    roster = build_term_roster(CLASS, TERM1, STUDENTS, SUBJECTS, SUB_EXAMS, [])

    assert [s.first_name for s in roster.students] == ["alice", "Bob", "Carol"]
    assert all(len(s.subjects) == 2 for s in roster.students)
    assert all(s.overall_average == 0 and s.overall_grade == "F" for s in roster.students)
    assert all(s.rank == 1 for s in roster.students)
    assert all(s.rank_label == "1st" for s in roster.students)


def test_term_roster_skips_unknown_sub_exam():
    roster = build_term_roster(CLASS, TERM1, STUDENTS, SUBJECTS, SUB_EXAMS, [mark(1, 999, 50), mark(1, 11, 5)])

    assert by_id(roster)[1].subjects[0].term_total == 5


def test_semester_roster():
    scores = [
        # term 1
        mark(1, 11, 10), mark(1, 12, 20), mark(1, 13, 40), mark(1, 14, 30), mark(1, 22, 30),
        mark(2, 11, 10), mark(2, 12, 20), mark(2, 13, 40), mark(2, 14, 30), mark(2, 22, 30),
        mark(3, 13, 20),
        # term 2
        mark(1, 13, 20, term_id=2),
        mark(2, 13, 40, term_id=2), mark(2, 21, 10, term_id=2),
        mark(3, 13, 40, term_id=2), mark(3, 21, 10, term_id=2), mark(3, 12, 20, term_id=2),
    ]

    roster = build_semester_roster(CLASS, TERM1, TERM2, STUDENTS, SUBJECTS, SUB_EXAMS, scores)
    rows = by_id(roster)

    bob_math = rows[1].subjects[0]
    assert (bob_math.term1_total, bob_math.term2_total, bob_math.average_total) == (100, 20, 60)

    def dims(student_id):
        return {row.key: (row.average, row.rank) for row in rows[student_id].rows}

    # term 1: bob and alice tie on 65, alice first by name but both ranked 1
    assert dims(1)["term1"] == (65, 1)
    assert dims(2)["term1"] == (65, 1)
    assert dims(3)["term1"] == (10, 3)

    # term 2: alice 25, carol 35, bob 10
    assert dims(3)["term2"] == (35, 1)
    assert dims(2)["term2"] == (25, 2)
    assert dims(1)["term2"] == (10, 3)

    # average of the two terms, per subject, then over subjects
    assert dims(2)["avg"] == (45, 1)
    assert dims(1)["avg"] == (37.5, 2)
    assert dims(3)["avg"] == (22.5, 3)

    assert [row.label for row in rows[1].rows] == ["Term 1", "Term 2", "Average"]
    assert rows[2].rows[2].grade == "F"
    assert roster.terms.term2.name == "Term 2"
