from .mark import Mark
from .school_class import SchoolClass, class_subject
from .student import Student
from .sub_exam import SubExam
from .subject import Subject
from .term import Term

__all__ = [
    "Mark",
    "SchoolClass",
    "Student",
    "SubExam",
    "Subject",
    "Term",
    "class_subject",
]
