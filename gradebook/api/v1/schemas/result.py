from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from gradebook.api.v1.schemas.sub_exam import ExamType


class SubExamBreakdown(BaseModel):
    sub_exam_id: int
    sub_exam_name: str
    exam_type: ExamType
    score: float
    max_score: float


class TypeSubtotal(BaseModel):
    total: float = 0.0
    max_total: float = 0.0


class SubjectTermTotal(BaseModel):
    total: float
    max_total: float
    percentage: float
    contributing_count: int
    grade: str
    breakdown: List[SubExamBreakdown] = []
    subtotals: Dict[str, TypeSubtotal] = {}


class YearScore(BaseModel):
    term1_total: float
    term2_total: float
    year_average: float
    grade: str
    term1_details: Optional[SubjectTermTotal] = None
    term2_details: Optional[SubjectTermTotal] = None


class NamedRef(BaseModel):
    id: int
    name: str


class RosterSubject(BaseModel):
    subject_id: int
    subject_name: str
    subject_code: Optional[str] = None
    term_total: float
    percentage: float
    contributing_count: int
    grade: str


class RosterStudent(BaseModel):
    student_id: int
    first_name: str
    last_name: str
    subjects: List[RosterSubject]
    overall_average: float
    overall_grade: str
    rank: int
    rank_label: str


class TermRosterResponse(BaseModel):
    school_class: NamedRef = Field(..., alias="class")
    term: NamedRef
    students: List[RosterStudent]

    model_config = ConfigDict(populate_by_name=True)


class SemesterSubject(BaseModel):
    subject_id: int
    subject_name: str
    subject_code: Optional[str] = None
    term1_total: float
    term2_total: float
    average_total: float


class SemesterRow(BaseModel):
    key: str
    label: str
    average: float
    grade: str
    rank: int
    rank_label: str


class SemesterStudent(BaseModel):
    student_id: int
    first_name: str
    last_name: str
    subjects: List[SemesterSubject]
    rows: List[SemesterRow]


class SemesterTerms(BaseModel):
    term1: NamedRef
    term2: NamedRef


class SemesterRosterResponse(BaseModel):
    school_class: NamedRef = Field(..., alias="class")
    terms: SemesterTerms
    students: List[SemesterStudent]

    model_config = ConfigDict(populate_by_name=True)
