from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, constr


class ExamType(str, Enum):
    QUIZ = "quiz"
    ASSIGNMENT = "assignment"
    MID_EXAM = "mid_exam"
    GENERAL_TEST = "general_test"


class CreateSubExam(BaseModel):
    grade_id: int
    subject_id: int
    name: constr(strip_whitespace=True, min_length=1)
    exam_type: ExamType
    max_score: Optional[float] = None


class UpdateSubExam(BaseModel):
    name: Optional[constr(strip_whitespace=True, min_length=1)] = None
    exam_type: Optional[ExamType] = None
    max_score: Optional[float] = None


class SubExamResponse(BaseModel):
    id: int
    grade_id: int
    subject_id: int
    name: str
    exam_type: ExamType
    max_score: float = Field(..., gt=0)
    weight: float

    model_config = ConfigDict(from_attributes=True)
