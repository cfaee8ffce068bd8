from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RecordMark(BaseModel):
    term_id: int
    score: float = Field(..., allow_inf_nan=False)
    notes: Optional[str] = None


class BulkMarkItem(BaseModel):
    student_id: int
    score: float = Field(..., allow_inf_nan=False)
    notes: Optional[str] = None


class RecordMarksBulk(BaseModel):
    term_id: int
    marks: List[BulkMarkItem]


class BulkMarkResult(BaseModel):
    student_id: int
    success: bool
    detail: Optional[str] = None


class MarkResponse(BaseModel):
    id: Optional[int] = None
    student_id: int
    sub_exam_id: int
    term_id: int
    score: float
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
