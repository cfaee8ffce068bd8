from typing import List

from fastapi import APIRouter, Depends, Body, status
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.api.v1.schemas.sub_exam import CreateSubExam, ExamType, SubExamResponse, UpdateSubExam
from gradebook.core.database import get_db
from gradebook.scoring.weights import preset_max_score
from gradebook.services.sub_exam import SubExamService

router = APIRouter(prefix="/subexams", tags=["SubExam"])


@router.get("/grade/{grade_id}/subject/{subject_id}", response_model=List[SubExamResponse])
async def list_sub_exams(
        grade_id: int,
        subject_id: int,
        db: AsyncSession = Depends(get_db),
):
    """
    Sub-exams of a grade and subject, quizzes first and general test last.
    """
    return await SubExamService.list_sub_exams(grade_id, subject_id, db)


@router.get("/presets")
async def get_presets():
    """
    Default maximum score of each exam type.
    """
    return {exam_type.value: preset_max_score(exam_type) for exam_type in ExamType}


@router.post("/", response_model=SubExamResponse, status_code=status.HTTP_201_CREATED)
async def create_sub_exam(
        data: CreateSubExam = Body(...),
        db: AsyncSession = Depends(get_db),
):
    """
    Create a sub-exam.

    Raises:
        HTTPException: 404 - Subject not found
        HTTPException: 422 - Type ceiling exceeded, duplicate mid exam / general test,
            missing max score, or (strict mode) subject total above target
    """
    return await SubExamService.create_sub_exam(data, db)


@router.patch("/{sub_exam_id}", response_model=SubExamResponse)
async def update_sub_exam(
        sub_exam_id: int,
        data: UpdateSubExam = Body(...),
        db: AsyncSession = Depends(get_db),
):
    return await SubExamService.update_sub_exam(sub_exam_id, data, db)


@router.delete("/{sub_exam_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_sub_exam(
        sub_exam_id: int,
        db: AsyncSession = Depends(get_db),
):
    await SubExamService.delete_sub_exam(sub_exam_id, db)
