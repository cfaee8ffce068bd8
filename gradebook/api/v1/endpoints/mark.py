from typing import List

from fastapi import APIRouter, Depends, Body, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.api.v1.schemas.mark import BulkMarkResult, MarkResponse, RecordMark, RecordMarksBulk
from gradebook.api.v1.schemas.result import SubjectTermTotal, YearScore
from gradebook.core.database import get_db
from gradebook.core.logger import logger
from gradebook.services.mark import MarkService

router = APIRouter(prefix="/marks", tags=["Mark"])


@router.post("/record/student/{student_id}/subexam/{sub_exam_id}", response_model=MarkResponse)
async def record_score(
        student_id: int,
        sub_exam_id: int,
        data: RecordMark = Body(...),
        db: AsyncSession = Depends(get_db),
):
    """
    Record (upsert) one student's score for a sub-exam in a term.

    Raises:
        HTTPException: 404 - Student, sub-exam or term not found
        HTTPException: 422 - Score out of range
        HTTPException: 500 - Internal server error
    """
    try:
        return await MarkService.record_score(student_id, sub_exam_id, data.term_id, data.score, data.notes, db)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[RECORD SCORE] Unexpected error: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record score"
        ) from e


@router.post("/record/bulk/subexam/{sub_exam_id}", response_model=List[BulkMarkResult])
async def record_scores_bulk(
        sub_exam_id: int,
        data: RecordMarksBulk = Body(...),
        db: AsyncSession = Depends(get_db),
):
    """
    Record scores of several students for one sub-exam; failures are reported per entry.
    """
    try:
        return await MarkService.record_scores_bulk(sub_exam_id, data, db)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[RECORD SCORES BULK] Unexpected error: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record scores"
        ) from e


@router.get("/class/{class_id}/subject/{subject_id}/term/{term_id}", response_model=List[MarkResponse])
async def list_scores(
        class_id: int,
        subject_id: int,
        term_id: int,
        db: AsyncSession = Depends(get_db),
):
    """
    All marks of a class for one subject and term, used to seed the score-entry grid.
    """
    return await MarkService.list_scores_by_class_subject_term(class_id, subject_id, term_id, db)


@router.get("/calculate/term/{term_id}/student/{student_id}/subject/{subject_id}", response_model=SubjectTermTotal)
async def calculate_term_score(
        term_id: int,
        student_id: int,
        subject_id: int,
        db: AsyncSession = Depends(get_db),
):
    return await MarkService.calculate_term_score(term_id, student_id, subject_id, db)


@router.get("/calculate/year/student/{student_id}/subject/{subject_id}", response_model=YearScore)
async def calculate_year_score(
        student_id: int,
        subject_id: int,
        term1_id: int = Query(...),
        term2_id: int = Query(...),
        db: AsyncSession = Depends(get_db),
):
    """
    Year score of a student in a subject over two terms.

    Raises:
        HTTPException: 400 - Same term given twice
        HTTPException: 404 - Student or term not found
    """
    return await MarkService.calculate_year_score(term1_id, term2_id, student_id, subject_id, db)
