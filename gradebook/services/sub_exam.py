from typing import List

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.api.v1.schemas.sub_exam import CreateSubExam, UpdateSubExam
from gradebook.core.logger import logger
from gradebook.models import SubExam, Subject
from gradebook.scoring.weights import (
    SubExamValidationFailure,
    check_subject_total,
    order_sub_exams,
    preset_max_score,
    validate_sub_exam,
)


def _reject(failure: SubExamValidationFailure) -> HTTPException:
    logger.warning(f"[SUB-EXAM VALIDATION] {failure.kind.value}: {failure.message}")
    return HTTPException(
        status_code=422,
        detail=failure.model_dump(mode="json")
    )


class SubExamService:
    @staticmethod
    async def list_sub_exams(grade_id: int, subject_id: int, db: AsyncSession) -> List[SubExam]:
        """
        Sub-exams of a grade and subject in display order.

        Args:
            grade_id: Grade identifier
            subject_id: Subject identifier
            db: Async SQLAlchemy session

        Returns:
            List[SubExam]: Quizzes, assignments, mid exam, general test

        Raises:
            HTTPException: 500 - Database error
        """
        try:
            result = await db.execute(
                select(SubExam).where(
                    SubExam.grade_id == grade_id,
                    SubExam.subject_id == subject_id
                )
            )
            sub_exams = order_sub_exams(result.scalars().all())
            logger.info(f"[LIST SUB-EXAMS] {len(sub_exams)} sub-exams for grade {grade_id}, subject {subject_id}")
            return sub_exams

        except SQLAlchemyError as e:
            logger.error(f"[LIST SUB-EXAMS] Database error: {str(e)}")
            raise HTTPException(
                status_code=500,
                detail="Failed to load sub-exams"
            ) from e

    @staticmethod
    async def create_sub_exam(data: CreateSubExam, db: AsyncSession) -> SubExam:
        """
        Create a sub-exam after checking type ceilings and the singleton rule.

        A missing max score falls back to the exam type preset. The weight is
        always set to the max score.

        Raises:
            HTTPException: 404 - Subject not found
            HTTPException: 422 - Validation failure (``detail.kind`` names the rule)
            HTTPException: 500 - Database error
        """
        if await db.get(Subject, data.subject_id) is None:
            logger.warning(f"[CREATE SUB-EXAM] Subject not found: ID {data.subject_id}")
            raise HTTPException(status_code=404, detail="Subject not found")

        max_score = data.max_score if data.max_score is not None else preset_max_score(data.exam_type)
        existing = await SubExamService.list_sub_exams(data.grade_id, data.subject_id, db)

        failure = validate_sub_exam(data.exam_type, max_score, existing) \
            or check_subject_total(data.exam_type, max_score, existing)
        if failure:
            raise _reject(failure)

        try:
            sub_exam = SubExam(
                grade_id=data.grade_id,
                subject_id=data.subject_id,
                name=data.name,
                exam_type=data.exam_type.value,
                max_score=max_score,
                weight=max_score,
            )
            db.add(sub_exam)
            await db.commit()
            await db.refresh(sub_exam)

            logger.info(f"[CREATE SUB-EXAM] Created sub-exam ID {sub_exam.id} ({sub_exam.exam_type}, max {max_score:g})")
            return sub_exam

        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"[CREATE SUB-EXAM] Database error: {str(e)}")
            raise HTTPException(
                status_code=500,
                detail="Failed to create sub-exam"
            ) from e

    @staticmethod
    async def update_sub_exam(sub_exam_id: int, data: UpdateSubExam, db: AsyncSession) -> SubExam:
        """
        Update a sub-exam, re-validating the resulting type and max score.

        Raises:
            HTTPException: 404 - Sub-exam not found
            HTTPException: 422 - Validation failure
            HTTPException: 500 - Database error
        """
        sub_exam = await db.get(SubExam, sub_exam_id)
        if sub_exam is None:
            logger.warning(f"[UPDATE SUB-EXAM] Sub-exam not found: ID {sub_exam_id}")
            raise HTTPException(status_code=404, detail="Sub-exam not found")

        exam_type = data.exam_type if data.exam_type is not None else sub_exam.exam_type
        max_score = data.max_score if data.max_score is not None else sub_exam.max_score
        existing = await SubExamService.list_sub_exams(sub_exam.grade_id, sub_exam.subject_id, db)

        failure = validate_sub_exam(exam_type, max_score, existing, exclude_id=sub_exam.id) \
            or check_subject_total(exam_type, max_score, existing, exclude_id=sub_exam.id)
        if failure:
            raise _reject(failure)

        try:
            if data.name is not None:
                sub_exam.name = data.name
            sub_exam.exam_type = getattr(exam_type, "value", exam_type)
            sub_exam.max_score = max_score
            sub_exam.weight = max_score

            await db.commit()
            await db.refresh(sub_exam)

            logger.info(f"[UPDATE SUB-EXAM] Updated sub-exam ID {sub_exam.id}")
            return sub_exam

        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"[UPDATE SUB-EXAM] Database error: {str(e)}")
            raise HTTPException(
                status_code=500,
                detail="Failed to update sub-exam"
            ) from e

    @staticmethod
    async def delete_sub_exam(sub_exam_id: int, db: AsyncSession) -> None:
        """
        Delete a sub-exam. Its recorded marks are left in place and are
        excluded from aggregation from then on.

        Raises:
            HTTPException: 404 - Sub-exam not found
            HTTPException: 500 - Database error
        """
        sub_exam = await db.get(SubExam, sub_exam_id)
        if sub_exam is None:
            logger.warning(f"[DELETE SUB-EXAM] Sub-exam not found: ID {sub_exam_id}")
            raise HTTPException(status_code=404, detail="Sub-exam not found")

        try:
            await db.delete(sub_exam)
            await db.commit()
            logger.info(f"[DELETE SUB-EXAM] Deleted sub-exam ID {sub_exam_id}")

        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"[DELETE SUB-EXAM] Database error: {str(e)}")
            raise HTTPException(
                status_code=500,
                detail="Failed to delete sub-exam"
            ) from e
