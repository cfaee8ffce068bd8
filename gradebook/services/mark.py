from typing import Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.api.v1.schemas.mark import BulkMarkResult, RecordMarksBulk
from gradebook.api.v1.schemas.result import SubjectTermTotal, YearScore
from gradebook.core.errors import ScoreValidationError
from gradebook.core.logger import logger
from gradebook.models import Mark, Student, SubExam, Term
from gradebook.scoring.aggregation import compute_subject_term_total, compute_year_score


class MarkService:
    @staticmethod
    async def _upsert(
            student_id: int,
            sub_exam: SubExam,
            term_id: int,
            score: float,
            notes: Optional[str],
            db: AsyncSession,
            mark: Optional[Mark] = None,
    ) -> Mark:
        # NaN fails the chained comparison
        if score is None or not (0 <= score <= sub_exam.max_score):
            raise ScoreValidationError(score, sub_exam.max_score)

        if mark is None:
            result = await db.execute(
                select(Mark).where(
                    Mark.student_id == student_id,
                    Mark.sub_exam_id == sub_exam.id,
                    Mark.term_id == term_id
                )
            )
            mark = result.scalars().first()

        if mark:
            mark.score = score
            mark.notes = notes
        else:
            mark = Mark(
                student_id=student_id,
                sub_exam_id=sub_exam.id,
                term_id=term_id,
                score=score,
                notes=notes
            )
            db.add(mark)
        return mark

    @staticmethod
    async def _require(model, record_id: int, label: str, db: AsyncSession):
        record = await db.get(model, record_id)
        if record is None:
            logger.warning(f"[RECORD SCORE] {label} not found: ID {record_id}")
            raise HTTPException(
                status_code=404,
                detail=f"{label} not found"
            )
        return record

    @staticmethod
    async def record_score(
            student_id: int,
            sub_exam_id: int,
            term_id: int,
            score: float,
            notes: Optional[str],
            db: AsyncSession,
    ) -> Mark:
        """
        Record (upsert) one score.

        The score bounds are checked again here; the client-side check is only
        an optimization.

        Args:
            student_id: Student identifier
            sub_exam_id: Sub-exam identifier
            term_id: Term identifier
            score: Score, between 0 and the sub-exam max score
            notes: Optional free-text notes
            db: Async SQLAlchemy session

        Returns:
            Mark: The stored mark

        Raises:
            HTTPException: 404 - Student, sub-exam or term not found
            HTTPException: 422 - Score out of range
            HTTPException: 500 - Database error
        """
        await MarkService._require(Student, student_id, "Student", db)
        await MarkService._require(Term, term_id, "Term", db)
        sub_exam = await MarkService._require(SubExam, sub_exam_id, "Sub-exam", db)

        try:
            mark = await MarkService._upsert(student_id, sub_exam, term_id, score, notes, db)
            await db.commit()
            await db.refresh(mark)

            logger.info(f"[RECORD SCORE] Student {student_id}, sub-exam {sub_exam_id}, term {term_id}: {score}")
            return mark

        except ScoreValidationError as e:
            logger.warning(f"[RECORD SCORE] {str(e)}")
            raise HTTPException(
                status_code=422,
                detail=str(e)
            ) from e
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"[RECORD SCORE] Database error: {str(e)}")
            raise HTTPException(
                status_code=500,
                detail="Failed to record score"
            ) from e

    @staticmethod
    async def record_scores_bulk(sub_exam_id: int, data: RecordMarksBulk, db: AsyncSession) -> List[BulkMarkResult]:
        """
        Record scores of several students for one sub-exam.

        Invalid entries are reported per student and do not block the others.

        Returns:
            List[BulkMarkResult]: One result per submitted entry, in order

        Raises:
            HTTPException: 404 - Sub-exam or term not found
            HTTPException: 500 - Database error
        """
        await MarkService._require(Term, data.term_id, "Term", db)
        sub_exam = await MarkService._require(SubExam, sub_exam_id, "Sub-exam", db)

        results: List[BulkMarkResult] = []
        # marks added in this batch are not flushed yet, so a repeated student must reuse them
        batch: Dict[int, Mark] = {}
        try:
            for item in data.marks:
                if await db.get(Student, item.student_id) is None:
                    results.append(BulkMarkResult(student_id=item.student_id, success=False, detail="Student not found"))
                    continue
                try:
                    batch[item.student_id] = await MarkService._upsert(
                        item.student_id, sub_exam, data.term_id, item.score, item.notes, db,
                        mark=batch.get(item.student_id),
                    )
                except ScoreValidationError as e:
                    results.append(BulkMarkResult(student_id=item.student_id, success=False, detail=str(e)))
                    continue
                results.append(BulkMarkResult(student_id=item.student_id, success=True))

            await db.commit()
            saved = sum(1 for r in results if r.success)
            logger.info(f"[RECORD SCORES BULK] Sub-exam {sub_exam_id}: saved {saved} of {len(results)}")
            return results

        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"[RECORD SCORES BULK] Database error: {str(e)}")
            raise HTTPException(
                status_code=500,
                detail="Failed to record scores"
            ) from e

    @staticmethod
    async def list_scores_by_class_subject_term(
            class_id: int,
            subject_id: int,
            term_id: int,
            db: AsyncSession,
    ) -> List[Mark]:
        """
        Marks of every student of a class for one subject and term.

        Marks of deleted sub-exams are not returned.

        Raises:
            HTTPException: 500 - Database error
        """
        try:
            result = await db.execute(
                select(Mark)
                .join(Student, Student.id == Mark.student_id)
                .join(SubExam, SubExam.id == Mark.sub_exam_id)
                .where(
                    Student.class_id == class_id,
                    SubExam.subject_id == subject_id,
                    Mark.term_id == term_id
                )
                .order_by(Mark.student_id, Mark.sub_exam_id)
            )
            marks = result.scalars().all()
            logger.info(f"[LIST SCORES] {len(marks)} marks for class {class_id}, subject {subject_id}, term {term_id}")
            return list(marks)

        except SQLAlchemyError as e:
            logger.error(f"[LIST SCORES] Database error: {str(e)}")
            raise HTTPException(
                status_code=500,
                detail="Failed to load scores"
            ) from e

    @staticmethod
    async def calculate_term_score(
            term_id: int,
            student_id: int,
            subject_id: int,
            db: AsyncSession,
    ) -> SubjectTermTotal:
        """
        Subject term total of one student, with its per-sub-exam breakdown.

        Raises:
            HTTPException: 404 - Student not found
            HTTPException: 500 - Database error
        """
        student = await MarkService._require(Student, student_id, "Student", db)
        grade_id = (await student.awaitable_attrs.school_class).grade_id

        try:
            sub_exams = (await db.execute(
                select(SubExam).where(
                    SubExam.grade_id == grade_id,
                    SubExam.subject_id == subject_id
                )
            )).scalars().all()
            marks = (await db.execute(
                select(Mark).where(
                    Mark.student_id == student_id,
                    Mark.term_id == term_id
                )
            )).scalars().all()

        except SQLAlchemyError as e:
            logger.error(f"[CALCULATE TERM SCORE] Database error: {str(e)}")
            raise HTTPException(
                status_code=500,
                detail="Failed to calculate term score"
            ) from e

        subject_exam_ids = {se.id for se in sub_exams}

        total = compute_subject_term_total(
            [m for m in marks if m.sub_exam_id in subject_exam_ids],
            sub_exams,
        )
        logger.info(
            f"[CALCULATE TERM SCORE] Student {student_id}, subject {subject_id}, term {term_id}: "
            f"{total.total:g}/{total.max_total:g}"
        )
        return total

    @staticmethod
    async def calculate_year_score(
            term1_id: int,
            term2_id: int,
            student_id: int,
            subject_id: int,
            db: AsyncSession,
    ) -> YearScore:
        """
        Year score of one student in a subject: both term totals, their mean and its grade.

        Args:
            term1_id: First term of the year
            term2_id: Second term of the year
            student_id: Student identifier
            subject_id: Subject identifier
            db: Async SQLAlchemy session

        Returns:
            YearScore: Term totals, year average, grade and both term breakdowns

        Raises:
            HTTPException: 400 - Both terms are the same
            HTTPException: 404 - Student or term not found
            HTTPException: 500 - Database error
        """
        if term1_id == term2_id:
            logger.warning(f"[CALCULATE YEAR SCORE] Same term given twice: ID {term1_id}")
            raise HTTPException(
                status_code=400,
                detail="A year score needs two different terms"
            )

        await MarkService._require(Term, term1_id, "Term", db)
        await MarkService._require(Term, term2_id, "Term", db)

        term1 = await MarkService.calculate_term_score(term1_id, student_id, subject_id, db)
        term2 = await MarkService.calculate_term_score(term2_id, student_id, subject_id, db)

        year = compute_year_score(term1, term2)
        logger.info(
            f"[CALCULATE YEAR SCORE] Student {student_id}, subject {subject_id}: "
            f"{year.year_average:g} ({year.grade})"
        )
        return year
