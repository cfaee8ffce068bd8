from collections import defaultdict
from typing import Dict, List, Tuple

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gradebook.api.v1.schemas.result import SemesterRosterResponse, TermRosterResponse
from gradebook.core.logger import logger
from gradebook.models import Mark, SchoolClass, SubExam, Term
from gradebook.scoring.roster import build_semester_roster, build_term_roster


class RosterService:
    @staticmethod
    async def _load_class(class_id: int, term_ids: List[int], db: AsyncSession) -> Tuple[SchoolClass, Dict[int, List[SubExam]], List[Mark]]:
        """
        Load a class with its students and subjects, the sub-exams of those
        subjects for the class grade, and the marks of the requested terms.

        Raises:
            HTTPException: 404 - Class not found
            HTTPException: 500 - Database error
        """
        try:
            result = await db.execute(
                select(SchoolClass)
                .where(SchoolClass.id == class_id)
                .options(
                    selectinload(SchoolClass.students),
                    selectinload(SchoolClass.subjects)
                )
            )
            school_class = result.scalars().first()

            if not school_class:
                logger.warning(f"[ROSTER] Class not found: ID {class_id}")
                raise HTTPException(
                    status_code=404,
                    detail="Class not found"
                )

            subject_ids = [subject.id for subject in school_class.subjects]
            student_ids = [student.id for student in school_class.students]

            sub_exams_by_subject: Dict[int, List[SubExam]] = defaultdict(list)
            if subject_ids:
                sub_exams = await db.execute(
                    select(SubExam).where(
                        SubExam.grade_id == school_class.grade_id,
                        SubExam.subject_id.in_(subject_ids)
                    )
                )
                for sub_exam in sub_exams.scalars().all():
                    sub_exams_by_subject[sub_exam.subject_id].append(sub_exam)

            marks: List[Mark] = []
            if student_ids:
                result = await db.execute(
                    select(Mark).where(
                        Mark.student_id.in_(student_ids),
                        Mark.term_id.in_(term_ids)
                    )
                )
                marks = list(result.scalars().all())

            return school_class, sub_exams_by_subject, marks

        except SQLAlchemyError as e:
            logger.error(f"[ROSTER] Database error for class {class_id}: {str(e)}")
            raise HTTPException(
                status_code=500,
                detail="Failed to load roster data"
            ) from e

    @staticmethod
    async def _get_term(term_id: int, db: AsyncSession) -> Term:
        term = await db.get(Term, term_id)
        if term is None:
            logger.warning(f"[ROSTER] Term not found: ID {term_id}")
            raise HTTPException(
                status_code=404,
                detail="Term not found"
            )
        return term

    @staticmethod
    async def get_roster(class_id: int, term_id: int, db: AsyncSession) -> TermRosterResponse:
        """
        Single-term roster of a class.

        Args:
            class_id: Class identifier
            term_id: Term identifier
            db: Async SQLAlchemy session

        Returns:
            TermRosterResponse: Per-student subject totals, overall average and rank

        Raises:
            HTTPException: 404 - Class or term not found
            HTTPException: 500 - Database error
        """
        term = await RosterService._get_term(term_id, db)
        school_class, sub_exams_by_subject, marks = await RosterService._load_class(class_id, [term_id], db)

        roster = build_term_roster(
            school_class,
            term,
            school_class.students,
            school_class.subjects,
            sub_exams_by_subject,
            marks,
        )
        logger.info(f"[ROSTER] Class {class_id}, term {term_id}: {len(roster.students)} students")
        return roster

    @staticmethod
    async def get_semester_roster(class_id: int, term1_id: int, term2_id: int, db: AsyncSession) -> SemesterRosterResponse:
        """
        Semester roster of a class over two terms.

        Raises:
            HTTPException: 400 - Both terms are the same
            HTTPException: 404 - Class or term not found
            HTTPException: 500 - Database error
        """
        if term1_id == term2_id:
            logger.warning(f"[SEMESTER ROSTER] Same term given twice: ID {term1_id}")
            raise HTTPException(
                status_code=400,
                detail="A semester roster needs two different terms"
            )

        term1 = await RosterService._get_term(term1_id, db)
        term2 = await RosterService._get_term(term2_id, db)
        school_class, sub_exams_by_subject, marks = await RosterService._load_class(class_id, [term1_id, term2_id], db)

        roster = build_semester_roster(
            school_class,
            term1,
            term2,
            school_class.students,
            school_class.subjects,
            sub_exams_by_subject,
            marks,
        )
        logger.info(f"[SEMESTER ROSTER] Class {class_id}, terms {term1_id}/{term2_id}: {len(roster.students)} students")
        return roster
