from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.api.v1.schemas.result import SemesterRosterResponse, TermRosterResponse
from gradebook.core.database import get_db
from gradebook.services.roster import RosterService

router = APIRouter(prefix="/results", tags=["Result"])


@router.get("/roster/class/{class_id}/term/{term_id}", response_model=TermRosterResponse)
async def get_roster(
        class_id: int,
        term_id: int,
        db: AsyncSession = Depends(get_db),
):
    """
    Single-term roster: per-subject totals and grades, overall average, rank.

    Raises:
        HTTPException: 404 - Class or term not found
    """
    return await RosterService.get_roster(class_id, term_id, db)


@router.get("/roster/class/{class_id}/semester", response_model=SemesterRosterResponse)
async def get_semester_roster(
        class_id: int,
        term1_id: int = Query(...),
        term2_id: int = Query(...),
        db: AsyncSession = Depends(get_db),
):
    """
    Semester roster: Term 1, Term 2 and Average rows per student, each ranked on its own.

    Raises:
        HTTPException: 400 - Same term given twice
        HTTPException: 404 - Class or term not found
    """
    return await RosterService.get_semester_roster(class_id, term1_id, term2_id, db)
