from typing import Iterable, List, Optional

import httpx

from gradebook.api.v1.schemas.mark import BulkMarkItem, BulkMarkResult, MarkResponse, RecordMark, RecordMarksBulk
from gradebook.api.v1.schemas.result import SemesterRosterResponse, SubjectTermTotal, TermRosterResponse, YearScore
from gradebook.api.v1.schemas.sub_exam import SubExamResponse
from gradebook.core.config import settings
from gradebook.core.logger import logger


class ScoreStoreClient:
    """
    Async client of the score store API.

    ``record_score`` has the signature the autosave reconciler expects from
    its writer, so an instance method can be passed to it directly.
    """

    def __init__(
            self,
            base_url: Optional[str] = None,
            timeout: Optional[float] = None,
            client: Optional[httpx.AsyncClient] = None,
    ):
        self.base = (base_url or settings.STORE_BASE_URL).rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=settings.STORE_TIMEOUT_SECONDS if timeout is None else timeout
        )

    async def __aenter__(self) -> "ScoreStoreClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs):
        url = f"{self.base}{path}"
        r = await self._client.request(method, url, **kwargs)
        if r.is_error:
            logger.warning(f"[SCORE STORE] {method} {path} -> {r.status_code}")
        r.raise_for_status()
        return r.json()

    async def record_score(
            self,
            student_id: int,
            sub_exam_id: int,
            term_id: int,
            score: float,
            notes: Optional[str] = None,
    ) -> MarkResponse:
        payload = RecordMark(term_id=term_id, score=score, notes=notes)
        data = await self._request(
            "POST",
            f"/marks/record/student/{student_id}/subexam/{sub_exam_id}",
            json=payload.model_dump(),
        )
        return MarkResponse.model_validate(data)

    async def record_scores_bulk(self, sub_exam_id: int, term_id: int, marks: Iterable[BulkMarkItem]) -> List[BulkMarkResult]:
        payload = RecordMarksBulk(term_id=term_id, marks=list(marks))
        data = await self._request("POST", f"/marks/record/bulk/subexam/{sub_exam_id}", json=payload.model_dump())
        return [BulkMarkResult.model_validate(item) for item in data]

    async def list_scores_by_class_subject_term(self, class_id: int, subject_id: int, term_id: int) -> List[MarkResponse]:
        data = await self._request("GET", f"/marks/class/{class_id}/subject/{subject_id}/term/{term_id}")
        return [MarkResponse.model_validate(item) for item in data]

    async def list_sub_exams(self, grade_id: int, subject_id: int) -> List[SubExamResponse]:
        data = await self._request("GET", f"/subexams/grade/{grade_id}/subject/{subject_id}")
        return [SubExamResponse.model_validate(item) for item in data]

    async def calculate_term_score(self, term_id: int, student_id: int, subject_id: int) -> SubjectTermTotal:
        data = await self._request("GET", f"/marks/calculate/term/{term_id}/student/{student_id}/subject/{subject_id}")
        return SubjectTermTotal.model_validate(data)

    async def calculate_year_score(self, term1_id: int, term2_id: int, student_id: int, subject_id: int) -> YearScore:
        data = await self._request(
            "GET",
            f"/marks/calculate/year/student/{student_id}/subject/{subject_id}",
            params={"term1_id": term1_id, "term2_id": term2_id},
        )
        return YearScore.model_validate(data)

    async def get_roster(self, class_id: int, term_id: int) -> TermRosterResponse:
        data = await self._request("GET", f"/results/roster/class/{class_id}/term/{term_id}")
        return TermRosterResponse.model_validate(data)

    async def get_semester_roster(self, class_id: int, term1_id: int, term2_id: int) -> SemesterRosterResponse:
        data = await self._request(
            "GET",
            f"/results/roster/class/{class_id}/semester",
            params={"term1_id": term1_id, "term2_id": term2_id},
        )
        return SemesterRosterResponse.model_validate(data)
