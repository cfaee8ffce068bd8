"""
Autosave reconciliation for the score-entry grid.

Each (student, sub-exam) cell keeps the value the user typed (pending) and
the value the score store last acknowledged (confirmed). Edits are saved
after a per-cell debounce; at most one write per cell is in flight at any
time; a bulk flush saves every dirty cell concurrently.

Status of a cell::

    saved -> unsaved -> saving -> saved
                           \\-> unsaved   (write failed, no automatic retry)
"""
import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Set, Tuple

from pydantic import BaseModel

from gradebook.api.v1.schemas.mark import MarkResponse
from gradebook.core.config import settings
from gradebook.core.errors import AggregationInconsistency, ScoreValidationError, TransientWriteError
from gradebook.core.logger import logger

CellKey = Tuple[int, int]
ScoreWriter = Callable[[int, int, int, float, Optional[str]], Awaitable[Any]]


class CellStatus(str, Enum):
    SAVED = "saved"
    SAVING = "saving"
    UNSAVED = "unsaved"


class AutosaveCell:
    def __init__(self, student_id: int, sub_exam_id: int, max_score: float):
        self.student_id = student_id
        self.sub_exam_id = sub_exam_id
        self.max_score = max_score
        self.pending_value: Optional[float] = None
        self.confirmed_value: Optional[float] = None
        self.notes: Optional[str] = None
        self.status = CellStatus.SAVED
        self.error: Optional[Exception] = None

    @property
    def key(self) -> CellKey:
        return self.student_id, self.sub_exam_id

    @property
    def value(self) -> Optional[float]:
        """Value shown and aggregated: the pending edit if any, else the confirmed one."""
        return self.pending_value if self.pending_value is not None else self.confirmed_value

    @property
    def dirty(self) -> bool:
        return self.pending_value is not None and self.pending_value != self.confirmed_value

    @property
    def invalid(self) -> bool:
        return isinstance(self.error, ScoreValidationError)

    def in_bounds(self, value: Optional[float]) -> bool:
        return value is not None and 0 <= value <= self.max_score

    def __repr__(self) -> str:
        return (
            f"AutosaveCell(student_id={self.student_id}, sub_exam_id={self.sub_exam_id}, "
            f"pending={self.pending_value}, confirmed={self.confirmed_value}, status={self.status.value})"
        )


class FlushResult(BaseModel):
    saved: List[CellKey] = []
    failed: List[CellKey] = []
    invalid: List[CellKey] = []
    skipped: List[CellKey] = []


class AutosaveReconciler:
    """
    Owns the edited score matrix of one (class, subject, term) grid.

    Args:
        term_id: Term the grid records scores for
        write: Async ``record_score(student_id, sub_exam_id, term_id, score, notes)``
        sub_exams: Sub-exams of the grid; their ``max_score`` bounds every cell
        debounce_seconds: Delay between the last edit of a cell and its save
        on_status: Called with the cell after every status change
    """

    def __init__(
            self,
            term_id: int,
            write: ScoreWriter,
            sub_exams: Iterable[Any],
            debounce_seconds: Optional[float] = None,
            on_status: Optional[Callable[[AutosaveCell], None]] = None,
    ):
        self.term_id = term_id
        self._write = write
        self._max_scores = {se.id: float(se.max_score) for se in sub_exams}
        self.debounce_seconds = settings.AUTOSAVE_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        self._on_status = on_status

        self._cells: Dict[CellKey, AutosaveCell] = {}
        self._timers: Dict[CellKey, asyncio.Task] = {}
        self._in_flight: Set[CellKey] = set()
        self._deferred: Set[CellKey] = set()
        self._tasks: Set[asyncio.Task] = set()

    # reads

    def cell(self, student_id: int, sub_exam_id: int) -> Optional[AutosaveCell]:
        return self._cells.get((student_id, sub_exam_id))

    def value(self, student_id: int, sub_exam_id: int) -> Optional[float]:
        cell = self.cell(student_id, sub_exam_id)
        return cell.value if cell else None

    def status(self, student_id: int, sub_exam_id: int) -> Optional[CellStatus]:
        cell = self.cell(student_id, sub_exam_id)
        return cell.status if cell else None

    @property
    def cells(self) -> List[AutosaveCell]:
        return list(self._cells.values())

    @property
    def in_flight(self) -> Set[CellKey]:
        return set(self._in_flight)

    def snapshot(self) -> List[MarkResponse]:
        """Derived scores of every cell, safe to hand to the aggregation functions."""
        return [
            MarkResponse(
                student_id=cell.student_id,
                sub_exam_id=cell.sub_exam_id,
                term_id=self.term_id,
                score=cell.value,
                notes=cell.notes,
            )
            for cell in self._cells.values()
            if cell.value is not None
        ]

    # writes

    def seed(self, scores: Iterable[Any]) -> None:
        """
        Load confirmed values fetched from the score store.

        Cells with an unsaved local edit keep their pending value.
        """
        seeded = 0
        for score in scores:
            if score.term_id != self.term_id or score.sub_exam_id not in self._max_scores:
                continue
            cell = self._get_or_create(score.student_id, score.sub_exam_id)
            cell.confirmed_value = float(score.score)
            cell.notes = score.notes
            if not cell.dirty and cell.key not in self._in_flight:
                cell.pending_value = None
                self._set_status(cell, CellStatus.SAVED)
            seeded += 1
        logger.debug(f"[AUTOSAVE] Seeded {seeded} confirmed scores for term {self.term_id}")

    def edit(self, student_id: int, sub_exam_id: int, value: float) -> AutosaveCell:
        """
        Record a user edit and (re)arm the cell's debounce timer.

        Must be called from a running event loop.
        """
        cell = self._get_or_create(student_id, sub_exam_id)
        cell.pending_value = float(value)
        cell.error = None
        self._set_status(cell, CellStatus.UNSAVED)
        self._arm(cell.key)
        return cell

    async def flush_all(self) -> FlushResult:
        """
        Save every dirty, valid cell concurrently ("Save All").

        Never raises for individual failures: failed cells are left unsaved
        and reported in the result.
        """
        result = FlushResult()
        jobs: List[Tuple[AutosaveCell, float]] = []

        for key, cell in self._cells.items():
            if not cell.dirty:
                continue
            if not cell.in_bounds(cell.pending_value):
                self._cancel_timer(key)
                self._reject(cell)
                result.invalid.append(key)
                continue
            if key in self._in_flight:
                result.skipped.append(key)
                continue
            self._cancel_timer(key)
            self._begin(cell)
            jobs.append((cell, cell.pending_value))

        logger.info(f"[AUTOSAVE] Flushing {len(jobs)} cells for term {self.term_id}")
        outcomes = await asyncio.gather(*(self._send(cell, value) for cell, value in jobs))

        for (cell, _), ok in zip(jobs, outcomes):
            (result.saved if ok else result.failed).append(cell.key)

        if result.failed:
            logger.warning(f"[AUTOSAVE] {len(result.failed)} of {len(jobs)} cells failed to save")
        return result

    async def drain(self) -> None:
        """Wait until no debounce timer is armed and no debounced write is running."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        """Cancel armed timers; writes already sent run to completion."""
        for key in list(self._timers):
            self._cancel_timer(key)

    # internals

    def _get_or_create(self, student_id: int, sub_exam_id: int) -> AutosaveCell:
        key = (student_id, sub_exam_id)
        cell = self._cells.get(key)
        if cell is None:
            if sub_exam_id not in self._max_scores:
                raise AggregationInconsistency(sub_exam_id)
            cell = AutosaveCell(student_id, sub_exam_id, self._max_scores[sub_exam_id])
            self._cells[key] = cell
        return cell

    def _set_status(self, cell: AutosaveCell, status: CellStatus) -> None:
        cell.status = status
        if self._on_status is not None:
            self._on_status(cell)

    def _arm(self, key: CellKey) -> None:
        self._cancel_timer(key)
        task = asyncio.get_running_loop().create_task(self._debounce(key))
        self._timers[key] = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _cancel_timer(self, key: CellKey) -> None:
        task = self._timers.pop(key, None)
        if task is not None and not task.done():
            task.cancel()

    async def _debounce(self, key: CellKey) -> None:
        await asyncio.sleep(self.debounce_seconds)
        # past this point a new edit arms a fresh timer instead of cancelling this one
        if self._timers.get(key) is asyncio.current_task():
            del self._timers[key]
        await self._fire(key)

    async def _fire(self, key: CellKey) -> None:
        cell = self._cells.get(key)
        if cell is None:
            return

        if key in self._in_flight:
            self._deferred.add(key)
            logger.debug(f"[AUTOSAVE] Save of {key} already in flight, deferred")
            return

        if not cell.dirty:
            cell.pending_value = None
            cell.error = None
            self._set_status(cell, CellStatus.SAVED)
            return

        if not cell.in_bounds(cell.pending_value):
            self._reject(cell)
            return

        self._begin(cell)
        await self._send(cell, cell.pending_value)

    def _reject(self, cell: AutosaveCell) -> None:
        cell.error = ScoreValidationError(cell.pending_value, cell.max_score)
        self._set_status(cell, CellStatus.UNSAVED)
        logger.warning(f"[AUTOSAVE] {cell.error} (student {cell.student_id}, sub-exam {cell.sub_exam_id})")

    def _begin(self, cell: AutosaveCell) -> None:
        self._in_flight.add(cell.key)
        self._set_status(cell, CellStatus.SAVING)

    async def _send(self, cell: AutosaveCell, value: float) -> bool:
        key = cell.key
        try:
            await self._write(cell.student_id, cell.sub_exam_id, self.term_id, value, cell.notes)
        except Exception as e:
            cell.error = TransientWriteError(cell.student_id, cell.sub_exam_id, str(e))
            self._in_flight.discard(key)
            self._set_status(cell, CellStatus.UNSAVED)
            logger.warning(f"[AUTOSAVE] {cell.error}")
            ok = False
        else:
            cell.confirmed_value = value
            cell.error = None
            self._in_flight.discard(key)
            if cell.pending_value == value:
                self._set_status(cell, CellStatus.SAVED)
            else:
                self._set_status(cell, CellStatus.UNSAVED)
            logger.debug(f"[AUTOSAVE] Saved {value} for student {cell.student_id}, sub-exam {cell.sub_exam_id}")
            ok = True

        # an edit whose timer fired during this write is evaluated now
        if key in self._deferred:
            self._deferred.discard(key)
            if cell.dirty and key not in self._timers:
                self._arm(key)
        return ok


async def open_score_grid(
        store: Any,
        class_id: int,
        grade_id: int,
        subject_id: int,
        term_id: int,
        **options: Any,
) -> AutosaveReconciler:
    """
    Build a reconciler for one grid, writing through ``store.record_score``
    and seeded with the scores already in the store.
    """
    sub_exams = await store.list_sub_exams(grade_id, subject_id)
    reconciler = AutosaveReconciler(term_id, store.record_score, sub_exams, **options)
    reconciler.seed(await store.list_scores_by_class_subject_term(class_id, subject_id, term_id))
    return reconciler
