from typing import Dict, Iterable, List

from pydantic import BaseModel


class RankEntry(BaseModel):
    student_id: int
    name: str
    score: float


def rank(entries: Iterable[RankEntry]) -> Dict[int, int]:
    """
    Competition ranking ("1224"): tied scores share a rank and the next
    distinct score takes its position in the sorted order.

    Ties are ordered by case-insensitive name so the ordering is stable.

    Returns:
        dict: student_id -> rank
    """
    ordered: List[RankEntry] = sorted(entries, key=lambda e: (-e.score, e.name.lower()))

    ranks: Dict[int, int] = {}
    previous_score = None
    current_rank = 0
    for position, entry in enumerate(ordered, start=1):
        if previous_score is None or entry.score != previous_score:
            current_rank = position
            previous_score = entry.score
        ranks[entry.student_id] = current_rank
    return ranks


def format_rank(value: int) -> str:
    """Ordinal form of a rank: 1st, 2nd, 3rd, 4th ... 11th, 12th, 13th, 21st."""
    if value <= 0:
        return "-"
    if value % 100 in (11, 12, 13):
        return f"{value}th"
    suffix = {1: "st", 2: "nd", 3: "rd"}.get(value % 10, "th")
    return f"{value}{suffix}"
