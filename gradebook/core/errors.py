from typing import Optional


class ScoreValidationError(ValueError):
    """A score outside ``[0, max_score]`` for its sub-exam."""

    def __init__(self, score: Optional[float], max_score: Optional[float]):
        self.score = score
        self.max_score = max_score
        super().__init__(f"Score {score} is outside the allowed range 0..{max_score}")


class TransientWriteError(RuntimeError):
    """A save to the remote score store failed (network or remote error)."""

    def __init__(self, student_id: int, sub_exam_id: int, reason: str):
        self.student_id = student_id
        self.sub_exam_id = sub_exam_id
        self.reason = reason
        super().__init__(f"Failed to save score for student {student_id}, sub-exam {sub_exam_id}: {reason}")


class AggregationInconsistency(LookupError):
    """A score references a sub-exam that no longer exists."""

    def __init__(self, sub_exam_id: int):
        self.sub_exam_id = sub_exam_id
        super().__init__(f"Score references unknown sub-exam {sub_exam_id}")
