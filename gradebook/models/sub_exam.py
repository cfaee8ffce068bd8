from sqlalchemy import BigInteger, Float, Integer, String, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from gradebook.core.database import Base, BigIntId

class SubExam(Base):
    __tablename__ = "sub_exam"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    grade_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    subject_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("subject.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    exam_type: Mapped[str] = mapped_column(String, nullable=False)
    max_score: Mapped[float] = mapped_column(Float, nullable=False)
    # points, always equal to max_score
    weight: Mapped[float] = mapped_column(Float, nullable=False)
