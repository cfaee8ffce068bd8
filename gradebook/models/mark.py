from sqlalchemy import BigInteger, Float, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gradebook.core.database import Base, BigIntId

class Mark(Base):
    __tablename__ = "marks"
    __table_args__ = (UniqueConstraint("student_id", "sub_exam_id", "term_id", name="marks_student_sub_exam_term_key"),)

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    score: Mapped[float] = mapped_column(Float, nullable=False)
    notes: Mapped[str] = mapped_column(String, nullable=True)
    # no foreign key: deleting a sub-exam leaves its marks orphaned
    sub_exam_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    term_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("term.id", ondelete="CASCADE"), nullable=False)
    student_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("student.id", ondelete="CASCADE"), nullable=False)

    student: Mapped["Student"] = relationship("Student", back_populates="marks", passive_deletes=True)
