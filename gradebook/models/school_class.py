from sqlalchemy import BigInteger, Column, ForeignKey, Integer, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gradebook.core.database import Base, BigIntId

class_subject = Table(
    "class_subject",
    Base.metadata,
    Column("class_id", BigInteger, ForeignKey("school_class.id", ondelete="CASCADE"), primary_key=True),
    Column("subject_id", BigInteger, ForeignKey("subject.id", ondelete="CASCADE"), primary_key=True),
)

class SchoolClass(Base):
    __tablename__ = "school_class"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    grade_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    students: Mapped[list["Student"]] = relationship(
        "Student",
        back_populates="school_class",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    subjects: Mapped[list["Subject"]] = relationship(
        "Subject",
        secondary=class_subject,
        order_by="Subject.name",
    )
