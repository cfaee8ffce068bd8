from sqlalchemy import BigInteger, String, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gradebook.core.database import Base, BigIntId

class Student(Base):
    __tablename__ = "student"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str] = mapped_column(String, nullable=False)
    class_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("school_class.id", ondelete="CASCADE"), nullable=False)

    school_class: Mapped["SchoolClass"] = relationship("SchoolClass", back_populates="students", passive_deletes=True)
    marks: Mapped[list["Mark"]] = relationship(
        "Mark",
        back_populates="student",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
