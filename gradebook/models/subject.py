from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from gradebook.core.database import Base, BigIntId

class Subject(Base):
    __tablename__ = "subject"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    code: Mapped[str] = mapped_column(String, nullable=True)
