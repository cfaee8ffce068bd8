from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from gradebook.core.database import Base, BigIntId

class Term(Base):
    __tablename__ = "term"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="OPEN")
