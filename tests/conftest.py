import os
import tempfile

os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="gradebook-logs-"))
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from gradebook.core.database import Base, get_db
from gradebook.main import app
from gradebook.models import Mark, SchoolClass, Student, SubExam, Subject, Term


@pytest.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory) -> AsyncSession:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory) -> httpx.AsyncClient:
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test/api/v1") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def school(db: AsyncSession) -> dict:
    """
    Grade 7 class "7A" with Math and English, three students and two terms.

    Math sub-exams total 80 (Quiz 1, Mid, General, Quiz 2); English totals 100.
    """
    math = Subject(id=1, name="Math", code="MTH")
    english = Subject(id=2, name="English", code="ENG")
    school_class = SchoolClass(id=1, name="7A", grade_id=7, subjects=[math, english])
    term1 = Term(id=1, name="Term 1")
    term2 = Term(id=2, name="Term 2")
    students = [
        Student(id=1, first_name="Bob", last_name="Stone", school_class=school_class),
        Student(id=2, first_name="alice", last_name="Reed", school_class=school_class),
        Student(id=3, first_name="Carol", last_name="Moss", school_class=school_class),
    ]
    sub_exams = [
        SubExam(id=11, grade_id=7, subject_id=1, name="Quiz 1", exam_type="quiz", max_score=10, weight=10),
        SubExam(id=12, grade_id=7, subject_id=1, name="Mid", exam_type="mid_exam", max_score=20, weight=20),
        SubExam(id=13, grade_id=7, subject_id=1, name="General", exam_type="general_test", max_score=40, weight=40),
        SubExam(id=14, grade_id=7, subject_id=1, name="Quiz 2", exam_type="quiz", max_score=10, weight=10),
        SubExam(id=21, grade_id=7, subject_id=2, name="Quiz", exam_type="quiz", max_score=10, weight=10),
        SubExam(id=22, grade_id=7, subject_id=2, name="Essay", exam_type="assignment", max_score=10, weight=10),
        SubExam(id=23, grade_id=7, subject_id=2, name="Mid", exam_type="mid_exam", max_score=20, weight=20),
        SubExam(id=24, grade_id=7, subject_id=2, name="General", exam_type="general_test", max_score=40, weight=40),
        SubExam(id=25, grade_id=7, subject_id=2, name="Oral", exam_type="assignment", max_score=10, weight=10),
        SubExam(id=26, grade_id=7, subject_id=2, name="Project", exam_type="assignment", max_score=10, weight=10),
    ]
    db.add_all([school_class, math, english, term1, term2, *students, *sub_exams])
    await db.commit()
    return {
        "class": school_class,
        "subjects": [math, english],
        "terms": [term1, term2],
        "students": students,
        "sub_exams": sub_exams,
    }


@pytest.fixture
def add_marks(db: AsyncSession):
    async def _add(term_id: int, rows) -> None:
        """rows: (student_id, sub_exam_id, score)"""
        db.add_all([
            Mark(student_id=student_id, sub_exam_id=sub_exam_id, term_id=term_id, score=score)
            for student_id, sub_exam_id, score in rows
        ])
        await db.commit()

    return _add
