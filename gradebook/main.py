from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from gradebook.core.config import settings
from gradebook.core.logger import logger
from contextlib import asynccontextmanager
from gradebook.core.database import engine, Base
from gradebook.api.v1.api import api_router
from gradebook.models import mark, school_class, student, sub_exam, subject, term  # noqa: F401


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.PROJECT_NAME} in {settings.ENVIRONMENT} environment")
    logger.debug(f"Database URL: {settings.DATABASE_URL}")

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.success("Database initialized")
    except Exception as e:
        logger.critical(f"Database initialization failed: {e}")
        raise

    yield

    logger.info(f"Shutting down {settings.PROJECT_NAME}")
    await engine.dispose()
    logger.debug("Database engine disposed")

app = FastAPI(title=settings.PROJECT_NAME, version="1.0.0", lifespan=lifespan)

origins = [
    "http://localhost",
    "http://localhost:3000",
    "http://localhost:3001",
    "http://127.0.0.1:8000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_V1_STR)
