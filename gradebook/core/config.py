from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    PROJECT_NAME: str = "Gradebook Scoring Service"
    API_V1_STR: str = "/api/v1"
    DATABASE_URL: str = "sqlite+aiosqlite:///./gradebook.db"
    ENVIRONMENT: str = "development"
    LOG_DIR: str = "logs"

    AUTOSAVE_DEBOUNCE_SECONDS: float = 2.0
    SUBEXAM_TOTAL_TARGET: float = 100.0
    SUBEXAM_TOTAL_STRICT: bool = False

    STORE_BASE_URL: str = "http://localhost:8000/api/v1"
    STORE_TIMEOUT_SECONDS: float = 10.0

    class Config:
        case_sensitive = True


settings = Settings()
