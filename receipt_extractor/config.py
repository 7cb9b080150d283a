from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Receipt Extractor"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000"]

    # Extraction
    LOCALE: str = "IN"  # Locale profile name (IN, GENERIC)
    MAX_OCR_LINES: int = 500  # Larger requests are rejected before parsing
    REVIEW_THRESHOLD: float = 0.7
    DEFAULT_CATEGORIES: List[str] = [
        "Food & Drinks",
        "Transport",
        "Bills & Utilities",
        "Shopping",
        "Health",
        "Entertainment",
        "Education",
        "Subscriptions",
        "Miscellaneous",
    ]

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
