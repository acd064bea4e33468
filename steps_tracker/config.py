import os
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent  # -> project root

# Load .env explicitly from project root
load_dotenv(BASE_DIR / ".env")


class Settings:
    PROJECT_NAME = "Daily Steps Tracker"
    VERSION = "1.0.0"

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./steps.db")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DAILY_STEP_GOAL = int(os.getenv("DAILY_STEP_GOAL", 10000))
    SUMMARY_WINDOW_DAYS = int(os.getenv("SUMMARY_WINDOW_DAYS", 30))

    cors_origins = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    ]


settings = Settings()
