"""Configuration management for the tourism feedback service."""
import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration."""

    # LLM Configuration (OpenAI-compatible endpoint, Groq by default)
    AI_API_KEY = os.getenv("GROQ_API_KEY", os.getenv("OPENAI_API_KEY", ""))
    AI_BASE_URL = os.getenv("AI_BASE_URL", "https://api.groq.com/openai/v1")
    AI_MODEL = os.getenv("AI_MODEL", "openai/gpt-oss-20b")
    AI_TIMEOUT_SECONDS = int(os.getenv("AI_TIMEOUT_SECONDS", "60"))
    AI_PROVIDER_ENABLED = os.getenv("AI_PROVIDER_ENABLED", "true").lower() == "true"
    AI_TEMPERATURE = float(os.getenv("AI_TEMPERATURE", "0.3"))
    AI_MAX_TOKENS = int(os.getenv("AI_MAX_TOKENS", "1024"))
    AI_TOP_P = float(os.getenv("AI_TOP_P", "0.9"))

    # API Configuration
    API_KEY = os.getenv("API_KEY", "test-api-key-12345")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "3000"))

    # Database Configuration
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./feedback.db")

    # Alert Configuration
    ALERT_WEBHOOK_URL = os.getenv("ALERT_WEBHOOK_URL", "")
    ALERT_ENABLED = os.getenv("ALERT_ENABLED", "false").lower() == "true"

    # Ratings
    RATING_VALUES = {
        "Excellent": 4,
        "Very Good": 3,
        "Average": 2,
        "Poor": 1
    }
    RATING_CATEGORIES = [
        "cleanliness",
        "staff_behavior",
        "information",
        "signage",
        "safety"
    ]

    # Texts shorter than this (after trimming) are not sent for analysis
    MIN_ANALYSIS_LENGTH = 3

    # Insight thresholds
    NEGATIVE_SHARE_WARNING = 0.3
    LOW_RATING_THRESHOLD = 2.5
    RECOMMENDATION_CONCERN_BELOW = 60
    RECOMMENDATION_PRAISE_ABOVE = 80


config = Config()
