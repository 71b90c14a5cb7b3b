import os
import logging
from pydantic import BaseModel, Field
from typing import List
from dotenv import load_dotenv

load_dotenv()

DEV_DATABASE_URL = "sqlite:///./manager_capability.db"

class AnalyzerSettings(BaseModel):
    model_version: str = Field(default=os.getenv("ANALYZER_MODEL_VERSION", "rule-based-v1"))
    enable_batch_analysis: bool = Field(default=os.getenv("ENABLE_BATCH_ANALYSIS", "true").lower() == "true")

class Config(BaseModel):
    app_name: str = "Manager Capability Analytics"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"

    # Database
    database_url: str = os.getenv("DATABASE_URL", DEV_DATABASE_URL)

    # Analyzer
    analyzer: AnalyzerSettings = AnalyzerSettings()

    # Enterprise Architecture
    version: str = "1.0.0"
    build_id: str = os.getenv("BUILD_ID", "local")
    request_id_header: str = "X-Request-ID"
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # CORS: comma-separated origins loaded from env.
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:3001,"
                "http://127.0.0.1:3000,http://127.0.0.1:3001",
            ).split(",")
            if o.strip()
        ]
    )

    # Rate limiting
    rate_limit_enabled: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    rate_limit_per_minute: int = int(os.getenv("RATE_LIMIT_PER_MINUTE", "60"))

settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment not in ("development", "testing"):
    if settings.database_url == DEV_DATABASE_URL:
        raise RuntimeError(
            "FATAL: DATABASE_URL must be set for non-development environments."
        )
elif settings.database_url == DEV_DATABASE_URL:
    _logger.warning("Using local SQLite database; only acceptable in development.")
