# config.py
import logging
from pathlib import Path
from decouple import config

BASE_DIR = Path(__file__).parent.parent

logger = logging.getLogger(__name__)

class Settings:
    # App
    APP_NAME = "Trade Journal"
    VERSION = "1.0.0"
    DEBUG = config("DEBUG", default=False, cast=bool)
    ENVIRONMENT = config("ENVIRONMENT", default="development")
    LOG_LEVEL = config("LOG_LEVEL", default="INFO")

    # Store backend: "sql", "supabase" or "memory"
    STORE_BACKEND = config("STORE_BACKEND", default="sql")

    # Database (sql backend)
    DATABASE_URL = config("DATABASE_URL", default=f"sqlite:///{BASE_DIR}/trade_journal.db")

    # Supabase (supabase backend)
    SUPABASE_URL = config("SUPABASE_URL", default="")
    SUPABASE_ANON_KEY = config("SUPABASE_ANON_KEY", default="")
    REMOTE_TIMEOUT = config("REMOTE_TIMEOUT", default=10.0, cast=float)

    # Blob storage (sql backend keeps strategy images on disk)
    BLOB_DIR = Path(config("BLOB_DIR", default=str(BASE_DIR / "blobs")))
    PUBLIC_BASE_URL = config("PUBLIC_BASE_URL", default="http://localhost:8000")
    MAX_UPLOAD_SIZE = config("MAX_UPLOAD_SIZE", default=10, cast=int)  # MB

    # Local fallback snapshot, empty disables it
    SNAPSHOT_PATH = config("SNAPSHOT_PATH", default=str(BASE_DIR / "data" / "journal_snapshot.json"))

    # CORS
    CORS_ORIGINS = config("CORS_ORIGINS", default="http://localhost:8000,http://localhost:3000").split(",")

    @property
    def is_development(self):
        """Check if running in development environment"""
        return self.ENVIRONMENT.lower() == "development"

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE * 1024 * 1024

    def init_dirs(self):
        """Create necessary directories"""
        if self.STORE_BACKEND == "sql":
            self.BLOB_DIR.mkdir(parents=True, exist_ok=True)
        if self.SNAPSHOT_PATH:
            Path(self.SNAPSHOT_PATH).parent.mkdir(parents=True, exist_ok=True)

    def validate_settings(self):
        """Validate critical settings"""
        errors = []

        if self.STORE_BACKEND not in ("sql", "supabase", "memory"):
            errors.append(f"STORE_BACKEND must be sql, supabase or memory, got '{self.STORE_BACKEND}'")

        if self.STORE_BACKEND == "sql" and not self.DATABASE_URL:
            errors.append("DATABASE_URL is not configured")

        if self.STORE_BACKEND == "supabase":
            if not self.SUPABASE_URL:
                errors.append("SUPABASE_URL is not configured")
            if not self.SUPABASE_ANON_KEY:
                errors.append("SUPABASE_ANON_KEY is not configured")

        if errors:
            raise ValueError(f"Configuration errors: {'; '.join(errors)}")

    def log_config_summary(self):
        """Log a summary of the current configuration"""
        logger.info(f"{self.APP_NAME} v{self.VERSION} ({self.ENVIRONMENT})")
        logger.info(f"Store backend: {self.STORE_BACKEND}")
        if self.STORE_BACKEND == "sql":
            logger.info(f"Database: {self.DATABASE_URL}")
        elif self.STORE_BACKEND == "supabase":
            logger.info(f"Supabase: {self.SUPABASE_URL or 'Not configured'}")
        logger.info(f"Snapshot: {self.SNAPSHOT_PATH or 'Disabled'}")

# Initialize settings
settings = Settings()
