"""Centralized configuration management for the KidGuard filtering engine."""

import os
from pathlib import Path

# Load .env file BEFORE any settings are read
# This ensures environment variables are available when Settings() is instantiated
try:
    from dotenv import load_dotenv

    # Load from project root (assuming this file is in kidguard/core/)
    env_path = Path(__file__).parent.parent.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path)
except ImportError:
    pass  # python-dotenv not installed, rely on system env vars


VALID_FILTER_MODES = ("permissive", "strict")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings:
    """Application settings for the child-safe chat filtering service."""

    # =================================================================
    # APPLICATION
    # =================================================================
    APP_NAME: str = "KidGuard Content Safety API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")
    DEBUG: bool = _env_bool("DEBUG", "false")

    # =================================================================
    # LOGGING
    # =================================================================
    LOG_DIR: Path = Path(os.getenv("LOG_DIR", "logs"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("LOG_FILE", "kidguard.log")
    LOG_MAX_BYTES: int = int(os.getenv("LOG_MAX_BYTES", str(10 * 1024 * 1024)))
    LOG_BACKUP_COUNT: int = int(os.getenv("LOG_BACKUP_COUNT", "5"))

    # =================================================================
    # FILTER GATE
    # =================================================================
    # permissive: internal faults are logged and traffic passes unmodified
    # strict: internal faults block input and replace responses
    FILTER_MODE: str = os.getenv("FILTER_MODE", "permissive").lower()
    FILTER_LOG_VIOLATIONS: bool = _env_bool("FILTER_LOG_VIOLATIONS", "true")
    FILTER_INCLUDE_WARNINGS: bool = _env_bool("FILTER_INCLUDE_WARNINGS", "true")

    # =================================================================
    # READABILITY
    # =================================================================
    READING_SPEED_WPM: int = int(os.getenv("READING_SPEED_WPM", "200"))

    # Optional JSON overlay for lexicons and topic lists
    POLICY_TABLES_PATH: str = os.getenv("POLICY_TABLES_PATH", "")

    # =================================================================
    # AI RESPONSE GENERATOR (external collaborator)
    # =================================================================
    AI_GENERATOR_URL: str = os.getenv(
        "AI_GENERATOR_URL", "http://localhost:8001/v1/respond"
    )
    AI_GENERATOR_TIMEOUT: float = float(os.getenv("AI_GENERATOR_TIMEOUT", "30.0"))

    # =================================================================
    # API CONFIGURATION
    # =================================================================
    API_PREFIX: str = "/api/v1"
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))
    CORS_ORIGINS: list[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
        if origin.strip()
    ]
    SLOW_REQUEST_THRESHOLD: float = float(os.getenv("SLOW_REQUEST_THRESHOLD", "1.0"))

    @property
    def policy_tables_path(self) -> Path | None:
        """Path of the lexicon overlay file, if one is configured."""
        if not self.POLICY_TABLES_PATH:
            return None
        return Path(self.POLICY_TABLES_PATH)

    def validate_required(self) -> list[str]:
        """
        Validate configuration values.

        Returns:
            List of human readable issues; empty when the configuration is usable.
        """
        issues: list[str] = []

        if self.FILTER_MODE not in VALID_FILTER_MODES:
            issues.append(
                f"FILTER_MODE must be one of {VALID_FILTER_MODES}, got '{self.FILTER_MODE}'"
            )

        if self.READING_SPEED_WPM <= 0:
            issues.append("READING_SPEED_WPM must be positive")

        tables_path = self.policy_tables_path
        if tables_path is not None and not tables_path.exists():
            issues.append(f"POLICY_TABLES_PATH does not exist: {tables_path}")

        if self.AI_GENERATOR_TIMEOUT <= 0:
            issues.append("AI_GENERATOR_TIMEOUT must be positive")

        return issues


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings
