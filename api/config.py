"""
API configuration and settings management.
"""
import os


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


class Config:
    """Application configuration."""

    # Listings spreadsheet
    SHEET_ID: str = os.getenv("SHEET_ID", "1Ajn0VVRqQfpjEimzmW7yorf7ecL9RKpXWpsCNj2QhsE")
    SHEET_GID: str = os.getenv("SHEET_GID", "0")
    SHEET_RANGE: str = os.getenv("SHEET_RANGE", "A1:L500")
    # Structured Sheets API tier is enabled only when a key is configured
    GOOGLE_SHEETS_API_KEY: str = os.getenv("GOOGLE_SHEETS_API_KEY", "")

    # Proxy behaviour
    CACHE_TTL_SECONDS: int = _env_int("CACHE_TTL_SECONDS", 1800)
    EXPORT_RETRY_ATTEMPTS: int = _env_int("EXPORT_RETRY_ATTEMPTS", 4)
    EXPORT_RETRY_MAX_WAIT: float = _env_float("EXPORT_RETRY_MAX_WAIT", 4.0)
    HTTP_TIMEOUT: float = _env_float("HTTP_TIMEOUT", 10.0)
    USER_AGENT: str = "Mozilla/5.0 (compatible; YeoyeoBot/1.0)"
    BACKUP_JSON_PATH: str = os.getenv(
        "BACKUP_JSON_PATH",
        os.path.join(os.path.dirname(__file__), "static", "listings-backup.json")
    )

    # Listing board; an empty source URL reads the proxy in-process
    LISTINGS_SOURCE_URL: str = os.getenv("LISTINGS_SOURCE_URL", "")
    LISTINGS_BACKUP_URL: str = os.getenv("LISTINGS_BACKUP_URL", "")
    REFRESH_INTERVAL_SECONDS: int = _env_int("REFRESH_INTERVAL_SECONDS", 3600)
    SEARCH_HISTORY_PATH: str = os.getenv("SEARCH_HISTORY_PATH", "./data/search_history.json")

    # API settings
    API_TITLE: str = "Yeoyeo Listings API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Listing board search and spreadsheet CSV proxy"

    # CORS settings
    CORS_ORIGINS: list = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = False
    CORS_ALLOW_METHODS: list = ["GET", "POST", "DELETE", "OPTIONS"]
    CORS_ALLOW_HEADERS: list = ["Content-Type"]

    # Pagination defaults
    DEFAULT_API_LIMIT: int = 50
    MAX_API_LIMIT: int = 500
    MAX_SUGGESTIONS: int = 20

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("LOG_FILE", "api.log")

    @classmethod
    def export_url(cls) -> str:
        return (
            f"https://docs.google.com/spreadsheets/d/{cls.SHEET_ID}"
            f"/export?format=csv&gid={cls.SHEET_GID}"
        )

    @classmethod
    def validate(cls) -> None:
        """Validate configuration on startup."""
        if not cls.SHEET_ID:
            raise ValueError("SHEET_ID must be set")
        if cls.CACHE_TTL_SECONDS <= 0:
            raise ValueError(f"CACHE_TTL_SECONDS must be positive, got {cls.CACHE_TTL_SECONDS}")
        if cls.EXPORT_RETRY_ATTEMPTS <= 0:
            raise ValueError(f"EXPORT_RETRY_ATTEMPTS must be positive, got {cls.EXPORT_RETRY_ATTEMPTS}")
        if cls.REFRESH_INTERVAL_SECONDS <= 0:
            raise ValueError(
                f"REFRESH_INTERVAL_SECONDS must be positive, got {cls.REFRESH_INTERVAL_SECONDS}"
            )

# Global config instance
config = Config()
