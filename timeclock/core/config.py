from atams import AtamsBaseSettings


class Settings(AtamsBaseSettings):
    """
    Application Settings

    Inherits from AtamsBaseSettings which includes:
    - DATABASE_URL (required)
    - ATLAS_SSO_URL, ATLAS_APP_CODE, ATLAS_ENCRYPTION_KEY, ATLAS_ENCRYPTION_IV
    - ENCRYPTION_ENABLED, ENCRYPTION_KEY, ENCRYPTION_IV (response encryption)
    - LOGGING_ENABLED, LOG_LEVEL, LOG_TO_FILE, LOG_FILE_PATH
    - CORS_ORIGINS, CORS_ALLOW_CREDENTIALS, CORS_ALLOW_METHODS, CORS_ALLOW_HEADERS
    - RATE_LIMIT_ENABLED, RATE_LIMIT_REQUESTS, RATE_LIMIT_WINDOW
    - DEBUG

    All settings can be overridden via .env file or by redefining them here.
    """
    APP_NAME: str = "Team Time Clock"
    APP_VERSION: str = "1.0.0"

    # Session hours policy
    SESSION_HOURS_CAP: float = 5.0
    HOURS_DECIMALS: int = 2
    MANUAL_ENTRY_NOTE: str = "Manually added by admin"

    # Member identity
    MEMBER_CODE_PATTERN: str = r"^\d{5}$"
    ROOT_MEMBER_CODE: str = "10101"
    ADMIN_MIN_ROLE_LEVEL: int = 50

    # Console token (kiosk lock / ID visibility)
    CONSOLE_JWT_SECRET: str
    CONSOLE_JWT_ALG: str = "HS256"
    CONSOLE_TOKEN_TTL_SECONDS: int = 43200

    # Maintenance reports
    STALE_SESSION_HOURS: float = 5.0


settings = Settings()
