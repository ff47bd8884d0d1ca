"""
Sensor API configuration from environment variables using Pydantic BaseSettings.

All configuration values are loaded from environment variables (or a local
``.env`` file) at startup. No hardcoded hosts or credentials.

CHANGELOG:
- 2026-10-19: Add connection pool, statement timeout and application name
- 2026-10-19: Add LOG_LEVEL and DB_ECHO
- 2026-10-12: Initial creation

TODO:
- None
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Sensor API settings loaded from environment variables.

    Attributes:
        DATABASE_URL: PostgreSQL connection string (asyncpg).
        LOG_LEVEL: Root logging level name (DEBUG, INFO, WARNING, ...).
        DB_ECHO: Log every SQL statement emitted by the engine.
        DB_POOL_SIZE: Connections kept open in the engine pool.
        DB_STATEMENT_TIMEOUT_MS: Server-side limit for one statement, in
            milliseconds. 0 disables the limit.
        DB_APPLICATION_NAME: Reported to PostgreSQL as ``application_name``.
    """

    DATABASE_URL: str
    LOG_LEVEL: str = "INFO"
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 5
    DB_STATEMENT_TIMEOUT_MS: int = 30_000
    DB_APPLICATION_NAME: str = "sensor-api"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


def get_settings() -> Settings:
    """Create and return a Settings instance.

    Returns:
        Settings: Validated configuration from environment variables.
    """
    return Settings()
