"""Settings for the bundled host application, loaded from environment variables.

The Rivulet middleware itself reads nothing from here; it is configured
entirely through constructor arguments.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings. All values can be overridden via environment variables."""

    # Application
    app_name: str = "Rivulet"
    debug: bool = False
    cors_origins: list[str] = ["http://localhost:3000"]

    # Streams
    prefix: str = "rivulets"
    polyfill_path: str = ""

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    model_config = {"env_prefix": "RIVULET_", "env_file": ".env", "extra": "ignore"}


settings = Settings()
