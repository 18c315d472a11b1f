import logging

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # AES key: 16, 24 or 32 bytes once UTF-8 encoded
    CRYHEL_SECRET_KEY: str = ""

    # Raise on malformed base64 / percent-escapes instead of decoding best-effort
    CRYHEL_STRICT_DECODING: bool = False

    LOG_LEVEL: str = "WARNING"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Attach a basic handler to the ``cryhel`` logger. Never called on import."""
    logger = logging.getLogger("cryhel")
    logger.setLevel((level or settings.LOG_LEVEL).upper())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(handler)
