import logging

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    FIRESTORE_API_ENDPOINT: str = "firestore.googleapis.com"
    FIRESTORE_EMULATOR_HOST: str = ""
    FIRESTORE_DATABASE: str = "(default)"
    FIRESTORE_SET_CREATE_ON: str = "any_error"  # any_error | not_found

    LOG_LEVEL: str = "WARNING"

    @property
    def emulator_enabled(self) -> bool:
        return bool(str(self.FIRESTORE_EMULATOR_HOST or "").strip())

    @property
    def set_create_on(self) -> str:
        mode = str(self.FIRESTORE_SET_CREATE_ON or "").strip().lower()
        return mode if mode in {"any_error", "not_found"} else "any_error"


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    raw = str(level or settings.LOG_LEVEL or "WARNING").strip().upper()
    logging.getLogger("docquery").setLevel(getattr(logging, raw, logging.WARNING))
