from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_CURRENCIES = ("₹", "$", "€", "£")


class ParticipantSettings(BaseModel):
    code: str = Field(..., min_length=1, max_length=8)
    name: str
    avatar: str = ""
    color: str = ""


DEFAULT_ROSTER = [
    ParticipantSettings(code="Z", name="Zeshan", avatar="👨‍💼", color="#6366F1"),
    ParticipantSettings(code="U", name="Umam", avatar="👨‍🎓", color="#10B981"),
    ParticipantSettings(code="M", name="Rasool", avatar="👨‍🔧", color="#F59E0B"),
    ParticipantSettings(code="B", name="Abdullah", avatar="👨‍💻", color="#EF4444"),
    ParticipantSettings(code="A", name="Aziz", avatar="👨‍🎨", color="#8B5CF6"),
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    bot_token: str = Field("", alias="BOT_TOKEN")
    database_url: str = Field("sqlite:///billshare.db", alias="DATABASE_URL")
    currency: str = Field("₹", alias="CURRENCY")
    roster: list[ParticipantSettings] = Field(default_factory=lambda: list(DEFAULT_ROSTER), alias="ROSTER")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(True, alias="LOG_JSON")

    @field_validator("currency")
    @classmethod
    def _check_currency(cls, value: str) -> str:
        if value not in SUPPORTED_CURRENCIES:
            raise ValueError(f"currency must be one of {', '.join(SUPPORTED_CURRENCIES)}")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
