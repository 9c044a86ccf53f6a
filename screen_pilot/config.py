from __future__ import annotations

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    start_url: str = "http://localhost:5173"
    headless: bool = False
    user_data_dir: str = "~/.screen_pilot_profiles/default"
    content_root_selector: str = "body"
    cursor_speed: float = 8.0
    frame_interval_ms: int = 16
    scroll_settle_ms: int = 500
    typing_delay_ms: int = Field(default=100, gt=0)
    typing_jitter_ms: int = Field(default=50, ge=0)
    default_pause_ms: int = 1000
    trigger_key: str = "a"
    trigger_script: str | None = None
    overlay_enabled: bool = True
    log_level: str = "INFO"


def get_settings() -> Settings:
    return Settings()


settings = get_settings()
