from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_FILE = "ecsdeploy.yml"


class Settings(BaseSettings):
    config: str = DEFAULT_CONFIG_FILE
    debug: bool = False
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"

    model_config = SettingsConfigDict(
        env_prefix="ECSDEPLOY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
