import os
from typing import Literal

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ThemeSettings(BaseModel):
    default: str = "0"
    dark: str | Literal[False] = "200"  # False disables the dark variant

    @field_validator("dark", mode="before")
    @classmethod
    def parse_disabled(cls, value):
        # Environment variables arrive as strings
        if isinstance(value, str) and value.lower() == "false":
            return False
        return value


class Settings(BaseSettings):
    output: str = "d2"  # directory under public_dir where diagrams are written
    layout: str = "dagre"
    theme: ThemeSettings = ThemeSettings()
    sketch: bool = False
    pad: int = 100

    # Reuse diagrams from a previous run instead of invoking d2
    skip_generation: bool = False
    # False: render every block, then raise all failures together
    fail_fast: bool = True

    content_roots: list[str] = ["src/content", "src/pages"]
    public_dir: str = "public"
    d2_command: str = "d2"

    log_level: str = "INFO"
    log_dir: str | None = None

    model_config = SettingsConfigDict(
        env_prefix="D2MD_",
        env_file=[os.getenv("ENV_FILE", ""), ".env"],
        extra="ignore",
        env_nested_delimiter="__",
    )
