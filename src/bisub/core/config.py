"""Configuration system for bisub.

Layered config loading (lowest to highest priority):
1. config/default.toml (shipped with package)
2. ~/.config/bisub/config.toml (user-level)
3. ./bisub.toml (project-level)
4. Environment variables (BISUB_SCHEDULER__BATCH_SIZE, etc.)
5. CLI flags
"""

from __future__ import annotations

import tomllib
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_ROOT = Path(__file__).resolve().parent.parent.parent.parent
_DEFAULT_CONFIG = _PACKAGE_ROOT / "config" / "default.toml"
_USER_CONFIG = Path.home() / ".config" / "bisub" / "config.toml"
_PROJECT_CONFIG = Path("bisub.toml")


class SubtitleConfig(BaseModel):
    max_gap_ms: int = 8000
    max_group_duration_ms: int = 15000
    max_text_length: int = 150
    max_visible: int = 5  # Groups shown at once by timeline lookups


class SchedulerConfig(BaseModel):
    batch_size: int = Field(default=5, ge=1)
    batch_interval_ms: int = Field(default=2000, ge=0)
    max_batch_retries: int = Field(default=10, ge=1)
    retry_base_delay_ms: int = Field(default=3000, ge=0)
    start_paused: bool = True
    annotate_retries: bool = True


class ServiceConfig(BaseModel):
    """One translation backend reachable through LiteLLM."""

    model: str = "ollama_chat/qwen3:8b"
    api_base: str | None = None  # Custom endpoint (e.g. local Ollama server)
    api_key: str | None = None
    temperature: float = 0.3
    max_tokens: int = 4096
    timeout: float | None = 120.0
    max_retries: int = 3
    retry_delay_ms: int = 1000


class LLMConfig(BaseModel):
    service: str = "ollama"
    services: dict[str, ServiceConfig] = Field(
        default_factory=lambda: {"ollama": ServiceConfig(api_base="http://localhost:11434")}
    )

    @property
    def active(self) -> ServiceConfig:
        """Return the profile for the selected service."""
        try:
            return self.services[self.service]
        except KeyError:
            known = ", ".join(sorted(self.services)) or "none"
            raise ValueError(f"Unknown translation service '{self.service}' (known: {known})")


class StorageConfig(BaseModel):
    backend: str = "json"  # "json" or "memory"
    directory: Path = Path("./bisub_workspace/.cache/storage")
    subtitle_prefix: str = "yt-subtitles-"
    analysis_prefix: str = "yt-subtitle-analysis-"
    vocab_chunk_prefix: str = "vocab_chunk_"


class BisubConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BISUB_",
        env_nested_delimiter="__",
    )

    subtitles: SubtitleConfig = SubtitleConfig()
    scheduler: SchedulerConfig = SchedulerConfig()
    llm: LLMConfig = LLMConfig()
    storage: StorageConfig = StorageConfig()
    target_language: str = "Simplified Chinese"
    workspace_dir: Path = Path("./bisub_workspace")


def _load_toml(path: Path) -> dict:
    """Load a TOML file if it exists, return empty dict otherwise."""
    if path.is_file():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(**cli_overrides: object) -> BisubConfig:
    """Load configuration from all layers and merge.

    Args:
        **cli_overrides: Direct overrides from CLI flags. Keys can be
            dot-separated (e.g. scheduler.batch_size=10).
    """
    config_data: dict = {}
    for path in (_DEFAULT_CONFIG, _USER_CONFIG, _PROJECT_CONFIG):
        config_data = _deep_merge(config_data, _load_toml(path))

    # Flatten 'general' section into top-level
    if "general" in config_data:
        general = config_data.pop("general")
        config_data = _deep_merge(config_data, general)

    # Init kwargs outrank env vars in BaseSettings, so fold env in explicitly
    env_data = BisubConfig().model_dump(exclude_unset=True)
    config_data = _deep_merge(config_data, env_data)

    for key, value in cli_overrides.items():
        if value is None:
            continue
        parts = key.split(".")
        target = config_data
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        target[parts[-1]] = value

    return BisubConfig(**config_data)
