"""Configuration for the Hanabi table server."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from src.hanabi.store import FileGameStore, GameStore, InMemoryGameStore


def get_data_dir() -> Path:
    """Get game data directory from env or default."""
    env_dir = os.environ.get("HANABI_DATA_DIR")
    if env_dir:
        return Path(env_dir)
    return Path("hanabi_data")


class ServerConfig(BaseModel):
    """Settings for one server process."""

    # "memory" loses games on restart; "file" keeps them under data_dir
    store_backend: Literal["memory", "file"] = "file"
    data_dir: str = Field(default_factory=lambda: str(get_data_dir()))
    log_level: str = "INFO"

    def build_store(self) -> GameStore:
        if self.store_backend == "memory":
            return InMemoryGameStore()
        return FileGameStore(self.data_dir)


def load_config() -> ServerConfig:
    """Build the config from HANABI_* environment variables."""
    values: dict[str, str] = {}
    if os.environ.get("HANABI_STORE"):
        values["store_backend"] = os.environ["HANABI_STORE"]
    if os.environ.get("HANABI_LOG_LEVEL"):
        values["log_level"] = os.environ["HANABI_LOG_LEVEL"].upper()
    return ServerConfig(**values)
