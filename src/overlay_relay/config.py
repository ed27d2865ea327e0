from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    HOST: str = "127.0.0.1"
    PORT: int = 3388
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: list[str] = ["*"]

    GENERATION_BACKEND: Literal["ollama", "echo", "none"] = "ollama"
    OLLAMA_URL: str = "http://127.0.0.1:11434"
    OLLAMA_TIMEOUT_SECONDS: float = 120.0
    OLLAMA_KEEP_ALIVE: str = "30m"
    MODEL_CATALOG: list[str] = ["llama3.2:1b", "qwen2.5:0.5b", "gemma2:2b"]
    AUTO_LOAD_MODEL: bool = True

    GENERATION_MAX_TOKENS: int = 100
    GENERATION_TEMPERATURE: float = 0.8
    GENERATION_TIMEOUT_SECONDS: float = 45.0
    REACTION_PROMPT: str = (
        "You are an AI co-host for a tech stream. The streamer just highlighted "
        "this content on screen:\n"
        '"{content}"\n\n'
        "Give a witty, short (1-2 sentences) reaction to it for the live audience. "
        "Do NOT introduce yourself as an AI, just give direct, snappy commentary."
    )
    FALLBACK_REPLY: str = "Core overloaded."
    NOT_READY_REPLY: str = "Still booting up..."

    CAPABILITY_INIT_BASE_DELAY: float = 2.0
    CAPABILITY_INIT_MAX_DELAY: float = 60.0

    LAYOUT_STORE: Literal["file", "redis"] = "file"
    LAYOUT_FILE: Path = Path("layout-settings.json")
    LAYOUT_DEFAULTS: dict[str, bool | int | str] = {
        "showFaceCam": True,
        "showHandCam": True,
        "showRoomCam": True,
    }

    REDIS_URL: str = "redis://localhost:6379/0"
    LAYOUT_REDIS_KEY: str = "overlay:layout"

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
