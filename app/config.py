"""Process-wide settings, read once from the environment (and ``.env``)."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_MODEL = "gpt-4o-mini"


@dataclass(frozen=True)
class Settings:
    openai_api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    cors_origin: str = "*"
    log_level: str = "INFO"

    @property
    def has_llm_credential(self) -> bool:
        return bool(self.openai_api_key)

    def cors_headers(self) -> dict[str, str]:
        return {
            "Access-Control-Allow-Origin": self.cors_origin,
            "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type, Authorization",
        }


def load_settings() -> Settings:
    """Build :class:`Settings` from the environment.

    Blank values are treated as missing so an empty ``OPENAI_API_KEY=`` line in
    a ``.env`` file still selects the fallback planner.
    """
    load_dotenv()

    api_key = (os.getenv("OPENAI_API_KEY") or "").strip() or None
    model = (os.getenv("TRIP_PLANNER_MODEL") or "").strip() or DEFAULT_MODEL
    cors_origin = (os.getenv("CORS_ORIGIN") or "").strip() or "*"
    log_level = (os.getenv("TRIP_PLANNER_LOG_LEVEL") or "INFO").strip().upper()
    return Settings(
        openai_api_key=api_key,
        model=model,
        cors_origin=cors_origin,
        log_level=log_level,
    )
