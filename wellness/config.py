from __future__ import annotations

import os
from pathlib import Path
from typing import List


class Settings:
    """Centralized configuration for the wellness stores and REST service."""

    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent
        repo_root = base_dir.parent
        data_root_default = repo_root / "data"

        self.data_root: Path = Path(
            os.environ.get("WELLNESS_DATA_ROOT") or data_root_default
        ).expanduser()
        self.app_db_path: Path = Path(
            os.environ.get("WELLNESS_DB_PATH") or (self.data_root / "wellness.db")
        ).expanduser()
        # Client-side persistence partitions (one JSON file per key).
        self.client_store_dir: Path = Path(
            os.environ.get("WELLNESS_CLIENT_STORE_DIR") or (self.data_root / "client")
        ).expanduser()

        # In production you MUST set WELLNESS_JWT_SECRET. The dev secret keeps local demos easy.
        self.jwt_secret: str = os.environ.get("WELLNESS_JWT_SECRET") or "dev-secret-change-me"
        # Token lifetime: "1d", "12h", "30m", "45s", "2w" or bare seconds.
        self.jwt_expires_in: str = os.environ.get("WELLNESS_JWT_EXPIRES_IN") or "1d"
        self.cookie_secure: bool = (os.environ.get("WELLNESS_COOKIE_SECURE") or "").strip() in {"1", "true", "True"}

        # ---- Client stores -> REST service ----
        self.api_base_url: str = os.environ.get("WELLNESS_API_BASE_URL", "http://127.0.0.1:5000")
        self.remote_timeout: float = float(os.environ.get("WELLNESS_REMOTE_TIMEOUT", "10"))

        # ---- LLM chat reply ----
        self.llm_api_key: str | None = os.environ.get("WELLNESS_LLM_API_KEY")
        self.llm_base_url: str = os.environ.get(
            "WELLNESS_LLM_BASE_URL", "https://api.openai.com/v1"
        )
        self.llm_model: str = os.environ.get("WELLNESS_LLM_MODEL", "gpt-4o-mini")
        self.llm_timeout: float = float(os.environ.get("WELLNESS_LLM_TIMEOUT", "30"))
        self.llm_max_tokens: int = int(os.environ.get("WELLNESS_LLM_MAX_TOKENS", "512"))
        self.llm_temperature: float = float(os.environ.get("WELLNESS_LLM_TEMPERATURE", "0.7"))

        self.log_level: str = os.environ.get("WELLNESS_LOG_LEVEL", "INFO").upper()

        cors = os.environ.get("WELLNESS_CORS_ORIGINS", "*")
        if cors.strip() == "*":
            self.cors_origins: List[str] = ["*"]
        else:
            self.cors_origins = [
                origin.strip() for origin in cors.split(",") if origin.strip()
            ]


settings = Settings()
