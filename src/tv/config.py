from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel

ENV_PREFIX = "TV"


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv() -> None:
    import importlib
    import importlib.util

    if importlib.util.find_spec("dotenv") is None:
        return
    dotenv = importlib.import_module("dotenv")
    dotenv.load_dotenv(override=False)


def _env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return value.strip()


class Settings(BaseModel):
    backend_url: str | None = None
    api_key: str | None = None
    access_token: str | None = None
    user_id: str | None = None
    data_dir: Path = Path("./tv_data")
    log_level: str = "WARNING"

    @property
    def backend_configured(self) -> bool:
        return bool(self.backend_url and self.api_key)


def load_settings(use_dotenv: bool = True) -> Settings:
    if use_dotenv:
        _load_dotenv()
    data_dir = _env(_k("DATA_DIR"))
    return Settings(
        backend_url=_env(_k("BACKEND_URL")),
        api_key=_env(_k("API_KEY")),
        access_token=_env(_k("ACCESS_TOKEN")),
        user_id=_env(_k("USER_ID")),
        data_dir=Path(data_dir).expanduser() if data_dir else Path("./tv_data"),
        log_level=(_env(_k("LOG_LEVEL")) or "WARNING").upper(),
    )
