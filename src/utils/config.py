from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=ROOT_DIR / ".env")


def _get_env(*keys: str, default: str | None = None) -> str | None:
    for k in keys:
        v = os.getenv(k)
        if v is not None and str(v).strip() != "":
            return v.strip()
    return default


def _get_bool(*keys: str, default: bool = False) -> bool:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    return v.lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    db_path: str
    log_file: str | None
    currency: str
    default_city: str
    payment_site_id: str
    payment_api_key: str
    payment_base_url: str
    debug: bool


settings = Settings(
    db_path=_get_env(
        "XEPTION_DB_PATH", "DB_PATH", default=str(ROOT_DIR / "data" / "storefront.sqlite")
    )
    or "",
    log_file=_get_env("XEPTION_LOG_FILE", "LOG_FILE", default=None),
    currency=_get_env("CURRENCY", default="XAF") or "XAF",
    default_city=_get_env("DEFAULT_CITY", default="Yaoundé") or "Yaoundé",
    payment_site_id=_get_env("CINETPAY_SITE_ID", default="") or "",
    payment_api_key=_get_env("CINETPAY_API_KEY", default="") or "",
    payment_base_url=_get_env("PAYMENT_BASE_URL", default="http://localhost:5173")
    or "http://localhost:5173",
    debug=_get_bool("DEBUG"),
)
