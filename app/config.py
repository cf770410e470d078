"""Application configuration loaded from config.yaml + environment variables."""

from __future__ import annotations

import yaml
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    if _CONFIG_PATH.exists():
        with open(_CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    return {}


_yaml = _load_yaml()


class MailConfig(BaseSettings):
    host: str = ""
    port: int = 587
    username: str = ""
    password: str = ""
    use_tls: bool = True
    from_name: str = "ICSA Operaciones"
    from_address: str = "no-reply@icsa.com"
    timeout: float = 20.0

    model_config = {"env_prefix": "MAIL_"}


class SignatureConfig(BaseSettings):
    token_ttl_days: int = 7
    segment_length: int = 13


class FolioConfig(BaseSettings):
    digits: int = 6
    max_attempts: int = 10


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///data/ordenes.db"
    app_url: str = "http://localhost:8000"
    company_name: str = "ICSA Ingeniería Comunicaciones S.A."
    log_level: str = "INFO"
    mail: MailConfig = Field(default_factory=MailConfig)
    signature: SignatureConfig = Field(default_factory=SignatureConfig)
    folio: FolioConfig = Field(default_factory=FolioConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


def get_settings() -> Settings:
    """Build Settings by merging YAML defaults with env overrides."""
    y = _yaml
    mail = MailConfig(**y.get("mail", {}))
    sig = SignatureConfig(**y.get("signature", {}))
    folio = FolioConfig(**y.get("folio", {}))
    overrides = {
        k: y[k] for k in ("app_url", "company_name", "log_level") if k in y
    }
    db_url = y.get("database", {}).get("url")
    if db_url:
        overrides["database_url"] = db_url
    return Settings(mail=mail, signature=sig, folio=folio, **overrides)
