from __future__ import annotations
import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from invoicer.models.profile import BankDetails, BusinessProfile, CompanyInfo

logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parents[1]
TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="INVOICER_", env_file=".env", extra="ignore")

    data_dir: Path = ROOT_DIR / "data"
    host: str = "127.0.0.1"
    port: int = 3000
    api_base_url: str = "http://localhost:3000"
    request_timeout: float = 10.0
    wkhtmltopdf_path: Optional[str] = None
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # ---------- data files ----------
    @property
    def receipt_counter_file(self) -> Path:
        return self.data_dir / "receipt_counter.json"

    @property
    def invoice_counter_file(self) -> Path:
        return self.data_dir / "last_invoice_number.json"

    @property
    def history_file(self) -> Path:
        return self.data_dir / "invoice_history.json"

    @property
    def settings_file(self) -> Path:
        return self.data_dir / "settings.json"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def _load_json(path: Path) -> Any:
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        logger.warning("Unreadable settings file %s, using defaults", path)
        return None


def load_business_profile(settings: Settings) -> BusinessProfile:
    """data/settings.json -> company / bank overrides, defaults otherwise."""
    s = _load_json(settings.settings_file) or {}
    if not isinstance(s, dict):
        return BusinessProfile()
    try:
        company = CompanyInfo(**(s.get("company") or {}))
        bank = BankDetails(**(s.get("bank") or {}))
    except ValidationError as e:
        logger.warning("Invalid business profile in %s (%s), using defaults", settings.settings_file, e)
        return BusinessProfile()
    return BusinessProfile(company=company, bank=bank)


def configured_wkhtmltopdf(settings: Settings) -> Optional[str]:
    if settings.wkhtmltopdf_path:
        return settings.wkhtmltopdf_path
    s = _load_json(settings.settings_file) or {}
    if isinstance(s, dict):
        pdf_conf = s.get("pdf", {}) if isinstance(s.get("pdf"), dict) else {}
        return pdf_conf.get("wkhtmltopdf_path") or s.get("wkhtmltopdf_path")
    return None
