# runtime settings, read from the environment (and an optional .env file)
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from dotenv import load_dotenv

DEFAULT_PRINTER_VENDOR_IDS = (0x0416, 0x0FE6, 0x1A86)


def _env_string(name: str, default: Optional[str] = None) -> Optional[str]:
    """Return trimmed string env vars, empty strings count as unset."""
    raw = os.getenv(name)
    if raw is None:
        return default
    clean = raw.strip()
    return clean if clean else default


def _env_float(name: str, default: float) -> float:
    raw = _env_string(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = _env_string(name)
    if raw is None:
        return default
    try:
        return int(raw, 0)
    except ValueError:
        return default


def _env_int_list(name: str, default: Tuple[int, ...]) -> Tuple[int, ...]:
    raw = _env_string(name)
    if raw is None:
        return default
    values = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            values.append(int(part, 0))
        except ValueError:
            continue
    return tuple(values) or default


@dataclass(frozen=True)
class Settings:
    api_base_url: str = "http://localhost:8080"
    api_timeout: float = 10.0
    search_debounce: float = 0.4
    currency: str = "DH"
    shop_name: str = "BOUMIA"
    db_path: str = "data/pos.sqlite"
    printer_vendor_ids: Tuple[int, ...] = field(
        default_factory=lambda: DEFAULT_PRINTER_VENDOR_IDS
    )
    printer_endpoint: int = 0x01


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Build Settings from POS_* environment variables.
    A .env file (or `env_file`) is loaded first without overriding the real environment.
    """
    load_dotenv(env_file)
    return Settings(
        api_base_url=_env_string("POS_API_BASE_URL", Settings.api_base_url).rstrip("/"),
        api_timeout=_env_float("POS_API_TIMEOUT", Settings.api_timeout),
        search_debounce=_env_float("POS_SEARCH_DEBOUNCE", Settings.search_debounce),
        currency=_env_string("POS_CURRENCY", Settings.currency),
        shop_name=_env_string("POS_SHOP_NAME", Settings.shop_name),
        db_path=_env_string("POS_DB_PATH", Settings.db_path),
        printer_vendor_ids=_env_int_list(
            "POS_PRINTER_VENDOR_IDS", DEFAULT_PRINTER_VENDOR_IDS
        ),
        printer_endpoint=_env_int("POS_PRINTER_ENDPOINT", Settings.printer_endpoint),
    )
