from __future__ import annotations

from dataclasses import dataclass, field
import os


# Best-effort support for local `.env` files.
# `uvicorn[standard]` typically installs `python-dotenv`, but we keep this optional.
try:
    from dotenv import load_dotenv  # type: ignore

    load_dotenv(override=False)
except Exception:
    pass


def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return float(value)


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


def _get_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip()


def _get_csv(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return tuple(p.strip() for p in value.split(","))


DEFAULT_SEVERITY_NAMES = (
    "Not classified",
    "Information",
    "Warning",
    "Average",
    "High",
    "Disaster",
)


@dataclass(frozen=True)
class Settings:
    # App metadata
    app_version: str = _get_str("APP_VERSION", "dev")

    # Monitoring backend (JSON-RPC endpoint, e.g. http://zbx/api_jsonrpc.php)
    api_url: str = _get_str("EVENTBOARD_API_URL", "http://localhost/api_jsonrpc.php")
    api_token: str = _get_str("EVENTBOARD_API_TOKEN", "")
    api_timeout_seconds: float = _get_float("EVENTBOARD_API_TIMEOUT_SECONDS", 10.0)

    # Display
    tag_count_default: int = _get_int("EVENTBOARD_TAG_COUNT", 3)
    event_window_limit: int = _get_int("EVENTBOARD_EVENT_WINDOW_LIMIT", 20)
    search_limit: int = _get_int("EVENTBOARD_SEARCH_LIMIT", 1000)
    # Problems changed within this period are highlighted as blinking.
    blink_period_seconds: int = _get_int("EVENTBOARD_BLINK_PERIOD_SECONDS", 30 * 60)
    date_time_format: str = _get_str("EVENTBOARD_DATE_TIME_FORMAT", "%Y-%m-%d %H:%M:%S")
    timezone: str = _get_str("EVENTBOARD_TIMEZONE", "UTC")
    severity_names: tuple[str, ...] = field(
        default_factory=lambda: _get_csv("EVENTBOARD_SEVERITY_NAMES", DEFAULT_SEVERITY_NAMES)
    )


settings = Settings()
