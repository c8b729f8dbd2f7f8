from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlencode
from zoneinfo import ZoneInfo

from .config import Settings, settings as default_settings
from .models import AckAction, TRIGGER_VALUE_TRUE, UserRecord


SEC_PER_MIN = 60
SEC_PER_HOUR = 60 * SEC_PER_MIN
SEC_PER_DAY = 24 * SEC_PER_HOUR
SEC_PER_MONTH = 30 * SEC_PER_DAY
SEC_PER_YEAR = 365 * SEC_PER_DAY

_AGE_UNITS = (
    ("y", SEC_PER_YEAR),
    ("m", SEC_PER_MONTH),
    ("d", SEC_PER_DAY),
    ("h", SEC_PER_HOUR),
    ("m", SEC_PER_MIN),
    ("s", 1),
)

_SEVERITY_CLASSES = (
    "na-bg",
    "info-bg",
    "warning-bg",
    "average-bg",
    "high-bg",
    "disaster-bg",
)

_ACTION_LABELS = (
    (AckAction.CLOSE, "Closed"),
    (AckAction.ACKNOWLEDGE, "Acknowledged"),
    (AckAction.MESSAGE, "Message"),
    (AckAction.SEVERITY, "Severity changed"),
)


def now_ts() -> int:
    return int(time.time())


def date2str(clock: int, s: Optional[Settings] = None) -> str:
    s = s or default_settings
    try:
        tz = ZoneInfo(s.timezone) if s.timezone else timezone.utc
    except Exception:
        tz = timezone.utc
    return datetime.fromtimestamp(int(clock), tz).strftime(s.date_time_format)


def humanize_seconds(seconds: int) -> str:
    """Render a duration as at most three adjacent units, e.g. ``1d 2h 5m``.

    Years are 365 days and months 30 days. Zero-valued units inside the
    window are omitted; a zero duration renders as ``0``.
    """
    value = int(seconds)
    sign = ""
    if value < 0:
        sign = "-"
        value = -value

    counts = []
    for label, length in _AGE_UNITS:
        n, value = divmod(value, length)
        counts.append((label, n))

    first = next((i for i, (_, n) in enumerate(counts) if n), None)
    if first is None:
        return "0"

    parts = [f"{n}{label}" for label, n in counts[first:first + 3] if n]
    return sign + " ".join(parts)


def date2age(start: int, end: int = 0, now: Optional[int] = None) -> str:
    """Humanized time between ``start`` and ``end`` (or now when ``end`` is 0)."""
    if not end:
        end = now if now is not None else now_ts()
    return humanize_seconds(int(end) - int(start))


def severity_name(severity: int, s: Optional[Settings] = None) -> str:
    s = s or default_settings
    names = s.severity_names
    if 0 <= severity < len(names):
        return names[severity]
    return "Unknown"


def severity_class(severity: int) -> str:
    if 0 <= severity < len(_SEVERITY_CLASSES):
        return _SEVERITY_CLASSES[severity]
    return _SEVERITY_CLASSES[0]


def trigger_value_class(value: int, acknowledged: bool) -> str:
    if value == TRIGGER_VALUE_TRUE:
        return "problem-ack-fg" if acknowledged else "problem-unack-fg"
    return "ok-ack-fg" if acknowledged else "ok-unack-fg"


def should_blink(last_change: int, now: int, s: Optional[Settings] = None) -> bool:
    s = s or default_settings
    return (now - int(last_change)) < s.blink_period_seconds


def action_labels(action: int) -> list[str]:
    return [label for bit, label in _ACTION_LABELS if (action & bit) == bit]


def user_fullname(user: UserRecord) -> str:
    fullname = user.alias
    person = f"{user.name} {user.surname}".strip()
    if person:
        fullname += f" ({person})"
    return fullname


# --- URLs ---


def acknowledge_url(eventid: int, backurl: str) -> str:
    query = urlencode([
        ("action", "acknowledge.edit"),
        ("eventids[]", str(eventid)),
        ("backurl", backurl),
    ])
    return f"zabbix.php?{query}"


def event_url(triggerid: int, eventid: int) -> str:
    return "tr_events.php?" + urlencode([("triggerid", str(triggerid)), ("eventid", str(eventid))])


def correlation_url(correlationid: int) -> str:
    return "correlation.php?" + urlencode([("correlationid", str(correlationid))])
