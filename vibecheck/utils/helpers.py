"""
Helper utilities for VibeCheck telemetry
"""

from datetime import datetime, timedelta, timezone
import locale
import platform
import shutil
import sys
from typing import List, Optional

from vibecheck.config import settings
from vibecheck.models.event import ClientEnvironment


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def export_filename(now: Optional[datetime] = None, prefix: str = "desidrip_data") -> str:
    """Timestamped name for a downloadable event export"""
    now = now or utc_now()
    return f"{prefix}_{now.strftime('%Y-%m-%dT%H-%M-%S')}Z.json"


def day_key(dt: datetime) -> str:
    """UTC calendar day of a timestamp"""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%d")


def last_n_days(days: int, now: Optional[datetime] = None) -> List[str]:
    """Day keys from oldest to today, inclusive"""
    now = now or utc_now()
    return [day_key(now - timedelta(days=i)) for i in range(days - 1, -1, -1)]


def _host_language() -> str:
    try:
        lang = locale.getlocale()[0]
    except ValueError:
        lang = None
    return lang.replace("_", "-") if lang else "en-US"


def host_environment() -> ClientEnvironment:
    """Probe the running process the way a browser exposes navigator facts.

    The terminal size (in character cells) stands in for the screen and a
    frozen/bundled interpreter counts as a standalone app install.
    """
    size = shutil.get_terminal_size()
    return ClientEnvironment(
        platform=f"{platform.system()} {platform.machine()}".strip() or "unknown",
        user_agent=f"{settings.APP_NAME}/{settings.APP_VERSION} Python/{platform.python_version()}",
        language=_host_language(),
        screen_resolution=f"{size.columns}x{size.lines}",
        connection_type="unknown",
        is_pwa=bool(getattr(sys, "frozen", False)),
    )
