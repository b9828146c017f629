"""Clock and locale reads from the host, plus the formats GTM expects."""

from __future__ import annotations

import locale
import os
from datetime import datetime
from typing import Protocol

_LOCALE_ENV_VARS = ("LANGUAGE", "LC_ALL", "LC_MESSAGES", "LANG")
_NON_LANGUAGE_LOCALES = {"c", "posix"}


class HostInfo(Protocol):
    """Read-only view of the host the provider runs on."""

    def now(self) -> datetime:
        """Current time as a timezone-aware datetime in the host's timezone."""
        ...

    def locale_name(self) -> str | None:
        """Preferred locale identifier, e.g. "en_US" or "pt-BR"."""
        ...


class SystemHost:
    """HostInfo backed by the process clock, timezone and locale settings."""

    def now(self) -> datetime:
        return datetime.now().astimezone()

    def locale_name(self) -> str | None:
        # Message-locale variables take precedence over LC_CTYPE, as gettext does.
        candidates: list[str] = []
        for env_var in _LOCALE_ENV_VARS:
            # LANGUAGE is a colon-separated priority list.
            candidates.extend((os.environ.get(env_var) or "").split(":"))
        ctype_name, _ = locale.getlocale()
        if ctype_name:
            candidates.append(ctype_name)

        for candidate in candidates:
            if language_code_from_locale(candidate):
                return candidate
        return None


def format_timestamp(moment: datetime) -> str:
    """Format like `2020-02-11 11:26:02.868 GMT-0800 (PST)`."""
    millis = moment.microsecond // 1000
    return (
        f"{moment.strftime('%Y-%m-%d %H:%M:%S')}.{millis:03d} "
        f"GMT{moment.strftime('%z')} ({moment.strftime('%Z')})"
    )


def format_timezone_offset(moment: datetime) -> str:
    """UTC offset in hours with one fractional digit (e.g. "-8.0", "5.5")."""
    offset = moment.utcoffset()
    hours = offset.total_seconds() / 3600.0 if offset is not None else 0.0
    return f"{hours:.1f}"


def language_code_from_locale(locale_name: str | None) -> str:
    """Return the 2-letter language part of a locale name, or "" if unknown."""
    if not locale_name:
        return ""
    # Drop encoding/modifier suffixes such as ".UTF-8" or "@euro".
    base = locale_name.split(".")[0].split("@")[0]
    language = base.replace("-", "_").split("_")[0].strip().lower()
    if language in _NON_LANGUAGE_LOCALES:
        return ""
    return language
