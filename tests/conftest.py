from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest


def pytest_configure() -> None:
    src_root = Path(__file__).resolve().parents[1] / "src"
    sys.path.insert(0, str(src_root))


PST = timezone(timedelta(hours=-8), "PST")
FIXED_NOW = datetime(2020, 2, 11, 11, 26, 2, 868123, tzinfo=PST)


class FixedHost:
    def __init__(self, now: datetime = FIXED_NOW, locale_name: str | None = "en_US"):
        self._now = now
        self._locale_name = locale_name

    def now(self) -> datetime:
        return self._now

    def locale_name(self) -> str | None:
        return self._locale_name


@pytest.fixture
def fixed_host() -> FixedHost:
    return FixedHost()


@pytest.fixture
def host_factory():
    return FixedHost


@pytest.fixture(autouse=True)
def _clear_provider_env(monkeypatch) -> None:
    monkeypatch.delenv("GTM_PROVIDER_CONFIG_JSON", raising=False)
    monkeypatch.delenv("GTM_PROVIDER_ENVIRONMENT", raising=False)
