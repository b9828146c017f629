from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from utils import auth
from utils.auth import EDIT_SCOPES, get_credentials


def test_adc_requests_scopes(monkeypatch) -> None:
    creds = object()
    default = MagicMock(return_value=(creds, "project"))
    monkeypatch.setattr(auth, "google_auth_default", default)

    assert get_credentials("adc", None, iter(EDIT_SCOPES)) is creds
    default.assert_called_once_with(scopes=EDIT_SCOPES)


def test_service_account_reads_key_file(monkeypatch, tmp_path) -> None:
    key_file = tmp_path / "key.json"
    key_file.write_text("{}", encoding="utf-8")
    from_file = MagicMock(return_value="service-creds")
    monkeypatch.setattr(auth.service_account.Credentials, "from_service_account_file", from_file)

    assert get_credentials("service", str(key_file), EDIT_SCOPES) == "service-creds"
    from_file.assert_called_once_with(str(key_file), scopes=EDIT_SCOPES)


def test_missing_credentials_file_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        get_credentials("user", str(tmp_path / "client_secrets.json"), EDIT_SCOPES)


def test_unknown_auth_method_raises() -> None:
    with pytest.raises(ValueError):
        get_credentials("magic", None, EDIT_SCOPES)
