"""Credentials for the Tag Manager API calls made by the provisioning CLI."""

from __future__ import annotations

import os
from typing import Iterable

from google.auth import default as google_auth_default
from google.oauth2 import service_account
from google_auth_oauthlib.flow import InstalledAppFlow

AUTH_METHODS = ("service", "user", "adc")

# Creating/updating variables needs the edit scope.
EDIT_SCOPES = ["https://www.googleapis.com/auth/tagmanager.edit.containers"]
READONLY_SCOPES = ["https://www.googleapis.com/auth/tagmanager.readonly"]


def get_credentials(auth_method: str, credentials_path: str | None, scopes: Iterable[str]):
    """
    Return Google credentials for the requested auth method.

    Parameters
    ----------
    auth_method:
        "service" (Service Account key), "user" (installed-app OAuth flow),
        or "adc" (Application Default Credentials, e.g. gcloud login).
    credentials_path:
        Service Account JSON or OAuth client_secrets.json. Ignored for ADC.
    scopes:
        OAuth scopes to request, usually EDIT_SCOPES or READONLY_SCOPES.
    """
    if auth_method not in AUTH_METHODS:
        raise ValueError(f"auth must be one of: {', '.join(AUTH_METHODS)}")

    scopes_list = list(scopes)

    if auth_method == "adc":
        credentials, _ = google_auth_default(scopes=scopes_list)
        return credentials

    _ensure_credentials_file(credentials_path)
    if auth_method == "service":
        return service_account.Credentials.from_service_account_file(
            credentials_path,
            scopes=scopes_list,
        )

    flow = InstalledAppFlow.from_client_secrets_file(credentials_path, scopes_list)
    return flow.run_local_server(port=0)


def _ensure_credentials_file(path: str | None) -> None:
    if not path or not os.path.exists(path):
        raise FileNotFoundError(
            "Credentials file not found. Provide --credentials /path/to/file.json "
            "or use --auth adc.",
        )
