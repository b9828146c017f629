"""Provider configuration loading.

Settings can be supplied from:
- a YAML file (preferred, default `config/provider.yaml`), or
- a JSON payload in `GTM_PROVIDER_CONFIG_JSON`.

The file can either be a raw mapping or wrap everything in a top-level
`provider:` key. `GTM_PROVIDER_ENVIRONMENT` (test/production) overrides the
environment selected by the file.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from providers.environment import BuildConfig, Environment, StaticAppState

DEFAULT_PROVIDER_CONFIG = "config/provider.yaml"
PROVIDER_CONFIG_ENV_VAR = "GTM_PROVIDER_CONFIG_JSON"
ENVIRONMENT_ENV_VAR = "GTM_PROVIDER_ENVIRONMENT"

DEFAULT_FUNCTION_CALL_VARIABLE_TYPE = "fc"


@dataclass(frozen=True)
class GtmTarget:
    """Where Function Call variables are provisioned."""

    account_id: str | None = None
    container_id: str | None = None
    workspace_name: str | None = None
    class_name: str | None = None
    variable_type: str = DEFAULT_FUNCTION_CALL_VARIABLE_TYPE


@dataclass(frozen=True)
class ProviderSettings:
    """Everything the CLIs need to build a provider and provision GTM."""

    build: BuildConfig = field(default_factory=BuildConfig)
    app_state: StaticAppState = field(default_factory=StaticAppState)
    gtm: GtmTarget = field(default_factory=GtmTarget)
    function_call_variables: list[dict[str, Any]] = field(default_factory=list)


def load_provider_settings(config_path: str | None) -> ProviderSettings:
    """Load provider settings from YAML, the environment, or defaults.

    Args:
        config_path: Optional explicit YAML path. When given it must exist.

    Returns:
        Parsed settings. Missing sections fall back to defaults (production,
        no version name, no app state, no GTM target).

    Raises:
        FileNotFoundError: If `config_path` is given but does not exist.
        ValueError: If the configuration is malformed.
    """
    if config_path and not Path(config_path).exists():
        raise FileNotFoundError(f"Provider config not found: {config_path}")

    raw = _load_raw_from_file(config_path)
    if raw is None:
        raw = _load_raw_from_env()
    if raw is None:
        raw = {}

    return ProviderSettings(
        build=_parse_build(raw),
        app_state=_parse_app_state(raw.get("app_state")),
        gtm=_parse_gtm_target(raw.get("gtm")),
        function_call_variables=_parse_function_call_variables(
            raw.get("function_call_variables")
        ),
    )


def resolve_gtm_target(
    settings: ProviderSettings,
    *,
    account_id: str | None = None,
    container_id: str | None = None,
    workspace_name: str | None = None,
    class_name: str | None = None,
    variable_type: str | None = None,
) -> GtmTarget:
    """Merge CLI overrides into the configured target and require the IDs.

    Raises:
        ValueError: If account, container, workspace or class name stay unresolved.
    """
    configured = settings.gtm
    resolved = GtmTarget(
        account_id=account_id or configured.account_id,
        container_id=container_id or configured.container_id,
        workspace_name=workspace_name or configured.workspace_name,
        class_name=class_name or configured.class_name,
        variable_type=variable_type or configured.variable_type,
    )

    missing = [
        flag
        for flag, value in (
            ("--account-id", resolved.account_id),
            ("--container-id", resolved.container_id),
            ("--workspace-name", resolved.workspace_name),
            ("--class-name", resolved.class_name),
        )
        if not value
    ]
    if missing:
        raise ValueError(
            f"Provide {', '.join(missing)} or set them under `gtm:` in the provider config.",
        )
    return resolved


def _resolve_config_path(config_path: str | None) -> Path | None:
    if config_path:
        return Path(config_path)
    default_path = Path(DEFAULT_PROVIDER_CONFIG)
    if default_path.exists():
        return default_path
    return None


def _load_raw_from_file(config_path: str | None) -> dict[str, Any] | None:
    path_to_load = _resolve_config_path(config_path)
    if not path_to_load or not path_to_load.exists():
        return None

    with open(path_to_load, "r", encoding="utf-8") as config_file:
        raw_data = yaml.safe_load(config_file) or {}

    if not isinstance(raw_data, dict):
        raise ValueError("Provider config must be a mapping.")

    raw_settings = raw_data.get("provider", raw_data)
    if raw_settings is None:
        return {}
    if not isinstance(raw_settings, dict):
        raise ValueError("Provider config must be a mapping.")
    return raw_settings


def _load_raw_from_env() -> dict[str, Any] | None:
    env_payload = os.getenv(PROVIDER_CONFIG_ENV_VAR)
    if not env_payload:
        return None

    try:
        parsed = json.loads(env_payload)
    except json.JSONDecodeError as exc:
        raise ValueError(
            f"Failed to parse {PROVIDER_CONFIG_ENV_VAR} environment variable as JSON.",
        ) from exc

    if not isinstance(parsed, dict):
        raise ValueError(f"{PROVIDER_CONFIG_ENV_VAR} must contain a JSON object mapping.")
    raw_settings = parsed.get("provider", parsed) or {}
    if not isinstance(raw_settings, dict):
        raise ValueError(f"{PROVIDER_CONFIG_ENV_VAR} 'provider' entry must be a mapping.")
    return raw_settings


def _parse_environment(value: Any, source: str) -> Environment:
    try:
        return Environment(str(value).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(e.value for e in Environment)
        raise ValueError(f"{source} must be one of: {allowed} (got {value!r}).") from exc


def _parse_build(raw: dict[str, Any]) -> BuildConfig:
    debug = raw.get("debug", False)
    if not isinstance(debug, bool):
        raise ValueError("'debug' must be true or false.")

    if raw.get("environment") is not None:
        debug = _parse_environment(raw["environment"], "'environment'") is Environment.TEST

    env_override = os.getenv(ENVIRONMENT_ENV_VAR)
    if env_override:
        debug = _parse_environment(env_override, ENVIRONMENT_ENV_VAR) is Environment.TEST

    version_name = raw.get("version_name")
    return BuildConfig(
        debug=debug,
        version_name=str(version_name) if version_name is not None else None,
    )


def _parse_app_state(raw: Any) -> StaticAppState:
    if raw is None:
        return StaticAppState()
    if not isinstance(raw, dict):
        raise ValueError("'app_state' must be a mapping.")

    values: dict[str, bool | str | None] = {}
    for key in ("logged_in", "anonymize_ip"):
        value = raw.get(key)
        if value is not None and not isinstance(value, (bool, str)):
            raise ValueError(f"'app_state.{key}' must be a boolean or string.")
        values[key] = value
    return StaticAppState(**values)


def _parse_gtm_target(raw: Any) -> GtmTarget:
    if raw is None:
        return GtmTarget()
    if not isinstance(raw, dict):
        raise ValueError("'gtm' must be a mapping.")

    def _opt(key: str) -> str | None:
        value = raw.get(key)
        return str(value) if value not in (None, "") else None

    return GtmTarget(
        account_id=_opt("account_id"),
        container_id=_opt("container_id"),
        workspace_name=_opt("workspace_name"),
        class_name=_opt("class_name"),
        variable_type=_opt("variable_type") or DEFAULT_FUNCTION_CALL_VARIABLE_TYPE,
    )


def _parse_function_call_variables(raw: Any) -> list[dict[str, Any]]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError("'function_call_variables' must be a list.")
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ValueError(f"'function_call_variables[{index}]' must be a mapping.")
    return list(raw)
