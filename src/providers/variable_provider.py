"""Return app-specific values to GTM function call variables.

When GTM processes a tag that depends on a "Function Call" variable, it calls
the provider with the key-value pairs configured on that variable. Two actions
are supported:

- `fetch_variable`: return the app value named by `variable_name`. An optional
  `default_value` is returned when the value is empty or unavailable. Without a
  default, `None` is returned, which makes GA drop the custom dimension.
- `enforce_default`: return `current_value` unless it is empty, "undefined" or
  "null", in which case `default_value` is returned. Passing `default_none`
  instead of `default_value` forces `None`.

To add a variable, add a `VariableName` member and a matching entry in
`AnalyticsVariableProvider._computations`.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from providers.environment import AppState, BuildConfig, Environment
from providers.errors import MissingKeyError, UnrecognizedValueError, VariableProviderError
from providers.host import (
    HostInfo,
    SystemHost,
    format_timestamp,
    format_timezone_offset,
    language_code_from_locale,
)
from providers.keys import UNSET_SENTINELS, Action, GtmKey, ReturnValue, VariableName

logger = logging.getLogger(__name__)

ERROR_VALUE_PREFIX = "Analytics Variable Provider Error: "


def _as_string(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return ReturnValue.TRUE if value else ReturnValue.FALSE
    if isinstance(value, str):
        return value
    return str(value)


class AnalyticsVariableProvider:
    """Resolve GTM function call requests into string values.

    The provider keeps no per-call state; a single instance can be shared
    across threads.
    """

    def __init__(
        self,
        build: BuildConfig,
        *,
        app_state: AppState | None = None,
        host: HostInfo | None = None,
    ):
        self.build = build
        self.app_state = app_state or AppState()
        self.host = host or SystemHost()
        self._computations: dict[VariableName, Callable[[], Any]] = {
            VariableName.ENVIRONMENT: lambda: self.environment.value,
            VariableName.TIMESTAMP: lambda: format_timestamp(self.host.now()),
            VariableName.LANGUAGE_CODE: lambda: language_code_from_locale(
                self.host.locale_name()
            ),
            VariableName.TIMEZONE_OFFSET: lambda: format_timezone_offset(self.host.now()),
            VariableName.VERSION_NAME: lambda: self.build.version_name,
            VariableName.LOGGED_IN: self.app_state.logged_in,
            VariableName.ANONYMIZE_IP: self.app_state.anonymize_ip,
        }

    @property
    def environment(self) -> Environment:
        return self.build.environment

    def resolve(self, request: Mapping[str, Any]) -> str | None:
        """Return the value requested by GTM, or None when there is none.

        Args:
            request: Key-value pairs passed by the GTM function call variable.

        Returns:
            String value for the tag field, or None to leave it unset. Never raises.
        """
        try:
            return self._resolve(request)
        except VariableProviderError as exc:
            return self.make_error_value(exc.description)
        except Exception as exc:  # collaborator failure
            self._log_failure(request)
            return self.make_error_value(f"{type(exc).__name__}: {exc}")

    # GTM SDK spelling of the same call.
    get_value = resolve

    def make_error_value(self, description: str) -> str | None:
        """Return an error string in test builds, None in production."""
        logger.debug("GTM variable error (%s): %s", self.environment.value, description)
        if self.environment is Environment.TEST:
            return f"{ERROR_VALUE_PREFIX}{description}"
        return None

    def _resolve(self, request: Mapping[str, Any]) -> str | None:
        action = _as_string(request.get(GtmKey.ACTION))
        if not action:
            raise MissingKeyError(GtmKey.ACTION)

        default_value = self._default_value(request)

        if action == Action.FETCH_VARIABLE.value:
            return self._fetch_variable(request, default_value)
        if action == Action.ENFORCE_DEFAULT.value:
            return self._enforce_default(request, default_value)
        raise UnrecognizedValueError(GtmKey.ACTION, action)

    @staticmethod
    def _default_value(request: Mapping[str, Any]) -> str | None:
        # `default_none` wins so the tag field ends up unset rather than "".
        if GtmKey.DEFAULT_VALUE in request and GtmKey.DEFAULT_NONE not in request:
            return _as_string(request[GtmKey.DEFAULT_VALUE])
        return None

    def _fetch_variable(self, request: Mapping[str, Any], default_value: str | None) -> str | None:
        variable_name = _as_string(request.get(GtmKey.VARIABLE_NAME))
        if not variable_name:
            raise MissingKeyError(GtmKey.VARIABLE_NAME)

        try:
            value = self._compute(variable_name)
        except VariableProviderError as exc:
            value = self.make_error_value(exc.description)
        except Exception as exc:  # collaborator failure
            self._log_failure(request)
            value = self.make_error_value(f"{type(exc).__name__}: {exc}")

        return value if value else default_value

    @staticmethod
    def _log_failure(request: Mapping[str, Any]) -> None:
        # Request values may carry user properties; only the routing keys are logged.
        logger.exception(
            "Unexpected failure resolving GTM request (action=%r, variable_name=%r)",
            request.get(GtmKey.ACTION),
            request.get(GtmKey.VARIABLE_NAME),
        )

    def _compute(self, variable_name: str) -> str | None:
        try:
            name = VariableName(variable_name)
        except ValueError as exc:
            raise UnrecognizedValueError(GtmKey.VARIABLE_NAME, variable_name) from exc
        return _as_string(self._computations[name]())

    @staticmethod
    def _enforce_default(request: Mapping[str, Any], default_value: str | None) -> str | None:
        current_value = _as_string(request.get(GtmKey.CURRENT_VALUE))
        if not current_value or current_value in UNSET_SENTINELS:
            return default_value
        return current_value
