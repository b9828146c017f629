"""String constants exchanged with GTM function call variables."""

from __future__ import annotations

from enum import Enum


class GtmKey:
    """Keys GTM passes to the provider."""

    ACTION = "action"
    VARIABLE_NAME = "variable_name"
    CURRENT_VALUE = "current_value"
    DEFAULT_VALUE = "default_value"
    DEFAULT_NONE = "default_none"


class Action(str, Enum):
    """Values accepted for the `action` key."""

    FETCH_VARIABLE = "fetch_variable"
    ENFORCE_DEFAULT = "enforce_default"


class VariableName(str, Enum):
    """Values accepted for the `variable_name` key."""

    ENVIRONMENT = "environment"
    TIMESTAMP = "timestamp"
    LANGUAGE_CODE = "language_code"
    TIMEZONE_OFFSET = "timezone_offset"
    VERSION_NAME = "version_name"
    LOGGED_IN = "logged_in"
    ANONYMIZE_IP = "anonymize_ip"


class ReturnValue:
    """Values that may be returned to GTM."""

    TRUE = "true"
    FALSE = "false"
    TEST = "test"
    PRODUCTION = "production"


# GTM passes these when a variable it reads is not set.
UNSET_SENTINELS = frozenset({"undefined", "null"})
