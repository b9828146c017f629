"""Build and application collaborators consumed by the variable provider."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from providers.errors import UnimplementedFeatureError
from providers.keys import ReturnValue, VariableName


class Environment(str, Enum):
    """Which analytics property hits are meant for."""

    TEST = ReturnValue.TEST
    PRODUCTION = ReturnValue.PRODUCTION


@dataclass(frozen=True)
class BuildConfig:
    """Build metadata for the host application.

    `debug` selects the test environment. The criteria can be made more
    sophisticated by the integrator; the provider only needs the end result.
    """

    debug: bool = False
    version_name: str | None = None

    @property
    def environment(self) -> Environment:
        return Environment.TEST if self.debug else Environment.PRODUCTION


class AppState:
    """App-specific signals that GTM may ask for.

    Subclass and override the methods your app supports. The base
    implementation raises `UnimplementedFeatureError`, which the provider turns
    into an error value (test) or `None` (production).
    """

    def logged_in(self) -> bool | str | None:
        """Return True when the user is currently logged in."""
        raise UnimplementedFeatureError(VariableName.LOGGED_IN.value)

    def anonymize_ip(self) -> bool | str | None:
        """Return True when GA should anonymize the user's IP address."""
        raise UnimplementedFeatureError(VariableName.ANONYMIZE_IP.value)


class StaticAppState(AppState):
    """App state with fixed values, e.g. loaded from configuration.

    A value left as None falls back to the unimplemented behavior.
    """

    def __init__(
        self,
        *,
        logged_in: bool | str | None = None,
        anonymize_ip: bool | str | None = None,
    ):
        self._logged_in = logged_in
        self._anonymize_ip = anonymize_ip

    def logged_in(self) -> bool | str | None:
        if self._logged_in is None:
            return super().logged_in()
        return self._logged_in

    def anonymize_ip(self) -> bool | str | None:
        if self._anonymize_ip is None:
            return super().anonymize_ip()
        return self._anonymize_ip
