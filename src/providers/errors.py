"""Error conditions recognized by the analytics variable provider.

None of these ever reach GTM: the provider converts them into an error value
(test builds) or `None` (production builds) at the `resolve` boundary.
"""

from __future__ import annotations


class VariableProviderError(Exception):
    """Base class for request conditions that resolve to an error value."""

    @property
    def description(self) -> str:
        return str(self)


class MissingKeyError(VariableProviderError):
    """A required key was absent or empty in the GTM request."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"'{key}' key not found")


class UnrecognizedValueError(VariableProviderError):
    """A key carried a value the provider does not know how to handle."""

    def __init__(self, key: str, value: str):
        self.key = key
        self.value = value
        super().__init__(f"Unexpected '{key}' value: {value}")


class UnimplementedFeatureError(VariableProviderError):
    """An app-specific integration point has not been supplied."""

    def __init__(self, feature: str):
        self.feature = feature
        super().__init__(f"Need to implement {feature}")
