"""Custom exceptions for license-attributor."""


class AttributorError(Exception):
    """Base exception for all license-attributor errors."""

    pass


class NetworkError(AttributorError):
    """Exception raised when a network request fails."""

    pass


class HarvestTimeoutError(NetworkError):
    """Exception raised when a remote harvest call exceeds its timeout."""

    pass


class ConfigurationError(AttributorError):
    """Exception raised when configuration is invalid."""

    pass


class GraphFilterError(AttributorError):
    """Exception raised when the dependency graph cannot be filtered.

    Raised for malformed cfg predicates and edges pointing at unknown nodes.
    Always fatal for the run.
    """

    pass


class ExpressionParseError(AttributorError):
    """Exception raised when an SPDX license expression cannot be parsed."""

    def __init__(self, expression: str, detail: str) -> None:
        self.expression = expression
        self.detail = detail
        super().__init__(f"invalid license expression '{expression}': {detail}")
