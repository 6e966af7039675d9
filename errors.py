"""
Error classes for the function engine.

Configuration errors signal an integration bug and are reported to the
caller as structured errors. Degraded-path errors are absorbed by the
resolution chain. Backstop errors propagate to the registry's failure
boundary, which replaces them with the operation's fallback message.
"""


class FunctionEngineError(Exception):
    """Base exception for the function engine."""
    pass


class ConfigurationError(FunctionEngineError):
    """Raised for registry misconfiguration."""

    def to_dict(self):
        return {"type": type(self).__name__, "message": str(self)}


class DuplicateOperationError(ConfigurationError):
    def __init__(self, name):
        self.name = name
        super().__init__(f"Operation '{name}' is already registered")


class UnknownOperationError(ConfigurationError):
    def __init__(self, name):
        self.name = name
        super().__init__(f"Unknown operation '{name}'")

    def to_dict(self):
        data = super().to_dict()
        data["operation"] = self.name
        return data


class DegradedPathError(FunctionEngineError):
    """
    A live or direct-fetch tier could not produce data.

    Never raised past the resolution chain.
    """
    pass


class LiveDataUnavailableError(DegradedPathError):
    pass


class DirectFetchError(DegradedPathError):
    pass


class CatalogUnavailableError(FunctionEngineError):
    """The persistent catalog could not be queried (backstop failure)."""
    pass
