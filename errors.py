"""
Error taxonomy for plotwise.

Only ConfigurationError is fatal.  UpstreamUnavailable and
MalformedResponse are raised by the HTTP collaborators and recovered by
the orchestrator with estimates or fallback classifications.
InvalidNumericInput never leaves the coercion helpers in
analysis_models.py.
"""


class AnalysisError(Exception):
    """Base class for every error raised by plotwise modules."""

    pass


class ConfigurationError(AnalysisError):
    """Raised before any scoring when required credentials are missing."""

    def __init__(self, missing_keys):
        self.missing_keys = list(missing_keys)
        super().__init__(
            "Missing required configuration: " + ", ".join(self.missing_keys)
        )


class UpstreamUnavailable(AnalysisError):
    """A place, distance or intelligence provider failed or timed out."""

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__(f"{service}: {message}")


class MalformedResponse(AnalysisError):
    """A provider answered, but with data that could not be parsed."""

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__(f"{service}: {message}")


class InvalidNumericInput(AnalysisError, ValueError):
    """NaN, infinite or non-numeric value supplied by an upstream source."""

    pass
