"""Error taxonomy for the streaming research agent."""


class ResearchError(Exception):
    """Base class for every error raised by the research agent."""


class ConfigurationError(ResearchError):
    """Invalid or missing strategy, capability, or research configuration."""


class CapabilityUnavailable(ResearchError):
    """A capability name is not registered or its engine is disabled."""

    def __init__(self, name: str, reason: str = "not registered"):
        super().__init__(f"capability '{name}' unavailable: {reason}")
        self.name = name
        self.reason = reason


class TransientCallError(ResearchError):
    """A network error, timeout, or non-success reply from an external capability."""


class AllEnginesFailed(TransientCallError):
    """Every engine allowed by the retrieval policy failed.

    Attributes:
        engines: The engines that were attempted, in order.
        errors: The collected per-engine errors.
        last_error: The final error observed (fallback mode).
    """

    def __init__(
        self,
        message: str,
        engines: list[str] | None = None,
        errors: list[Exception] | None = None,
    ):
        super().__init__(message)
        self.engines = engines or []
        self.errors = errors or []

    @property
    def last_error(self) -> Exception | None:
        return self.errors[-1] if self.errors else None


class MalformedResponse(ResearchError):
    """Model output could not be parsed into the expected structure."""


class Cancelled(ResearchError):
    """The run was aborted by an external cancellation signal."""


class StepBudgetExceeded(ResearchError):
    """The run visited more state-machine nodes than its step budget allows."""
