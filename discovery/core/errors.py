"""Error taxonomy for retrieval and network construction."""


class DiscoveryError(Exception):
    """Base class for errors raised by the discovery engine."""


# ── Retrieval ────────────────────────────────────────────────────────


class RetrievalError(DiscoveryError):
    """A provider call failed after the resilience layer gave up."""

    def __init__(self, message: str, *, call: str = "", attempts: int = 0):
        super().__init__(message)
        self.call = call
        self.attempts = attempts


class RateLimitError(RetrievalError):
    """Provider kept answering with a rate-limit signal."""


class ServiceUnavailableError(RetrievalError):
    """Provider kept reporting itself temporarily unavailable."""


class NetworkError(RetrievalError):
    """Provider could not be reached at the network level."""


# ── Build-level ──────────────────────────────────────────────────────


class DeadlineExceeded(DiscoveryError):
    """The caller's deadline expired before the call could be made."""


class ProviderUnreachableError(DiscoveryError):
    """Every provider call of an operation failed; nothing was retrieved."""

    def __init__(self, message: str, failures: list[str] | None = None):
        super().__init__(message)
        self.failures = failures or []
