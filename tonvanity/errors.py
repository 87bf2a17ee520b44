"""Exception types raised by the search engine."""

DEFAULT_ABORT_MESSAGE = "Wallet search aborted"


class TonVanityError(Exception):
    """Base class for all tonvanity errors."""


class ValidationError(TonVanityError, ValueError):
    """Invalid search parameters. Raised at construction, never mid-search."""


class GenerationError(TonVanityError):
    """A single candidate could not be generated. Workers retry on this."""


class WorkerError(TonVanityError):
    """Failure reported back from a worker process."""


class SearchAborted(TonVanityError):
    """The cancellation token fired before any worker found a match."""

    def __init__(self, reason=None):
        self.reason = reason
        super().__init__(abort_message(reason))


class SearchFailed(TonVanityError):
    """The search could not run to completion."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Wallet search failed: {cause}")


def abort_message(reason) -> str:
    if isinstance(reason, str) and reason:
        return reason
    if isinstance(reason, BaseException) and str(reason):
        return str(reason)
    return DEFAULT_ABORT_MESSAGE
