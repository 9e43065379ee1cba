"""Error types shared by the HTTP routes, socket handlers and services."""


class FlagzimError(Exception):
    """Base class for application errors."""


class ValidationError(FlagzimError):
    """A score submission payload was rejected. Surfaced to callers as HTTP 400."""


class PersistenceReadError(FlagzimError):
    """The score store could not be read. Callers treat the store as empty."""


class UpstreamFetchError(FlagzimError):
    """The country reference list could not be downloaded."""


class QuizStateError(FlagzimError):
    """A quiz operation was attempted in a state that does not allow it."""
