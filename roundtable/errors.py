"""Exceptions raised by the debate engine."""


class ConfigurationError(ValueError):
    """Raised before any phase starts when a debate cannot be set up."""


class DebateAborted(Exception):
    """Raised by DebateEngine.run() when the debate was stopped.

    Not an error: callers that requested the stop swallow it.
    """
