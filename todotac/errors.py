"""
Error types shared across the engine.
"""


class TodoTacError(Exception):
    """Base class for engine errors."""


class OracleError(TodoTacError):
    """
    An oracle call failed (transport, auth, timeout, empty service).

    Always recoverable: the session aborts the pending request and
    clears its busy flag.
    """

    def __init__(self, message: str, oracle: str = "", cause: Exception | None = None):
        super().__init__(message)
        self.oracle = oracle
        self.cause = cause
