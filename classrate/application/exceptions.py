class ValidationError(ValueError):
    """Raised when a request is missing a required field or carries invalid values."""
    pass


class SessionNotFound(LookupError):
    """Raised when an operation targets a session id that does not exist."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class PersistenceFailure(RuntimeError):
    """Raised when the backing store fails to read or write (network, disk, database)."""
    pass


class ConfigurationError(PersistenceFailure):
    """Raised when a backend is selected by configuration but cannot be used."""
    pass
