class PersistenceAPIError(Exception):
    """Base exception for persistence API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PersistenceAuthError(PersistenceAPIError):
    """Authentication or authorization failed."""

    pass


class PersistenceNotFoundError(PersistenceAPIError):
    """Resource not found."""

    pass
