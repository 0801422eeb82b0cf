class AccountError(Exception):
    """Base for failures reported back to the caller as {"error": message}."""
    status_code = 400

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(AccountError):
    """Missing or malformed input."""


class ConflictError(AccountError):
    """An account with the same email already exists."""


class AuthError(AccountError):
    """Unknown account, wrong password, wrong account type or deactivated account."""


class PersistenceError(AccountError):
    """The store rejected a write."""
