class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class ConfigurationError(DomainError):
    """Raised at startup when settings are inconsistent."""


class SessionNotFound(DomainError):
    """The class session does not exist."""


class SessionClosed(DomainError):
    """The class session has already ended."""


class InvalidToken(DomainError):
    """The scanned token was never issued."""


class TokenExpired(DomainError):
    """The token is known but expired or superseded."""


class DuplicateActiveToken(DomainError):
    """A session already has an active token.

    Raised by the token store when a caller creates a token without first
    superseding the current one.
    """
