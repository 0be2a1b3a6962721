"""
Domain errors raised by the auth service and the token issuer.

Every error is terminal for the request; the API layer renders it with the
uniform error envelope using ``status``, ``error`` and ``message``.
"""
from __future__ import annotations


class AuthError(Exception):
    status = 400
    error = "BAD_REQUEST"
    message = "Request could not be processed"

    def __init__(self, message: str | None = None):
        if message:
            self.message = message
        super().__init__(self.message)


class DuplicateUsername(AuthError):
    status = 409
    error = "CONFLICT"
    message = "This username is taken"


class AuthenticationFailed(AuthError):
    status = 401
    error = "INVALID_CREDENTIALS"
    # shared by both subclasses so callers cannot enumerate usernames
    message = "Invalid username or password"


class UserNotFound(AuthenticationFailed):
    pass


class InvalidCredentials(AuthenticationFailed):
    pass


class TokenError(AuthError):
    status = 401
    error = "TOKEN_INVALID"
    message = "Refresh token is invalid"


class TokenNotFound(TokenError):
    error = "TOKEN_NOT_FOUND"
    message = "Refresh token not found"


class TokenInvalid(TokenError):
    pass


class TokenExpired(TokenError):
    error = "TOKEN_EXPIRED"
    message = "Token has expired"
