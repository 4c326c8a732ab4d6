from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """

    default_message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    default_message = "Document not found"


class AuthenticationError(UserError):
    """Raised when authentication fails."""

    default_message = "Authentication failed"


class ValidationError(UserError):
    """Raised when user input fails validation."""


class ServerError(Exception):
    """Raised when an entity that must exist is missing.

    Never shown to the user verbatim; the web layer logs it and answers
    with a generic message.
    """


# === Authentication ===
class MissingAuthHeaderError(AuthenticationError):
    default_message = 'Missing "Authorization" header'


class InvalidTokenError(AuthenticationError):
    default_message = "Invalid token"


class InvalidTokenTypeError(AuthenticationError):
    default_message = "Invalid token type"


class ExpiredTokenError(AuthenticationError):
    default_message = "Expired token"


class InvalidEmailOrPasswordError(AuthenticationError):
    default_message = "Invalid email or password"


class InvalidPasswordError(AuthenticationError):
    default_message = "Invalid password"


class SessionNotFoundError(NotFoundError):
    default_message = "Session not found"


# === Accounts ===
class UserNotFoundError(NotFoundError):
    default_message = "User not found"


class EmailAlreadyInUseError(ValidationError):
    default_message = "Email already in use"


class UsernameAlreadyInUseError(ValidationError):
    default_message = "Username already in use"


class CurrentPasswordRequiredError(ValidationError):
    default_message = "Current password required"


class PasswordNotChangedError(ValidationError):
    default_message = "Password not changed (new password same as current password)"


# === Relationships ===
class FriendNotFoundError(ValidationError):
    default_message = "Friend not found"


class AlreadyFriendsError(ValidationError):
    default_message = "Already friends with this user"


class CannotSendRequestToSelfError(ValidationError):
    default_message = "Cannot send a friend request to yourself"


class RequestNotFoundError(NotFoundError):
    default_message = "Friend request not found"


class RequestAlreadySentError(ValidationError):
    default_message = "Friend request already sent"
