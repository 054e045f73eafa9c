"""
Application exceptions. Each carries the HTTP status and error code the API
reports for it.
"""


class EstudosException(Exception):
    """Base exception for all application errors."""

    status_code = 500
    code = "INTERNAL_ERROR"


class ValidationError(EstudosException):
    status_code = 400
    code = "VALIDATION_ERROR"


class InvalidRating(ValidationError):
    """Raised when a review outcome is outside the 1-5 scale or unknown."""

    code = "INVALID_RATING"


class AuthenticationError(EstudosException):
    status_code = 401
    code = "TOKEN_REQUIRED"


class NotOwner(EstudosException):
    """Raised when a user references a resource owned by someone else."""

    status_code = 403
    code = "NOT_OWNER"


class NotFoundError(EstudosException):
    status_code = 404
    code = "NOT_FOUND"


class CardNotFound(NotFoundError):
    code = "FLASHCARD_NOT_FOUND"


class SubjectNotFound(NotFoundError):
    code = "SUBJECT_NOT_FOUND"


class ReviewConflict(EstudosException):
    """Raised when a card changed between read and write of a review."""

    status_code = 409
    code = "REVIEW_CONFLICT"
