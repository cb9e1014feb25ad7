"""Custom exceptions for the StoryForge application."""

from typing import Any, Dict


class StoryForgeException(Exception):
    """Base class for application exceptions with HTTP status code.

    Subclasses define ``status_code`` and ``error_code``; the application
    renders every subclass through ``to_response``.
    """
    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str = "StoryForge error"):
        self.message = message
        super().__init__(message)

    def to_response(self) -> Dict[str, Any]:
        return {"error": self.error_code, "message": self.message}


class RateLimitExceededError(StoryForgeException):
    """Raised by routes when a limiter check returns False.

    Maps to HTTP 429 Too Many Requests.
    """
    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(
        self,
        message: str = "Too many requests. Please wait a moment and try again.",
    ):
        super().__init__(message)


class InsufficientCreditsError(StoryForgeException):
    """Raised when a signed-in user has no credits left.

    Maps to HTTP 402 Payment Required.
    """
    status_code = 402
    error_code = "insufficient_credits"

    def __init__(self, credits: int = 0, message: str | None = None):
        self.credits = credits
        super().__init__(
            message or "You've run out of credits. Please purchase more to continue."
        )

    def to_response(self) -> Dict[str, Any]:
        response = super().to_response()
        response["credits"] = self.credits
        return response


class FreeLimitReachedError(StoryForgeException):
    """Raised when an anonymous session has used its free story.

    Maps to HTTP 403 Forbidden.
    """
    status_code = 403
    error_code = "free_limit_reached"

    def __init__(
        self,
        message: str = "You've used your free story! Sign up to get 3 more free stories.",
    ):
        super().__init__(message)

    def to_response(self) -> Dict[str, Any]:
        response = super().to_response()
        response["requiresAuth"] = True
        return response


class AuthenticationError(StoryForgeException):
    """Raised when a route requires a signed-in user.

    Maps to HTTP 401 Unauthorized.
    """
    status_code = 401
    error_code = "unauthorized"

    def __init__(self, detail: str = "Unauthorized"):
        self.detail = detail
        super().__init__(detail)


class ForbiddenError(StoryForgeException):
    """Raised when a user acts on a story they do not own."""
    status_code = 403
    error_code = "forbidden"


class StoryNotFoundError(StoryForgeException):
    """Raised when a story id does not exist."""
    status_code = 404
    error_code = "not_found"

    def __init__(self, story_id: str):
        self.story_id = story_id
        super().__init__("Story not found")


class InvalidSuggestionTypeError(StoryForgeException):
    status_code = 400
    error_code = "invalid_suggestion_type"

    def __init__(self, suggestion_type: str):
        self.suggestion_type = suggestion_type
        super().__init__(f"Invalid suggestion type: {suggestion_type}")


class GenerationFailedError(StoryForgeException):
    """Raised when the upstream model call fails.

    Maps to HTTP 500 with the generic ``generation_failed`` code.
    """
    status_code = 500
    error_code = "generation_failed"


class ProviderResponseError(Exception):
    """Raised by a provider when the upstream answer carries no text."""

    def __init__(self, message: str, finish_reason: str | None = None):
        self.finish_reason = finish_reason
        super().__init__(message)
