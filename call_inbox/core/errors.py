from fastapi import status


class CallInboxError(Exception):
    """Base for errors a caller can act on; rendered as ``{"error", "detail"}``."""

    kind = "error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Unauthorized(CallInboxError):
    kind = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidInput(CallInboxError):
    kind = "invalid_input"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(CallInboxError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class RateLimited(CallInboxError):
    kind = "rate_limited"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
