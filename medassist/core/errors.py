"""Error taxonomy shared by the store, the services and the API layer"""


class ChatServiceError(Exception):
    """Base error; carries the HTTP status the API answers with."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ChatServiceError):
    """Bad or missing input, unrecognized quick action tag."""

    status_code = 422


class NotFound(ChatServiceError):
    status_code = 404


class RateLimited(ChatServiceError):
    status_code = 429


class UpstreamError(ChatServiceError):
    """Response generator unavailable, erroring or too slow."""

    status_code = 502


class StorageError(ChatServiceError):
    status_code = 503
