class FeedError(Exception):
    """Base class for errors the API translates into HTTP responses"""
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class ValidationError(FeedError):
    status_code = 400
    code = "validation_error"


class Unauthorized(FeedError):
    """Authorization header is missing or not a bearer credential"""
    status_code = 401
    code = "unauthorized"


class InvalidToken(Unauthorized):
    """Bearer credential was present but rejected"""
    code = "invalid_token"


class InvalidCredentials(Unauthorized):
    code = "invalid_credentials"


class Forbidden(FeedError):
    status_code = 403
    code = "forbidden"


class UserNotFound(FeedError):
    status_code = 404
    code = "user_not_found"


class PostNotFound(FeedError):
    status_code = 404
    code = "post_not_found"


class DuplicateEmail(FeedError):
    status_code = 409
    code = "duplicate_email"


class ConcurrentUpdateConflict(FeedError):
    """Optimistic update retries were exhausted; the client may retry"""
    status_code = 409
    code = "concurrent_update_conflict"


class DataIntegrity(FeedError):
    code = "data_integrity"


class StoreUnavailable(FeedError):
    status_code = 503
    code = "store_unavailable"
