"""Domain errors raised by the auth services.

Each error carries the HTTP status it maps to; ``app.main`` renders them with
the same ``{"detail": ...}`` body that ``HTTPException`` produces.
"""


class AuthError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class BadRequest(AuthError):
    status_code = 400


class ValidationFailure(BadRequest):
    pass


class AlreadyVerified(BadRequest):
    pass


class OtpNotFound(BadRequest):
    pass


class OtpExpired(BadRequest):
    pass


class OtpMismatch(BadRequest):
    pass


class Unauthorized(AuthError):
    status_code = 401


class TokenInvalid(Unauthorized):
    pass


class TokenExpired(Unauthorized):
    pass


class Forbidden(AuthError):
    status_code = 403


class NotFound(AuthError):
    status_code = 404


class Conflict(AuthError):
    status_code = 409


class StaleWrite(Conflict):
    """A compare-and-set update found the row changed underneath it."""


class RateLimited(AuthError):
    status_code = 429

    def __init__(self, detail: str, wait_minutes: int | None = None):
        super().__init__(detail)
        self.wait_minutes = wait_minutes


class DeliveryFailure(AuthError):
    status_code = 502
