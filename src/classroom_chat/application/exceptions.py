from __future__ import annotations

DEFAULT_ERROR_MESSAGE = "Something went wrong, please try again later."


class AppError(Exception):
    """Base application error.

    ``kind`` is the machine-readable category sent back to socket clients.
    """

    kind = "error"

    def __init__(self, detail: str = DEFAULT_ERROR_MESSAGE) -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    kind = "not_found"


class ForbiddenError(AppError):
    kind = "forbidden"


class ValidationError(AppError):
    kind = "validation"
