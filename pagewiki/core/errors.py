from __future__ import annotations


class APIError(Exception):
    def __init__(self, status_code: int, code: str, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message


def not_found(message: str = "Page not found") -> APIError:
    return APIError(404, "not_found", message)


def validation_error(message: str) -> APIError:
    return APIError(400, "validation_error", message)


def conflict(message: str) -> APIError:
    return APIError(409, "conflict", message)
