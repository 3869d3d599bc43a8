"""Exceptions raised by the classification service client."""


class ClassifierError(Exception):
    """Base exception for classification service failures."""

    pass


class ClassifierUnavailable(ClassifierError):
    """Service unreachable or the request timed out."""

    pass


class ClassifierAPIError(ClassifierError):
    """Service answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str, response_body: str = ""):
        self.status_code = status_code
        self.message = message
        self.response_body = response_body
        super().__init__(f"HTTP {status_code}: {message}")


class MalformedResponse(ClassifierError):
    """Response body was not JSON or lacked the expected fields."""

    pass


class ClassifierRejected(ClassifierError):
    """Response carried an explicit error field (or ok=false)."""

    pass
