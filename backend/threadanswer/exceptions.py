from __future__ import annotations

from fastapi import HTTPException, status


class AppError(HTTPException):
    """Base application error."""

    def __init__(self, detail: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(status_code=status_code, detail=detail)


class ServiceUnavailableError(AppError):
    def __init__(self, detail: str = "Service temporarily unavailable") -> None:
        super().__init__(detail=detail, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)


class RetrievalError(ServiceUnavailableError):
    """Raised when the thread search or fetch collaborator fails.

    These are the only failures the answer pipeline lets through; model,
    policy and parsing problems degrade to an evidence-only answer instead.
    """

    def __init__(self, detail: str = "Thread retrieval failed") -> None:
        super().__init__(detail=detail)
