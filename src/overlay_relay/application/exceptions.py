from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class ConflictError(AppError):
    pass


class ValidationError(AppError):
    pass


class CapabilityUnavailableError(AppError):
    """The generation backend is absent or has not finished initializing."""


class CapabilityError(AppError):
    """The generation backend rejected or failed a call."""
