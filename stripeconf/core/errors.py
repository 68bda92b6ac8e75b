from __future__ import annotations


class StripeconfError(Exception):
    """Base class for errors the CLI reports as `[stripeconf] error: ...`."""


class ConfigError(StripeconfError):
    """Raised for any failure of the local project configuration store."""


class ValidationError(StripeconfError):
    """Raised when user input fails a format check before reaching the store or API."""

    def __init__(self, message: str, *, field: str = "") -> None:
        super().__init__(message)
        self.field = field


class StripeClientError(StripeconfError):
    """Raised when a Stripe API call fails.

    We keep the HTTP status and Stripe error code (when the SDK provides them)
    so callers can tell a missing resource from an auth failure.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        if cause is not None:
            self.__cause__ = cause
