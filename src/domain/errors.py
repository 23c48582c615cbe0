from __future__ import annotations


class LedgerError(RuntimeError):
    pass


class ValidationError(LedgerError):
    """Malformed or incomplete transaction/profile input."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or [message]


class NotFoundError(LedgerError):
    pass


class TransportError(LedgerError):
    """Persistence or network failure reported by a collaborator."""


class IdentityRequiredError(LedgerError):
    pass
