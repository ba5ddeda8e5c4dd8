"""Exceptions raised at the edges of the registry.

Registry operations themselves never raise for rejected input; they return a
``Result``. These exceptions are for callers that prefer raising (the CLI and
the HTTP API) and for failures outside the registry core.
"""

from __future__ import annotations

from creg.registry.models import RegistryError

ERROR_MESSAGES: dict[RegistryError, str] = {
    RegistryError.NOT_AUTHORIZED: "Caller is not authorized for this operation",
    RegistryError.INVALID_HASH: "Content hash must be exactly 32 bytes",
    RegistryError.INVALID_TITLE: "Title must be 1-256 characters",
    RegistryError.INVALID_DESCRIPTION: "Description must be at most 1024 characters",
    RegistryError.INVALID_CATEGORY: "Category must be 1-50 characters",
    RegistryError.INVALID_PRICE: "Price must not be negative",
    RegistryError.INVALID_ROYALTY_RATE: "Royalty rate must be between 0 and 100",
    RegistryError.AUTHORITY_NOT_VERIFIED: "Registry authority is not in a valid state",
    RegistryError.CONTENT_ALREADY_EXISTS: "Content with this hash is already registered",
    RegistryError.CONTENT_NOT_FOUND: "Content not found",
    RegistryError.MAX_CONTENTS_EXCEEDED: "Registry is at capacity",
    RegistryError.INVALID_UPDATE_PARAM: "Updated title or description is invalid",
    RegistryError.INVALID_MAX_CONTENTS: "Max contents must be greater than zero",
    RegistryError.INVALID_REGISTRATION_FEE: "Registration fee must not be negative",
    RegistryError.TAG_TOO_LONG: "Each tag must be at most 50 characters",
    RegistryError.TOO_MANY_TAGS: "At most 10 tags are allowed",
    RegistryError.INVALID_CURRENCY: "Currency must be one of STX, USD, BTC",
    RegistryError.TRANSFER_FAILED: "Registration fee transfer failed",
}


class CregError(Exception):
    """Base class for creg exceptions."""


class RegistryOperationError(CregError):
    """A registry operation was rejected."""

    def __init__(self, error: RegistryError) -> None:
        self.error = error
        super().__init__(f"{error.label} ({error.value}): {ERROR_MESSAGES[error]}")


class SnapshotError(CregError):
    """A persisted registry snapshot could not be read or is inconsistent."""


class ConfigError(CregError):
    """Configuration values are missing or malformed."""
