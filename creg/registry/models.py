"""Registry data models: content records, edit tracking, config, and results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

HASH_LENGTH = 32
MAX_TITLE_LENGTH = 256
MAX_DESCRIPTION_LENGTH = 1024
MAX_CATEGORY_LENGTH = 50
MAX_TAGS = 10
MAX_TAG_LENGTH = 50
MAX_ROYALTY_RATE = 100

DEFAULT_MAX_CONTENTS = 100_000
DEFAULT_REGISTRATION_FEE = 100

# Reserved null principal; never accepted as the governing authority.
BURN_IDENTITY = "SP000000000000000000002Q6VF78"


class RegistryError(int, Enum):
    """Failure kinds reported by registry operations.

    Numeric codes are stable and part of the public surface.
    """

    NOT_AUTHORIZED = 100
    INVALID_HASH = 101
    INVALID_TITLE = 102
    INVALID_DESCRIPTION = 103
    INVALID_CATEGORY = 104
    INVALID_PRICE = 106
    INVALID_ROYALTY_RATE = 107
    AUTHORITY_NOT_VERIFIED = 109
    CONTENT_ALREADY_EXISTS = 110
    CONTENT_NOT_FOUND = 111
    MAX_CONTENTS_EXCEEDED = 112
    INVALID_UPDATE_PARAM = 113
    INVALID_MAX_CONTENTS = 115
    INVALID_REGISTRATION_FEE = 116
    TAG_TOO_LONG = 118
    TOO_MANY_TAGS = 119
    INVALID_CURRENCY = 120
    TRANSFER_FAILED = 121

    @property
    def label(self) -> str:
        """Return the kind in CamelCase (e.g. ``ContentAlreadyExists``)."""
        return "".join(part.capitalize() for part in self.name.split("_"))


class Currency(str, Enum):
    """Accepted pricing currencies."""

    STX = "STX"  # native token
    USD = "USD"  # fiat reference
    BTC = "BTC"  # alt-chain reference


@dataclass
class ContentRecord:
    """A registered ownership claim over one piece of content."""

    hash: bytes
    title: str
    description: str
    creator: str
    category: str
    tags: list[str] = field(default_factory=list)
    price: int = 0
    royalty_rate: int = 0
    currency: Currency = Currency.STX
    status: bool = True
    registered_at: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.currency, str) and not isinstance(self.currency, Currency):
            self.currency = Currency(self.currency)

    @property
    def hash_hex(self) -> str:
        return self.hash.hex()


@dataclass
class ContentUpdateRecord:
    """The most recent edit applied to a content record."""

    updated_title: str
    updated_description: str
    updated_at: int
    updated_by: str


@dataclass
class RegistryConfig:
    """Registry-wide configuration owned by a single registry instance."""

    next_content_id: int = 0
    max_contents: int = DEFAULT_MAX_CONTENTS
    registration_fee: int = DEFAULT_REGISTRATION_FEE
    authority: Optional[str] = None

    @property
    def authority_set(self) -> bool:
        return self.authority is not None

    @property
    def at_capacity(self) -> bool:
        return self.next_content_id >= self.max_contents


@dataclass(frozen=True)
class Result:
    """Tagged outcome of a registry operation.

    ``ok`` is True on success with the payload in ``value``; on failure
    ``error`` carries the specific :class:`RegistryError`.
    """

    ok: bool
    value: Any = None
    error: Optional[RegistryError] = None

    @classmethod
    def success(cls, value: Any = True) -> "Result":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: RegistryError) -> "Result":
        return cls(ok=False, value=None, error=error)

    def unwrap(self) -> Any:
        """Return the payload, raising ``RegistryOperationError`` on failure."""
        if not self.ok:
            from creg.errors import RegistryOperationError

            raise RegistryOperationError(self.error)
        return self.value
