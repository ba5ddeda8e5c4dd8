"""Field validation for content registrations and updates.

Each check is a pure function returning ``None`` when the value is acceptable
or the specific :class:`RegistryError` describing why it is not. The chain
functions run the checks in a fixed order and stop at the first failure, so
the reported error is deterministic when several fields are bad at once:

    hash -> title -> description -> category -> tag count -> tag length
    -> price -> royalty rate -> currency
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Sequence

from creg.registry.models import (
    HASH_LENGTH,
    MAX_CATEGORY_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    MAX_ROYALTY_RATE,
    MAX_TAG_LENGTH,
    MAX_TAGS,
    MAX_TITLE_LENGTH,
    Currency,
    RegistryError,
)

Check = Callable[[], Optional[RegistryError]]


def _is_int(value: Any) -> bool:
    # bool is an int subclass but never a valid amount
    return isinstance(value, int) and not isinstance(value, bool)


def check_hash(content_hash: Any) -> Optional[RegistryError]:
    if not isinstance(content_hash, (bytes, bytearray)) or len(content_hash) != HASH_LENGTH:
        return RegistryError.INVALID_HASH
    return None


def check_title(title: Any) -> Optional[RegistryError]:
    if not isinstance(title, str) or not 1 <= len(title) <= MAX_TITLE_LENGTH:
        return RegistryError.INVALID_TITLE
    return None


def check_description(description: Any) -> Optional[RegistryError]:
    if not isinstance(description, str) or len(description) > MAX_DESCRIPTION_LENGTH:
        return RegistryError.INVALID_DESCRIPTION
    return None


def check_category(category: Any) -> Optional[RegistryError]:
    if not isinstance(category, str) or not 1 <= len(category) <= MAX_CATEGORY_LENGTH:
        return RegistryError.INVALID_CATEGORY
    return None


def check_tag_count(tags: Any) -> Optional[RegistryError]:
    if not isinstance(tags, (list, tuple)) or len(tags) > MAX_TAGS:
        return RegistryError.TOO_MANY_TAGS
    return None


def check_tag_lengths(tags: Sequence[Any]) -> Optional[RegistryError]:
    for tag in tags:
        if not isinstance(tag, str) or len(tag) > MAX_TAG_LENGTH:
            return RegistryError.TAG_TOO_LONG
    return None


def check_price(price: Any) -> Optional[RegistryError]:
    if not _is_int(price) or price < 0:
        return RegistryError.INVALID_PRICE
    return None


def check_royalty_rate(royalty_rate: Any) -> Optional[RegistryError]:
    if not _is_int(royalty_rate) or not 0 <= royalty_rate <= MAX_ROYALTY_RATE:
        return RegistryError.INVALID_ROYALTY_RATE
    return None


def check_currency(currency: Any) -> Optional[RegistryError]:
    try:
        Currency(currency)
    except ValueError:
        return RegistryError.INVALID_CURRENCY
    return None


def first_failure(checks: Sequence[Check]) -> Optional[RegistryError]:
    """Run *checks* in order and return the first error, if any."""
    for check in checks:
        error = check()
        if error is not None:
            return error
    return None


def validate_registration(
    content_hash: Any,
    title: Any,
    description: Any,
    category: Any,
    tags: Any,
    price: Any,
    royalty_rate: Any,
    currency: Any,
) -> Optional[RegistryError]:
    """Validate every field of a registration request.

    Returns:
        The first failing check's error kind, or ``None`` when all pass.
    """
    return first_failure(
        [
            lambda: check_hash(content_hash),
            lambda: check_title(title),
            lambda: check_description(description),
            lambda: check_category(category),
            lambda: check_tag_count(tags),
            lambda: check_tag_lengths(tags),
            lambda: check_price(price),
            lambda: check_royalty_rate(royalty_rate),
            lambda: check_currency(currency),
        ]
    )


def validate_update(title: Any, description: Any) -> Optional[RegistryError]:
    """Validate the mutable fields of an update.

    Any failure is reported as ``INVALID_UPDATE_PARAM``.
    """
    if check_title(title) is not None or check_description(description) is not None:
        return RegistryError.INVALID_UPDATE_PARAM
    return None
