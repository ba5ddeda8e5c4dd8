"""Authority gate: one-shot governance identity and gated configuration.

The authority can be assigned once, from unset to a concrete identity, and is
never changed afterwards. Capacity and fee setters are only open once an
authority exists. With ``strict`` enabled they additionally require the caller
to *be* the authority; the default accepts any caller once governance is live.
"""

from __future__ import annotations

from typing import Any, Optional

from creg.registry.models import BURN_IDENTITY, RegistryConfig, RegistryError


class AuthorityGate:
    """Guards mutations of a :class:`RegistryConfig`."""

    def __init__(self, config: RegistryConfig, strict: bool = False) -> None:
        self.config = config
        self.strict = strict

    @property
    def authority(self) -> Optional[str]:
        return self.config.authority

    def set_authority(self, identity: str) -> Optional[RegistryError]:
        if not isinstance(identity, str) or not identity or identity == BURN_IDENTITY:
            return RegistryError.NOT_AUTHORIZED
        if self.config.authority_set:
            return RegistryError.AUTHORITY_NOT_VERIFIED
        self.config.authority = identity
        return None

    def check_privileged(self, caller: str) -> Optional[RegistryError]:
        """Return why *caller* may not change configuration, or ``None``."""
        if not self.config.authority_set:
            return RegistryError.AUTHORITY_NOT_VERIFIED
        if self.strict and caller != self.config.authority:
            return RegistryError.NOT_AUTHORIZED
        return None

    def set_max_contents(self, caller: str, value: Any) -> Optional[RegistryError]:
        if not _is_int(value) or value <= 0:
            return RegistryError.INVALID_MAX_CONTENTS
        error = self.check_privileged(caller)
        if error is not None:
            return error
        self.config.max_contents = value
        return None

    def set_registration_fee(self, caller: str, value: Any) -> Optional[RegistryError]:
        if not _is_int(value) or value < 0:
            return RegistryError.INVALID_REGISTRATION_FEE
        error = self.check_privileged(caller)
        if error is not None:
            return error
        self.config.registration_fee = value
        return None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
