"""Content registry façade.

``ContentRegistry`` owns one configuration, one record store, one update
tracker and the collaborators (value transfer, clock, optional audit log).
Every public operation returns a :class:`Result` and runs as a single
critical section: either all of its effects are committed or none are.

Registration checks run in a fixed order so the reported error is
deterministic:

    capacity -> field validation -> duplicate hash -> authority set
    -> fee transfer -> commit
"""

from __future__ import annotations

import copy
import itertools
import logging
import threading
from typing import Any, Optional, Sequence

from creg.ledger.clock import BlockHeightClock, Clock
from creg.ledger.transfer import TransferLog, ValueTransfer
from creg.registry.authority import AuthorityGate
from creg.registry.models import (
    ContentRecord,
    Currency,
    RegistryConfig,
    RegistryError,
    Result,
)
from creg.registry.store import ContentStore
from creg.registry.updates import UpdateTracker
from creg.registry.validation import check_hash, validate_registration, validate_update
from creg.security.audit_log import AuditLogger

logger = logging.getLogger(__name__)


class ContentRegistry:
    """Registry of content ownership claims keyed by 32-byte content hash."""

    def __init__(
        self,
        transfer: Optional[ValueTransfer] = None,
        clock: Optional[Clock] = None,
        config: Optional[RegistryConfig] = None,
        strict_authority: bool = False,
        audit: Optional[AuditLogger] = None,
    ) -> None:
        self.config = config if config is not None else RegistryConfig()
        self.gate = AuthorityGate(self.config, strict=strict_authority)
        self.store = ContentStore()
        self.updates = UpdateTracker()
        self.transfer = transfer if transfer is not None else TransferLog()
        self.clock = clock if clock is not None else BlockHeightClock()
        self.audit = audit
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """The lock serializing every operation on this registry."""
        return self._lock

    # ------------------------------------------------------------------
    # Governance
    # ------------------------------------------------------------------

    def set_authority(self, caller: str, identity: str) -> Result:
        """Assign the governing authority. Succeeds at most once."""
        with self._lock:
            result = _to_result(self.gate.set_authority(identity))
            self._record("set_authority", caller, result, details={"authority": identity})
            return result

    def set_max_contents(self, caller: str, value: int) -> Result:
        with self._lock:
            result = _to_result(self.gate.set_max_contents(caller, value))
            self._record("set_max_contents", caller, result, details={"max_contents": value})
            return result

    def set_registration_fee(self, caller: str, value: int) -> Result:
        with self._lock:
            result = _to_result(self.gate.set_registration_fee(caller, value))
            self._record(
                "set_registration_fee", caller, result, details={"registration_fee": value}
            )
            return result

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def register(
        self,
        caller: str,
        content_hash: bytes,
        title: str,
        description: str,
        category: str,
        tags: Sequence[str],
        price: int,
        royalty_rate: int,
        currency: Any,
    ) -> Result:
        """Register new content and return its id.

        The registration fee is requested from *caller* to the authority
        before anything is stored; if the transfer is refused the registry
        is left exactly as it was.
        """
        with self._lock:
            result = self._register(
                caller, content_hash, title, description, category, tags, price,
                royalty_rate, currency,
            )
            details = {"hash": _hex(content_hash), "title": title}
            self._record("register", caller, result, content_id=result.value, details=details)
            return result

    def _register(
        self,
        caller: str,
        content_hash: bytes,
        title: str,
        description: str,
        category: str,
        tags: Sequence[str],
        price: int,
        royalty_rate: int,
        currency: Any,
    ) -> Result:
        if self.config.at_capacity:
            return Result.failure(RegistryError.MAX_CONTENTS_EXCEEDED)
        error = validate_registration(
            content_hash, title, description, category, tags, price, royalty_rate, currency
        )
        if error is not None:
            return Result.failure(error)
        if self.store.has_hash(content_hash):
            return Result.failure(RegistryError.CONTENT_ALREADY_EXISTS)
        if not self.config.authority_set:
            return Result.failure(RegistryError.AUTHORITY_NOT_VERIFIED)

        if not self.transfer.transfer(self.config.registration_fee, caller, self.config.authority):
            return Result.failure(RegistryError.TRANSFER_FAILED)

        content_id = self.config.next_content_id
        record = ContentRecord(
            hash=bytes(content_hash),
            title=title,
            description=description,
            creator=caller,
            category=category,
            tags=list(tags),
            price=price,
            royalty_rate=royalty_rate,
            currency=Currency(currency),
            status=True,
            registered_at=self.clock.now(),
        )
        self.store.insert(content_id, record)
        self.config.next_content_id = content_id + 1
        return Result.success(content_id)

    def get(self, content_id: int) -> Result:
        """Return a copy of the record stored under *content_id*."""
        with self._lock:
            record = self.store.get(content_id)
            if record is None:
                return Result.failure(RegistryError.CONTENT_NOT_FOUND)
            return Result.success(copy.deepcopy(record))

    def get_by_hash(self, content_hash: bytes) -> Result:
        """Return the content id registered for *content_hash*."""
        with self._lock:
            if check_hash(content_hash) is not None:
                return Result.failure(RegistryError.INVALID_HASH)
            content_id = self.store.id_for_hash(content_hash)
            if content_id is None:
                return Result.failure(RegistryError.CONTENT_NOT_FOUND)
            return Result.success(content_id)

    def get_update(self, content_id: int) -> Result:
        """Return the latest edit of *content_id*, if it was ever edited."""
        with self._lock:
            entry = self.updates.get(content_id)
            if entry is None:
                return Result.failure(RegistryError.CONTENT_NOT_FOUND)
            return Result.success(copy.deepcopy(entry))

    def update(self, caller: str, content_id: int, title: str, description: str) -> Result:
        """Replace title and description; only the creator may do this."""
        with self._lock:
            result = self._update(caller, content_id, title, description)
            self._record("update", caller, result, content_id=content_id, details={"title": title})
            return result

    def _update(self, caller: str, content_id: int, title: str, description: str) -> Result:
        record = self.store.get(content_id)
        if record is None:
            return Result.failure(RegistryError.CONTENT_NOT_FOUND)
        if record.creator != caller:
            return Result.failure(RegistryError.NOT_AUTHORIZED)
        error = validate_update(title, description)
        if error is not None:
            return Result.failure(error)

        now = self.clock.now()
        self.store.replace_metadata(content_id, title, description, now)
        self.updates.record(content_id, title, description, now, caller)
        return Result.success(True)

    def count(self) -> Result:
        with self._lock:
            return Result.success(self.config.next_content_id)

    def verify_ownership(self, content_hash: bytes, identity: str) -> Result:
        """Check whether *identity* registered *content_hash*.

        Never fails: an unknown (or malformed) hash simply yields ``False``.
        """
        with self._lock:
            content_id = None
            if check_hash(content_hash) is None:
                content_id = self.store.id_for_hash(content_hash)
            if content_id is None:
                return Result.success(False)
            return Result.success(self.store.get(content_id).creator == identity)

    def list_contents(self, offset: int = 0, limit: int = 100) -> Result:
        """Return ``(content_id, record)`` pairs in id order."""
        with self._lock:
            if offset < 0 or limit < 0:
                return Result.success([])
            window = itertools.islice(self.store.iter_records(), offset, offset + limit)
            page = [(content_id, copy.deepcopy(record)) for content_id, record in window]
            return Result.success(page)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _record(
        self,
        action: str,
        caller: str,
        result: Result,
        content_id: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        if result.ok:
            logger.info("%s by %s succeeded (%r)", action, caller, result.value)
        else:
            logger.debug("%s by %s rejected: %s", action, caller, result.error.label)
        if self.audit is None:
            return
        # The operation has already committed at this point.
        try:
            self.audit.log_event(
                actor=caller,
                action=action,
                content_id=content_id,
                details=details,
                success=result.ok,
                error=result.error.label if result.error else "",
            )
        except OSError:
            logger.exception("Could not write audit entry for %s by %s", action, caller)


def _to_result(error: Optional[RegistryError]) -> Result:
    return Result.success(True) if error is None else Result.failure(error)


def _hex(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    return repr(value)
