"""JSON snapshots of a registry's full state.

A snapshot holds the configuration, every content record, the latest update
per record and, when the transfer collaborator keeps them, the fee transfer
records and balances. Hashes are stored as hex strings. The hash index is not
stored; it is rebuilt from the records on load, which also rejects files whose
records break the registry invariants.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from creg.errors import SnapshotError
from creg.ledger.clock import Clock
from creg.ledger.transfer import BalanceLedger, TransferLog, TransferRecord
from creg.registry.content_registry import ContentRegistry
from creg.registry.models import BURN_IDENTITY, ContentRecord, RegistryConfig
from creg.registry.validation import validate_registration, validate_update
from creg.security.audit_log import AuditLogger

if TYPE_CHECKING:
    from creg.config import Settings

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


def registry_to_dict(registry: ContentRegistry) -> dict:
    config = registry.config
    data: dict[str, Any] = {
        "version": SNAPSHOT_VERSION,
        "config": {
            "next_content_id": config.next_content_id,
            "max_contents": config.max_contents,
            "registration_fee": config.registration_fee,
            "authority": config.authority,
        },
        "contents": [
            _record_to_dict(content_id, record)
            for content_id, record in registry.store.iter_records()
        ],
        "updates": [
            {
                "content_id": content_id,
                "updated_title": u.updated_title,
                "updated_description": u.updated_description,
                "updated_at": u.updated_at,
                "updated_by": u.updated_by,
            }
            for content_id, u in registry.updates.iter_updates()
        ],
    }
    if isinstance(registry.transfer, TransferLog):
        data["transfers"] = [
            {"amount": t.amount, "sender": t.sender, "recipient": t.recipient}
            for t in registry.transfer.records
        ]
    if isinstance(registry.transfer, BalanceLedger):
        data["balances"] = dict(registry.transfer.balances)
    return data


def registry_from_dict(
    data: dict,
    clock: Optional[Clock] = None,
    strict_authority: bool = False,
    audit: Optional[AuditLogger] = None,
) -> ContentRegistry:
    """Rebuild a registry from :func:`registry_to_dict` output.

    Configuration values, records and update entries must pass the same rules
    the live registry enforces.

    Raises:
        SnapshotError: if the data is malformed or inconsistent.
    """
    if data.get("version") != SNAPSHOT_VERSION:
        raise SnapshotError(f"Unsupported snapshot version: {data.get('version')!r}")

    try:
        config = _dict_to_config(data["config"])
        records = [
            (int(d["id"]), _dict_to_record(d)) for d in data.get("contents", [])
        ]
        transfers = [TransferRecord(**t) for t in data.get("transfers", [])]
        if "balances" in data:
            transfer: TransferLog = BalanceLedger(
                balances=_check_balances(data["balances"]), records=transfers
            )
        else:
            transfer = TransferLog(records=transfers)
    except (KeyError, TypeError, ValueError) as exc:
        raise SnapshotError(f"Malformed snapshot: {exc}") from exc

    registry = ContentRegistry(
        transfer=transfer,
        clock=clock,
        config=config,
        strict_authority=strict_authority,
        audit=audit,
    )

    ids = sorted(content_id for content_id, _ in records)
    if ids != list(range(config.next_content_id)):
        raise SnapshotError(
            f"Content ids {ids} do not match next_content_id={config.next_content_id}"
        )
    for content_id, record in records:
        try:
            registry.store.insert(content_id, record)
        except KeyError as exc:
            raise SnapshotError(f"Inconsistent snapshot: {exc}") from exc

    for d in data.get("updates", []):
        try:
            content_id = int(d["content_id"])
            if content_id not in registry.store:
                raise SnapshotError(f"Update for unknown content id {content_id}")
            if validate_update(d["updated_title"], d["updated_description"]) is not None:
                raise ValueError(f"invalid title or description for content {content_id}")
            registry.updates.record(
                content_id,
                d["updated_title"],
                d["updated_description"],
                int(d["updated_at"]),
                d["updated_by"],
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise SnapshotError(f"Malformed update entry: {exc}") from exc

    return registry


def save_snapshot(registry: ContentRegistry, path: str | Path) -> Path:
    """Write *registry* to *path*, replacing any previous snapshot atomically."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with registry.lock:
        payload = json.dumps(registry_to_dict(registry), indent=2)
    tmp_path.write_text(payload, encoding="utf-8")
    os.replace(tmp_path, path)
    logger.debug("Snapshot written to %s", path)
    return path


def load_snapshot(
    path: str | Path,
    missing_ok: bool = False,
    clock: Optional[Clock] = None,
    strict_authority: bool = False,
    audit: Optional[AuditLogger] = None,
) -> ContentRegistry:
    """Load a registry from *path*.

    With *missing_ok*, a missing file yields a fresh registry instead of
    raising :class:`SnapshotError`.
    """
    path = Path(path)
    if not path.exists():
        if missing_ok:
            return ContentRegistry(clock=clock, strict_authority=strict_authority, audit=audit)
        raise SnapshotError(f"No snapshot at {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise SnapshotError(f"Cannot read snapshot {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise SnapshotError(f"Snapshot {path} is not a JSON object")
    return registry_from_dict(data, clock=clock, strict_authority=strict_authority, audit=audit)


def _record_to_dict(content_id: int, record: ContentRecord) -> dict:
    return {
        "id": content_id,
        "hash": record.hash.hex(),
        "title": record.title,
        "description": record.description,
        "creator": record.creator,
        "category": record.category,
        "tags": list(record.tags),
        "price": record.price,
        "royalty_rate": record.royalty_rate,
        "currency": record.currency.value,
        "status": record.status,
        "registered_at": record.registered_at,
    }


def _dict_to_config(data: dict) -> RegistryConfig:
    config = RegistryConfig(
        next_content_id=int(data["next_content_id"]),
        max_contents=int(data["max_contents"]),
        registration_fee=int(data["registration_fee"]),
        authority=data.get("authority"),
    )
    if config.next_content_id < 0:
        raise ValueError(f"next_content_id {config.next_content_id} is negative")
    if config.max_contents <= 0:
        raise ValueError(f"max_contents {config.max_contents} must be greater than zero")
    if config.registration_fee < 0:
        raise ValueError(f"registration_fee {config.registration_fee} is negative")
    authority = config.authority
    if authority is not None and (
        not isinstance(authority, str) or not authority or authority == BURN_IDENTITY
    ):
        raise ValueError(f"authority {authority!r} is not a valid identity")
    return config


def _check_balances(balances: Any) -> dict[str, int]:
    if not isinstance(balances, dict):
        raise TypeError(f"balances must be a mapping, got {type(balances).__name__}")
    for identity, amount in balances.items():
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise ValueError(f"balance of {identity!r} is not a non-negative integer")
    return balances


def _dict_to_record(data: dict) -> ContentRecord:
    content_hash = bytes.fromhex(data["hash"])
    description = data.get("description", "")
    tags = data.get("tags", [])
    price = data.get("price", 0)
    royalty_rate = data.get("royalty_rate", 0)
    currency = data.get("currency", "STX")
    error = validate_registration(
        content_hash, data["title"], description, data["category"], tags, price,
        royalty_rate, currency,
    )
    if error is not None:
        raise ValueError(f"content {data.get('id')!r} fails validation: {error.label}")
    if not isinstance(data["creator"], str) or not data["creator"]:
        raise ValueError(f"content {data.get('id')!r} has no creator")
    return ContentRecord(
        hash=content_hash,
        title=data["title"],
        description=description,
        creator=data["creator"],
        category=data["category"],
        tags=list(tags),
        price=price,
        royalty_rate=royalty_rate,
        currency=currency,
        status=bool(data.get("status", True)),
        registered_at=int(data.get("registered_at", 0)),
    )


def open_registry(settings: "Settings") -> ContentRegistry:
    """Load the registry kept under *settings.home*, or start a fresh one.

    A fresh registry takes its capacity and fee from *settings*; an existing
    snapshot keeps its own configuration.
    """
    from creg.ledger.clock import SystemClock

    fresh = not settings.snapshot_path.exists()
    registry = load_snapshot(
        settings.snapshot_path,
        missing_ok=True,
        clock=SystemClock(),
        strict_authority=settings.strict_authority,
        audit=AuditLogger(settings.audit_dir) if settings.audit else None,
    )
    if fresh:
        registry.config.max_contents = settings.max_contents
        registry.config.registration_fee = settings.registration_fee
    return registry
