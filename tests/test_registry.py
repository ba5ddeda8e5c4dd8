"""Tests for the content registry façade."""

import shutil
import tempfile
from pathlib import Path

import pytest

from creg.errors import RegistryOperationError
from creg.ledger.clock import BlockHeightClock
from creg.ledger.transfer import BalanceLedger, TransferRecord
from creg.registry.content_registry import ContentRegistry
from creg.registry.models import BURN_IDENTITY, Currency, RegistryError
from creg.security.audit_log import AuditLogger

CREATOR = "ST1TEST"
AUTHORITY = "ST2TEST"
OTHER = "ST3FAKE"


def _hash(fill: int = 1) -> bytes:
    return bytes([fill]) * 32


def _registry(**kwargs) -> ContentRegistry:
    kwargs.setdefault("clock", BlockHeightClock())
    return ContentRegistry(**kwargs)


def _governed(**kwargs) -> ContentRegistry:
    reg = _registry(**kwargs)
    assert reg.set_authority(CREATOR, AUTHORITY).ok
    return reg


def _register(reg: ContentRegistry, caller: str = CREATOR, content_hash=None, **overrides):
    fields = {
        "title": "Title",
        "description": "Description",
        "category": "Category",
        "tags": ["tag1", "tag2"],
        "price": 100,
        "royalty_rate": 10,
        "currency": "STX",
    }
    fields.update(overrides)
    if content_hash is None:
        content_hash = _hash()
    return reg.register(caller, content_hash, **fields)


# --- Registration ---


def test_register_content_success():
    reg = _governed()
    reg.clock.advance(5)

    result = _register(reg)
    assert result.ok
    assert result.value == 0

    record = reg.get(0).value
    assert record.hash == _hash()
    assert record.title == "Title"
    assert record.description == "Description"
    assert record.category == "Category"
    assert record.tags == ["tag1", "tag2"]
    assert record.price == 100
    assert record.royalty_rate == 10
    assert record.currency == Currency.STX
    assert record.creator == CREATOR
    assert record.status is True
    assert record.registered_at == 5
    assert reg.transfer.records == [TransferRecord(amount=100, sender=CREATOR, recipient=AUTHORITY)]


def test_rejects_duplicate_hash():
    reg = _governed()
    _register(reg, title="Title1")

    result = _register(reg, title="Title2", category="Cat2", price=200, currency="USD")
    assert not result.ok
    assert result.error == RegistryError.CONTENT_ALREADY_EXISTS

    assert reg.get(0).value.title == "Title1"
    assert reg.count().value == 1
    assert len(reg.transfer.records) == 1


def test_rejects_registration_without_authority():
    reg = _registry()
    result = _register(reg)
    assert result.error == RegistryError.AUTHORITY_NOT_VERIFIED
    assert reg.transfer.records == []
    assert reg.count().value == 0


def test_rejects_invalid_hash_length():
    reg = _governed()
    assert _register(reg, content_hash=bytes(31)).error == RegistryError.INVALID_HASH
    assert _register(reg, content_hash=bytes(33)).error == RegistryError.INVALID_HASH


def test_rejects_invalid_title():
    reg = _governed()
    assert _register(reg, title="").error == RegistryError.INVALID_TITLE
    assert _register(reg, title="x" * 257).error == RegistryError.INVALID_TITLE


def test_rejects_invalid_description():
    reg = _governed()
    assert _register(reg, description="d" * 1025).error == RegistryError.INVALID_DESCRIPTION
    assert _register(reg, description="d" * 1024).ok
    assert _register(reg, content_hash=_hash(2), description="").ok


def test_rejects_invalid_category():
    reg = _governed()
    assert _register(reg, category="").error == RegistryError.INVALID_CATEGORY
    assert _register(reg, category="c" * 51).error == RegistryError.INVALID_CATEGORY
    assert reg.count().value == 0


def test_description_checked_before_category():
    reg = _governed()
    result = _register(reg, description="d" * 1025, category="")
    assert result.error == RegistryError.INVALID_DESCRIPTION


def test_terms_checked_in_order():
    reg = _governed()
    assert _register(reg, tags=["a" * 51], price=-1).error == RegistryError.TAG_TOO_LONG
    result = _register(reg, royalty_rate=101, currency="EUR")
    assert result.error == RegistryError.INVALID_ROYALTY_RATE


def test_rejects_too_many_tags_before_tag_length():
    reg = _governed()
    result = _register(reg, tags=["a" * 51] * 11)
    assert result.error == RegistryError.TOO_MANY_TAGS


def test_rejects_tag_too_long():
    reg = _governed()
    assert _register(reg, tags=["a" * 51]).error == RegistryError.TAG_TOO_LONG


def test_rejects_bad_terms():
    reg = _governed()
    assert _register(reg, price=-1).error == RegistryError.INVALID_PRICE
    assert _register(reg, royalty_rate=101).error == RegistryError.INVALID_ROYALTY_RATE
    assert _register(reg, currency="EUR").error == RegistryError.INVALID_CURRENCY
    assert reg.count().value == 0


def test_field_validation_precedes_duplicate_check():
    reg = _governed()
    _register(reg)
    assert _register(reg, title="").error == RegistryError.INVALID_TITLE


def test_capacity_checked_before_everything_else():
    reg = _governed()
    assert reg.set_max_contents(CREATOR, 1).ok
    _register(reg)

    result = _register(reg, content_hash=bytes(3), title="")
    assert result.error == RegistryError.MAX_CONTENTS_EXCEEDED


def test_rejects_registration_with_max_contents_exceeded():
    reg = _governed()
    reg.set_max_contents(CREATOR, 1)
    assert _register(reg, content_hash=_hash(1)).ok

    result = _register(reg, content_hash=_hash(2), title="Title2", price=200, currency="USD")
    assert result.error == RegistryError.MAX_CONTENTS_EXCEEDED
    assert reg.count().value == 1


def test_ids_are_sequential_and_count_tracks_them():
    reg = _governed()
    ids = [_register(reg, content_hash=_hash(i)).value for i in range(1, 4)]
    assert ids == [0, 1, 2]
    assert reg.count().value == 3


def test_fee_change_applies_to_next_registration():
    reg = _governed()
    result = reg.set_registration_fee(CREATOR, 200)
    assert result.ok and result.value is True
    assert reg.config.registration_fee == 200

    _register(reg)
    assert reg.transfer.records == [TransferRecord(amount=200, sender=CREATOR, recipient=AUTHORITY)]


def test_failed_transfer_leaves_no_trace():
    ledger = BalanceLedger()
    reg = _governed(transfer=ledger)

    result = _register(reg)
    assert result.error == RegistryError.TRANSFER_FAILED
    assert reg.count().value == 0
    assert reg.get(0).error == RegistryError.CONTENT_NOT_FOUND
    assert reg.verify_ownership(_hash(), CREATOR).value is False
    assert ledger.records == []

    ledger.credit(CREATOR, 150)
    assert _register(reg).value == 0
    assert ledger.balance_of(CREATOR) == 50
    assert ledger.balance_of(AUTHORITY) == 100


# --- Reads ---


def test_get_unknown_content():
    reg = _registry()
    result = reg.get(99)
    assert not result.ok
    assert result.error == RegistryError.CONTENT_NOT_FOUND


def test_get_returns_a_copy():
    reg = _governed()
    _register(reg)
    record = reg.get(0).value
    record.title = "Tampered"
    record.tags.append("extra")
    assert reg.get(0).value.title == "Title"
    assert reg.get(0).value.tags == ["tag1", "tag2"]


def test_get_by_hash():
    reg = _governed()
    _register(reg, content_hash=_hash(1))
    _register(reg, content_hash=_hash(2))
    assert reg.get_by_hash(_hash(2)).value == 1
    assert reg.get_by_hash(_hash(9)).error == RegistryError.CONTENT_NOT_FOUND
    assert reg.get_by_hash(b"short").error == RegistryError.INVALID_HASH


def test_list_contents_pages_in_id_order():
    reg = _governed()
    for i in range(1, 6):
        _register(reg, content_hash=_hash(i), title=f"T{i}")

    page = reg.list_contents(offset=1, limit=2).value
    assert [cid for cid, _ in page] == [1, 2]
    assert [r.title for _, r in page] == ["T2", "T3"]
    assert reg.list_contents(offset=10).value == []


def test_verify_ownership():
    reg = _governed()
    _register(reg)

    result = reg.verify_ownership(_hash(), CREATOR)
    assert result.ok and result.value is True

    result = reg.verify_ownership(_hash(), OTHER)
    assert result.ok and result.value is False


def test_verify_ownership_of_unknown_hash_is_false():
    reg = _governed()
    assert reg.verify_ownership(_hash(7), CREATOR).ok
    assert reg.verify_ownership(_hash(7), CREATOR).value is False
    assert reg.verify_ownership(b"not-a-hash", CREATOR).value is False


# --- Updates ---


def test_update_content_success():
    reg = _governed()
    _register(reg, title="OldTitle", description="OldDesc")
    reg.clock.advance(3)

    result = reg.update(CREATOR, 0, "NewTitle", "NewDesc")
    assert result.ok and result.value is True

    record = reg.get(0).value
    assert record.title == "NewTitle"
    assert record.description == "NewDesc"
    assert record.registered_at == 3

    entry = reg.get_update(0).value
    assert entry.updated_title == "NewTitle"
    assert entry.updated_description == "NewDesc"
    assert entry.updated_at == 3
    assert entry.updated_by == CREATOR


def test_update_tracker_keeps_only_latest_edit():
    reg = _governed()
    _register(reg)
    reg.update(CREATOR, 0, "First", "")
    reg.clock.advance()
    reg.update(CREATOR, 0, "Second", "again")

    entry = reg.get_update(0).value
    assert entry.updated_title == "Second"
    assert entry.updated_description == "again"
    assert len(reg.updates) == 1


def test_update_leaves_fixed_fields_alone():
    reg = _governed()
    _register(reg)
    reg.update(CREATOR, 0, "NewTitle", "NewDesc")
    record = reg.get(0).value
    assert record.hash == _hash()
    assert record.category == "Category"
    assert record.price == 100
    assert record.creator == CREATOR


def test_rejects_update_for_nonexistent_content():
    reg = _governed()
    result = reg.update(CREATOR, 99, "NewTitle", "NewDesc")
    assert result.error == RegistryError.CONTENT_NOT_FOUND


def test_rejects_update_by_non_creator():
    reg = _governed()
    _register(reg)

    result = reg.update(OTHER, 0, "NewTitle", "NewDesc")
    assert result.error == RegistryError.NOT_AUTHORIZED
    assert reg.get(0).value.title == "Title"
    assert reg.get_update(0).error == RegistryError.CONTENT_NOT_FOUND


def test_rejects_invalid_update_params():
    reg = _governed()
    _register(reg)
    assert reg.update(CREATOR, 0, "", "desc").error == RegistryError.INVALID_UPDATE_PARAM
    assert reg.update(CREATOR, 0, "ok", "d" * 1025).error == RegistryError.INVALID_UPDATE_PARAM
    assert reg.get(0).value.title == "Title"


# --- Governance ---


def test_set_authority_once():
    reg = _registry()
    result = reg.set_authority(CREATOR, AUTHORITY)
    assert result.ok and result.value is True
    assert reg.config.authority == AUTHORITY

    second = reg.set_authority(CREATOR, OTHER)
    assert not second.ok
    assert reg.config.authority == AUTHORITY


def test_rejects_burn_identity_as_authority():
    reg = _registry()
    result = reg.set_authority(CREATOR, BURN_IDENTITY)
    assert not result.ok
    assert result.error == RegistryError.NOT_AUTHORIZED
    assert reg.config.authority is None


def test_config_setters_need_authority():
    reg = _registry()
    assert reg.set_max_contents(CREATOR, 10).error == RegistryError.AUTHORITY_NOT_VERIFIED
    assert reg.set_registration_fee(CREATOR, 5).error == RegistryError.AUTHORITY_NOT_VERIFIED


def test_default_gate_lets_any_caller_configure():
    reg = _governed()
    assert reg.set_registration_fee(OTHER, 5).ok
    assert reg.config.registration_fee == 5


def test_strict_gate_requires_the_authority():
    reg = _governed(strict_authority=True)
    assert reg.set_registration_fee(OTHER, 5).error == RegistryError.NOT_AUTHORIZED
    assert reg.set_max_contents(OTHER, 5).error == RegistryError.NOT_AUTHORIZED
    assert reg.set_registration_fee(AUTHORITY, 5).ok
    assert reg.config.registration_fee == 5


def test_independent_instances_do_not_share_state():
    a = _governed()
    b = _registry()
    _register(a)
    assert b.count().value == 0
    assert b.config.authority is None


# --- Audit ---


def test_mutations_are_audited():
    with tempfile.TemporaryDirectory() as tmpdir:
        audit = AuditLogger(Path(tmpdir))
        reg = _governed(audit=audit)
        _register(reg)
        _register(reg)
        reg.update(OTHER, 0, "Hijack", "")

        events = audit.get_events()
        assert len(events) == 4

        registrations = audit.get_events(action="register")
        assert {e.success for e in registrations} == {True, False}
        failed = [e for e in registrations if not e.success][0]
        assert failed.error == "ContentAlreadyExists"

        update = audit.get_events(action="update")[0]
        assert update.actor == OTHER
        assert update.content_id == 0
        assert update.error == "NotAuthorized"


def test_audit_write_failure_keeps_committed_result():
    with tempfile.TemporaryDirectory() as tmpdir:
        audit_dir = Path(tmpdir) / "audit"
        reg = _governed(audit=AuditLogger(audit_dir))
        shutil.rmtree(audit_dir)

        result = _register(reg)
        assert result.ok
        assert result.value == 0
        assert reg.count().value == 1
        assert len(reg.transfer.records) == 1
        assert reg.update(CREATOR, 0, "NewTitle", "").ok


# --- Result envelope ---


def test_unwrap_returns_value_or_raises():
    reg = _governed()
    assert _register(reg).unwrap() == 0

    with pytest.raises(RegistryOperationError) as excinfo:
        _register(reg).unwrap()
    assert excinfo.value.error == RegistryError.CONTENT_ALREADY_EXISTS
    assert str(excinfo.value).startswith("ContentAlreadyExists (110): ")
