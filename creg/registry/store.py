"""Content record store: records keyed by id plus the hash uniqueness index."""

from __future__ import annotations

from typing import Iterator, Optional

from creg.registry.models import ContentRecord


class ContentStore:
    """In-memory primary store for content records.

    ``_records`` maps content id to record; ``_by_hash`` maps the 32-byte
    content hash to its id. The two are only ever changed together.
    """

    def __init__(self) -> None:
        self._records: dict[int, ContentRecord] = {}
        self._by_hash: dict[bytes, int] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, content_id: object) -> bool:
        return content_id in self._records

    def has_hash(self, content_hash: bytes) -> bool:
        return bytes(content_hash) in self._by_hash

    def id_for_hash(self, content_hash: bytes) -> Optional[int]:
        return self._by_hash.get(bytes(content_hash))

    def get(self, content_id: int) -> Optional[ContentRecord]:
        return self._records.get(content_id)

    def insert(self, content_id: int, record: ContentRecord) -> None:
        """Insert *record* under *content_id* and index its hash.

        Raises ``KeyError`` if either the id or the hash is already taken;
        nothing is written in that case.
        """
        key = bytes(record.hash)
        if content_id in self._records:
            raise KeyError(f"content id {content_id} already stored")
        if key in self._by_hash:
            raise KeyError(f"hash {key.hex()} already indexed")
        self._records[content_id] = record
        self._by_hash[key] = content_id

    def replace_metadata(
        self, content_id: int, title: str, description: str, timestamp: int
    ) -> ContentRecord:
        """Overwrite the mutable fields of an existing record in place."""
        record = self._records[content_id]
        record.title = title
        record.description = description
        record.registered_at = timestamp
        return record

    def iter_records(self) -> Iterator[tuple[int, ContentRecord]]:
        """Yield ``(content_id, record)`` pairs in id order."""
        for content_id in sorted(self._records):
            yield content_id, self._records[content_id]
