"""Update tracker: keeps only the latest edit per content id."""

from __future__ import annotations

from typing import Iterator, Optional

from creg.registry.models import ContentUpdateRecord


class UpdateTracker:
    def __init__(self) -> None:
        self._latest: dict[int, ContentUpdateRecord] = {}

    def __len__(self) -> int:
        return len(self._latest)

    def record(
        self, content_id: int, title: str, description: str, timestamp: int, updater: str
    ) -> ContentUpdateRecord:
        """Overwrite the tracked entry for *content_id* and return it."""
        entry = ContentUpdateRecord(
            updated_title=title,
            updated_description=description,
            updated_at=timestamp,
            updated_by=updater,
        )
        self._latest[content_id] = entry
        return entry

    def get(self, content_id: int) -> Optional[ContentUpdateRecord]:
        return self._latest.get(content_id)

    def iter_updates(self) -> Iterator[tuple[int, ContentUpdateRecord]]:
        for content_id in sorted(self._latest):
            yield content_id, self._latest[content_id]
