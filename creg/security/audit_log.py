"""Audit logging for registry mutations.

Every mutating registry operation, accepted or rejected, can be appended to a
newline-delimited JSON log. Logs are kept per day under
``~/.creg/audit_logs/`` unless another directory is given.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass
class AuditEntry:
    """A single audit log entry."""

    id: str
    timestamp: str
    actor: str
    action: str
    content_id: Optional[int] = None
    details: dict[str, Any] = field(default_factory=dict)
    success: bool = True
    error: str = ""


class AuditLogger:
    """File-based JSONL audit logger."""

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = Path(base_dir) if base_dir else Path.home() / ".creg" / "audit_logs"
        self._base_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _log_file_for_date(self, dt: datetime) -> Path:
        return self._base_dir / f"{dt.strftime('%Y-%m-%d')}.jsonl"

    def _read_all_entries(self) -> list[AuditEntry]:
        entries: list[AuditEntry] = []
        for path in sorted(self._base_dir.glob("*.jsonl")):
            for lineno, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
                if not line.strip():
                    continue
                try:
                    entries.append(AuditEntry(**json.loads(line)))
                except (json.JSONDecodeError, TypeError):
                    logger.warning("Skipping malformed audit line %s:%d", path.name, lineno)
        return entries

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def log_event(
        self,
        actor: str,
        action: str,
        content_id: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
        success: bool = True,
        error: str = "",
    ) -> AuditEntry:
        """Record an audit event and return the created entry."""
        now = datetime.now(timezone.utc)
        entry = AuditEntry(
            id=uuid.uuid4().hex[:16],
            timestamp=now.isoformat(),
            actor=actor,
            action=action,
            content_id=content_id,
            details=details or {},
            success=success,
            error=error,
        )
        with self._log_file_for_date(now).open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(asdict(entry), default=str) + "\n")
        return entry

    def get_events(
        self,
        *,
        actor: Optional[str] = None,
        action: Optional[str] = None,
        content_id: Optional[int] = None,
        success: Optional[bool] = None,
        limit: int = 200,
    ) -> list[AuditEntry]:
        """Return filtered audit events, newest first."""
        entries = self._read_all_entries()

        if actor:
            entries = [e for e in entries if e.actor == actor]
        if action:
            entries = [e for e in entries if e.action == action]
        if content_id is not None:
            entries = [e for e in entries if e.content_id == content_id]
        if success is not None:
            entries = [e for e in entries if e.success is success]

        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries[:limit]

    def get_events_for_content(self, content_id: int) -> list[AuditEntry]:
        return self.get_events(content_id=content_id, limit=10000)

    def export_events(self, fmt: str = "json", **filters: Any) -> str:
        """Export audit events as ``json`` or ``csv``."""
        filters.setdefault("limit", 10000)
        entries = self.get_events(**filters)

        if fmt == "csv":
            buf = io.StringIO()
            writer = csv.writer(buf, lineterminator="\n")
            writer.writerow(["id", "timestamp", "actor", "action", "content_id", "success", "error"])
            for e in entries:
                cid = "" if e.content_id is None else e.content_id
                writer.writerow([e.id, e.timestamp, e.actor, e.action, cid, e.success, e.error])
            return buf.getvalue()

        return json.dumps([asdict(e) for e in entries], indent=2, default=str)
