"""Time sources stamping registrations and updates."""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    def now(self) -> int:
        ...


class BlockHeightClock:
    """A manually advanced ledger height, starting at *height*."""

    def __init__(self, height: int = 0) -> None:
        if height < 0:
            raise ValueError("height must not be negative")
        self.height = height

    def now(self) -> int:
        return self.height

    def advance(self, blocks: int = 1) -> int:
        if blocks < 0:
            raise ValueError("a ledger clock cannot move backwards")
        self.height += blocks
        return self.height


class SystemClock:
    """Unix seconds, clamped so successive readings never decrease."""

    def __init__(self) -> None:
        self._last = 0

    def now(self) -> int:
        self._last = max(self._last, int(time.time()))
        return self._last
