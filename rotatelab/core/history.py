from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass(frozen=True)
class HistoryItem:
    """Encoded full-raster snapshot taken right before an edit."""

    image_data: bytes
    rotation_degrees: int = 0
    timestamp: float = field(default_factory=time.time)


class HistoryManager:
    def __init__(self):
        self.items: list[HistoryItem] = []

    def __len__(self) -> int:
        return len(self.items)

    def is_empty(self) -> bool:
        return not self.items

    def clear(self):
        self.items.clear()

    def push(self, item: HistoryItem):
        """
        Appends a snapshot to the history.
        This is called before the raster it describes is mutated.
        """
        self.items.append(item)

    def peek(self) -> HistoryItem | None:
        if not self.items:
            return None
        return self.items[-1]

    def undo(self) -> HistoryItem | None:
        """
        Pops the most recent snapshot. There is no redo: a popped item is
        gone unless it is reinserted. Returns ``None`` when there is nothing to undo.
        """
        if not self.items:
            return None
        return self.items.pop()

    def reinsert(self, index: int, item: HistoryItem):
        """Puts back a popped snapshot whose restore did not happen, below any
        snapshots pushed since."""
        self.items.insert(min(index, len(self.items)), item)
