from __future__ import annotations

from typing import Iterable, Iterator, List, Tuple

from .errors import QueueIndexError
from .models import QueuedInput


class InputQueue:
    """
    Ordered sequence of classified inputs. Queue order is page order.

    The queue does not enforce the tier cap; admission decides what gets
    appended before the queue is touched.
    """

    def __init__(self, items: Iterable[QueuedInput] = ()) -> None:
        self._items: List[QueuedInput] = list(items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[QueuedInput]:
        return iter(self.snapshot())

    def __getitem__(self, index: int) -> QueuedInput:
        self._check_index(index)
        return self._items[index]

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._items):
            raise QueueIndexError(index, len(self._items))

    def append(self, items: Iterable[QueuedInput]) -> int:
        added = list(items)
        self._items.extend(added)
        return len(added)

    def remove_at(self, index: int) -> QueuedInput:
        self._check_index(index)
        return self._items.pop(index)

    def move(self, src: int, dst: int) -> None:
        self._check_index(src)
        self._check_index(dst)
        if src == dst:
            return
        item = self._items.pop(src)
        self._items.insert(dst, item)

    def snapshot(self) -> Tuple[QueuedInput, ...]:
        return tuple(self._items)

    def reset(self) -> None:
        self._items = []

    def truncate(self, max_length: int) -> Tuple[QueuedInput, ...]:
        """Keep the first ``max_length`` entries and return the ones dropped."""
        if max_length < 0:
            raise ValueError("max_length must be >= 0")
        dropped = tuple(self._items[max_length:])
        self._items = self._items[:max_length]
        return dropped
