# container.py
from __future__ import annotations

from typing import Generic, Iterator, List, Optional, Type, TypeVar

T = TypeVar("T")

INITIAL_CAPACITY = 32


class Vec(Generic[T]):
    """
    Growable ordered sequence backing every per-step list.

    Storage is preallocated in slots and doubles when full (starting at 32).
    There is no removal and no shrink: items are only ever appended.

    Optional `item_type` pins the element type, so a list of inputs can't
    silently accept a dependency step and vice versa.
    """

    def __init__(self, item_type: Optional[Type[T]] = None):
        self.item_type = item_type
        self._slots: List[Optional[T]] = [None] * INITIAL_CAPACITY
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def push(self, item: T) -> None:
        if self.item_type is not None and not isinstance(item, self.item_type):
            raise TypeError(
                f"Vec[{self.item_type.__name__}] cannot hold {type(item).__name__}"
            )
        if self._count == len(self._slots):
            # grow by doubling; a freed Vec restarts at the initial capacity
            self._slots.extend([None] * (len(self._slots) or INITIAL_CAPACITY))
        self._slots[self._count] = item
        self._count += 1

    def get(self, index: int) -> T:
        if not 0 <= index < self._count:
            raise IndexError(f"Vec index {index} out of range (count={self._count})")
        return self._slots[index]  # type: ignore[return-value]

    def free(self) -> None:
        """Drop the backing storage. The Vec is empty (and reusable) afterwards."""
        self._slots = []
        self._count = 0

    def snapshot(self) -> tuple[T, ...]:
        return tuple(self._slots[: self._count])  # type: ignore[arg-type]

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[T]:
        for i in range(self._count):
            yield self._slots[i]  # type: ignore[misc]

    def __repr__(self) -> str:
        return f"Vec({list(self)!r})"
