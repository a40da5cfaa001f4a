"""Single-writer state cell with live observation.

``StateCell`` holds the current state. Only the owning feature's loop
calls ``set``; readers observe it through ``StateWatcher`` streams that
start from the current value.
"""

from __future__ import annotations

import asyncio
from collections import deque
from types import TracebackType


class StateWatcher[S]:
    """Live stream of a ``StateCell``'s values.

    Primed with the cell's value at registration time. With
    ``conflate=True`` only the newest unread value is kept; otherwise every
    value is delivered in the order it was written.
    """

    def __init__(self, cell: StateCell[S], *, conflate: bool) -> None:
        self._cell = cell
        self._conflate = conflate
        self._pending: deque[S] = deque(maxlen=1 if conflate else None)
        self._ready = asyncio.Event()
        self._closed = False
        self._offer(cell.value)

    @property
    def conflate(self) -> bool:
        return self._conflate

    def _offer(self, value: S) -> None:
        self._pending.append(value)
        self._ready.set()

    async def get(self) -> S:
        """Wait for and return the next unread value."""
        while not self._pending:
            if self._closed:
                raise StopAsyncIteration
            self._ready.clear()
            await self._ready.wait()
        return self._pending.popleft()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._cell._unwatch(self)
        self._ready.set()

    def __aiter__(self) -> StateWatcher[S]:
        return self

    async def __anext__(self) -> S:
        return await self.get()

    def __enter__(self) -> StateWatcher[S]:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class StateCell[S]:
    """Mutable slot holding an immutable state value.

    Parameters
    ----------
    initial : S
        The state produced by bootstrap.

    Examples
    --------
    >>> cell = StateCell(0)
    >>> watcher = cell.watch()
    >>> cell.set(1)
    >>> cell.value
    1
    """

    def __init__(self, initial: S) -> None:
        self._value = initial
        self._watchers: list[StateWatcher[S]] = []

    @property
    def value(self) -> S:
        return self._value

    def set(self, value: S) -> None:
        """Replace the state and notify every watcher."""
        self._value = value
        for watcher in tuple(self._watchers):
            watcher._offer(value)

    def watch(self, *, conflate: bool = True) -> StateWatcher[S]:
        watcher = StateWatcher(self, conflate=conflate)
        self._watchers.append(watcher)
        return watcher

    def _unwatch(self, watcher: StateWatcher[S]) -> None:
        if watcher in self._watchers:
            self._watchers.remove(watcher)
