"""Broadcast dispatch channel with rendezvous hand-off.

Any number of producers ``send`` into a ``DispatchChannel``. Every active
``Subscription`` receives every message in acceptance order, and a sender
stays suspended until each subscription has taken the message. Messages
sent while nobody is subscribed are dropped.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from types import TracebackType


class Subscription[M]:
    """One consumer's view of a ``DispatchChannel``.

    Registered as soon as it is created; iterate it with ``async for``.
    Closing it unregisters it and releases any sender still waiting on a
    message it never took.

    Parameters
    ----------
    channel : DispatchChannel[M]
        The channel this subscription reads from.
    """

    def __init__(self, channel: DispatchChannel[M]) -> None:
        self._channel = channel
        self._pending: deque[tuple[M, asyncio.Future[None]]] = deque()
        self._ready = asyncio.Event()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _offer(self, msg: M) -> asyncio.Future[None]:
        taken: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._pending.append((msg, taken))
        self._ready.set()
        return taken

    async def get(self) -> M:
        """Take the next message, waiting for one if necessary.

        Raises
        ------
        StopAsyncIteration
            If the subscription has been closed.
        """
        while not self._pending:
            if self._closed:
                raise StopAsyncIteration
            self._ready.clear()
            await self._ready.wait()

        msg, taken = self._pending.popleft()
        if not taken.done():
            taken.set_result(None)
        return msg

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._channel._unsubscribe(self)
        while self._pending:
            _, taken = self._pending.popleft()
            if not taken.done():
                taken.set_result(None)
        self._ready.set()

    def __aiter__(self) -> Subscription[M]:
        return self

    async def __anext__(self) -> M:
        return await self.get()

    def __enter__(self) -> Subscription[M]:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class DispatchChannel[M]:
    """Unbounded multi-producer broadcast channel.

    Parameters
    ----------
    name : str
        Used for the channel's logger name.

    Examples
    --------
    >>> channel = DispatchChannel[int]("counter")
    >>> with channel.subscribe() as messages:
    ...     sender = asyncio.create_task(channel.send(1))
    ...     assert await messages.get() == 1
    ...     await sender
    """

    def __init__(self, name: str = "channel") -> None:
        self._name = name
        self._subscriptions: list[Subscription[M]] = []
        self._dropped = 0
        self._logger = logging.getLogger(f"tealeaf.channel.{name}")

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    @property
    def dropped(self) -> int:
        """Number of messages sent while nobody was subscribed."""
        return self._dropped

    def subscribe(self) -> Subscription[M]:
        """Register a new subscription; it receives messages sent from now on."""
        subscription = Subscription(self)
        self._subscriptions.append(subscription)
        return subscription

    def _unsubscribe(self, subscription: Subscription[M]) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    async def send(self, msg: M) -> None:
        """Offer *msg* to every subscription and wait until all have taken it."""
        if not self._subscriptions:
            self._dropped += 1
            self._logger.debug("No subscribers, dropping %r", msg)
            return

        handoffs = [sub._offer(msg) for sub in tuple(self._subscriptions)]
        if len(handoffs) == 1:
            await handoffs[0]
        else:
            await asyncio.gather(*handoffs)
