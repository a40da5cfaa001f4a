"""The feature engine: a serialized message → update → state loop.

A ``TeaFeature`` owns one ``StateCell`` and one ``DispatchChannel``. A
single loop task consumes the channel and is the only writer of the
state, so reducer applications never overlap. Effects returned by the
reducer are launched as independent tasks and never block the loop.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, Protocol

from tealeaf.channel import DispatchChannel, Subscription
from tealeaf.effect import Effect
from tealeaf.scope import EffectRunner, FeatureScope
from tealeaf.state import StateCell, StateWatcher
from tealeaf.types import Dispatch, InitWithPrevious, Render, Update, View
from tealeaf.view import project_latest


class Feature[M, P](Protocol):
    """What a running feature exposes to its callers."""

    def props(self) -> AsyncIterator[P]:
        """Props to render, latest wins."""
        ...

    def dispatch(self, msg: M) -> None:
        """Send a message without waiting for it. Callable from any thread."""
        ...

    async def sync_dispatch(self, msg: M) -> None:
        """Send a message and wait until the loop has taken it.

        Awaitable from any event loop; a foreign loop hands the send over
        to the feature's own.
        """
        ...

    def sequential_dispatch(
        self, producer: Callable[[Dispatch[M]], Awaitable[None]]
    ) -> asyncio.Task[None] | concurrent.futures.Future[None]:
        """Run *producer*, which may send several messages in order."""
        ...

    async def bind[N](self, other: Feature[N, Any], transform: Callable[[M], Effect[N]]) -> None:
        """Drive *other* with effects derived from this feature's messages."""
        ...


class TeaFeature[S, M, P]:
    """Single-actor state machine driven by messages.

    Construction runs *init* immediately and starts the loop inside
    *scope*; a running event loop is required.

    Parameters
    ----------
    init : InitWithPrevious[S, M]
        Produces the starting state and the start effect from an optional
        restored state.
    update : Update[S, M]
        Reducer ``(msg, state) -> (state, effect)``. Must not block. An
        exception raised here fails *scope*.
    view : View[S, P]
        Projection from state to props.
    scope : FeatureScope
        Owning scope; cancelling it stops the feature and everything it
        launched.
    previous_state : S | None
        State restored from a previous process, handed to *init*.
    on_each_state : Render[S] | None
        Sink invoked with every state, in order, starting with the
        initial one. May be a coroutine function.
    name : str
        Feature name, used for logging and config resolution.
    effect_runner : EffectRunner | None
        Execution context for effects. Built from the scope's config when
        omitted.
    offload_view : bool | None
        Run plain-function views in the default executor. Taken from the
        scope's config when omitted.
    offload_render : bool | None
        Call a plain-function *on_each_state* in the default executor, so
        rendering never holds up the loop. Taken from the scope's config
        when omitted.

    Examples
    --------
    >>> def update(msg: int, state: int) -> tuple[int, Effect[int]]:
    ...     return state + msg, none()
    >>> async with FeatureScope() as scope:
    ...     counter = TeaFeature(
    ...         init=lambda previous: (previous or 0, none()),
    ...         update=update,
    ...         view=str,
    ...         scope=scope,
    ...     )
    ...     await asyncio.sleep(0)
    ...     await counter.sync_dispatch(2)
    """

    def __init__(
        self,
        *,
        init: InitWithPrevious[S, M],
        update: Update[S, M],
        view: View[S, P],
        scope: FeatureScope,
        previous_state: S | None = None,
        on_each_state: Render[S] | None = None,
        name: str = "feature",
        effect_runner: EffectRunner | None = None,
        offload_view: bool | None = None,
        offload_render: bool | None = None,
    ) -> None:
        self._name = name
        self._update = update
        self._view = view
        self._scope = scope
        self._loop = asyncio.get_running_loop()
        self._logger = logging.getLogger(f"tealeaf.feature.{name}")

        config = scope.config.resolve_feature(name)
        self._offload_view = config.offload_view if offload_view is None else offload_view
        self._offload_render = config.offload_render if offload_render is None else offload_render
        self._effects = effect_runner or EffectRunner(
            scope,
            max_concurrency=config.effect_concurrency,
            logger=self._logger,
        )
        self._channel: DispatchChannel[M] = DispatchChannel(name)

        initial, start_effect = init(previous_state)
        self._cell = StateCell(initial)

        if on_each_state is not None:
            rendered = self._cell.watch(conflate=False)
            scope.launch(self._render(rendered, on_each_state), name=f"render:{name}")
        scope.launch(self._run(start_effect), name=f"feature:{name}")

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> S:
        return self._cell.value

    @property
    def current_props(self) -> P:
        """Projection of the current state, computed synchronously.

        Only available for plain-function views.
        """
        props = self._view(self._cell.value)
        if inspect.isawaitable(props):
            if inspect.iscoroutine(props):
                props.close()
            msg = "current_props needs a synchronous view; iterate props() instead"
            raise TypeError(msg)
        return props

    @property
    def channel(self) -> DispatchChannel[M]:
        return self._channel

    def states(self, *, conflate: bool = True) -> StateWatcher[S]:
        """Live stream of states, starting from the current one."""
        return self._cell.watch(conflate=conflate)

    def props(self) -> AsyncIterator[P]:
        return project_latest(self._cell, self._view, offload=self._offload_view)

    def messages(self) -> Subscription[M]:
        """Subscribe to every message accepted from now on."""
        return self._channel.subscribe()

    async def _run(self, start_effect: Effect[M]) -> None:
        with self._channel.subscribe() as messages:
            self._effects.schedule(start_effect, self.sync_dispatch)
            self._logger.info("Started")
            async for msg in messages:
                self._handle(msg)

    def _handle(self, msg: M) -> None:
        try:
            state, effect = self._update(msg, self._cell.value)
        except Exception:
            self._logger.exception("Update failed on %r", msg)
            raise
        self._cell.set(state)
        if not effect.is_none:
            self._effects.schedule(effect, self.sync_dispatch)

    async def _render(self, states: StateWatcher[S], sink: Render[S]) -> None:
        offload = self._offload_render and not inspect.iscoroutinefunction(sink)
        with states:
            async for state in states:
                if offload:
                    result = await self._loop.run_in_executor(None, sink, state)
                else:
                    result = sink(state)
                if inspect.isawaitable(result):
                    await result

    def _on_loop(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def dispatch(self, msg: M) -> None:
        """Send *msg* without waiting; safe to call from any thread."""
        if self._on_loop():
            self.sequential_dispatch(lambda send: send(msg))
        else:
            self._loop.call_soon_threadsafe(self.dispatch, msg)

    async def sync_dispatch(self, msg: M) -> None:
        if self._on_loop():
            await self._channel.send(msg)
        else:
            handoff = asyncio.run_coroutine_threadsafe(self._channel.send(msg), self._loop)
            await asyncio.wrap_future(handoff)

    def sequential_dispatch(
        self, producer: Callable[[Dispatch[M]], Awaitable[None]]
    ) -> asyncio.Task[None] | concurrent.futures.Future[None]:
        """Run *producer* as a scope task.

        From another thread the producer is handed to the feature's loop
        and a ``concurrent.futures.Future`` tracking it is returned.
        """
        if not self._on_loop():
            return asyncio.run_coroutine_threadsafe(self._produce_launched(producer), self._loop)
        return self._scope.launch(self._produce(producer), name=f"dispatch:{self._name}")

    async def _produce_launched(self, producer: Callable[[Dispatch[M]], Awaitable[None]]) -> None:
        await self._scope.launch(self._produce(producer), name=f"dispatch:{self._name}")

    async def _produce(self, producer: Callable[[Dispatch[M]], Awaitable[None]]) -> None:
        try:
            await producer(self.sync_dispatch)
        except Exception:
            self._logger.exception("Producer failed")

    async def bind[N](self, other: Feature[N, Any], transform: Callable[[M], Effect[N]]) -> None:
        """Forward this feature's messages to *other* as effects.

        Each accepted message is translated by *transform* and the
        resulting effect is run to completion against
        ``other.sync_dispatch`` before the next message is taken, so
        *other* sees the translated messages in this feature's order.
        Runs until cancelled; launch it in a scope you control.
        """
        with self._channel.subscribe() as messages:
            self._logger.debug("Bound to %s", getattr(other, "name", other))
            async for msg in messages:
                await transform(msg).run(other.sync_dispatch, log=self._logger)

    def __repr__(self) -> str:
        return f"TeaFeature(name={self._name!r}, state={self._cell.value!r})"
